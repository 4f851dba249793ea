from __future__ import annotations

import json
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from mysql.connector import errorcode
from mysql.connector.errors import DatabaseError, IntegrityError

from ..location.model import Location
from .connection import DatabaseConnection

# (conn, cursor) of the transaction opened by transaction(), if any.
_active_tx: ContextVar[Optional[tuple]] = ContextVar("_active_tx", default=None)


@contextmanager
def transaction(conn_factory: DatabaseConnection):
    """Group every db_cursor() call in the block into one commit.

    Nested transaction() blocks join the outer one.
    """

    if _active_tx.get() is not None:
        yield
        return

    conn = conn_factory.connect()
    cur = conn.cursor(dictionary=True)
    token = _active_tx.set((conn, cur))
    try:
        yield
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        _active_tx.reset(token)
        cur.close()
        conn.close()


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    active = _active_tx.get()
    if active is not None:
        yield active
        return

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def is_duplicate_key(error: IntegrityError) -> bool:
    return getattr(error, "errno", None) == errorcode.ER_DUP_ENTRY


def is_lock_conflict(error: DatabaseError) -> bool:
    """Deadlock victim or lock wait timeout: another transaction got the rows first."""
    return getattr(error, "errno", None) in (errorcode.ER_LOCK_DEADLOCK, errorcode.ER_LOCK_WAIT_TIMEOUT)


def to_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetime -> naive UTC for DATETIME columns."""

    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def from_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


def location_to_json(location: Optional[Location]) -> Optional[str]:
    if location is None:
        return None
    return json.dumps(location.to_dict(), allow_nan=False)


def location_from_json(value: Any) -> Optional[Location]:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    data = json.loads(value) if isinstance(value, str) else value
    return Location.from_payload(data)
