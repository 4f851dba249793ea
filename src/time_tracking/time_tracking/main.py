from __future__ import annotations

import importlib
import logging
import time
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, g, request

from config import get_settings_module

from .container import build_container
from .core.logging import configure_logging
from .database.bootstrap import apply_schema, list_tables
from .tracking.controller import register as register_tracking

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def _register_request_logging(app: Flask) -> None:
    request_logger = logging.getLogger("request")

    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def _log_request(response):
        started = g.pop("request_started", None)
        latency_ms = (time.perf_counter() - started) * 1000 if started is not None else None
        request_logger.info(
            "request",
            extra={
                "path": request.path,
                "method": request.method,
                "status_code": response.status_code,
                "latency_ms": round(latency_ms, 2) if latency_ms is not None else None,
                "employee_id": request.headers.get("X-Employee-Id"),
            },
        )
        return response


def create_app() -> Flask:
    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    db_config = getattr(settings, "DB_CONFIG")

    logger.info(
        "starting settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(db_config=db_config, time_tracking=getattr(settings, "TIME_TRACKING", {}))
    app.extensions["time_tracking"] = container

    _register_request_logging(app)
    register_tracking(app, container)

    return app
