from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import Flask, jsonify, request

from ..core.constants import DEFAULT_ENTRIES_LIMIT
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..location.model import Location

logger = logging.getLogger(__name__)

URL_PREFIX = "/api/time-tracking"
EMPLOYEE_HEADER = "X-Employee-Id"


def _ok(message: str, data=None, status: int = 200):
    return jsonify({"success": True, "message": message, "data": data}), status


def _fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def _body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _location(data: dict) -> Optional[Location]:
    raw = data.get("location")
    if raw is None:
        return None
    return Location.from_payload(raw)


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValidationError(f"{name} must be an integer") from e


def register(app: Flask, container) -> None:
    service = container.tracking_service

    def employee_required(view):
        """Authentication happens upstream; it forwards the employee id as a header."""

        @wraps(view)
        def wrapper(*args, **kwargs):
            employee_id = (request.headers.get(EMPLOYEE_HEADER) or "").strip()
            if not employee_id:
                return _fail("Authentication required", 401)
            return view(employee_id, *args, **kwargs)

        return wrapper

    def json_errors(fallback: str):
        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                try:
                    return view(*args, **kwargs)
                except ConflictError as e:
                    return _fail(str(e), 409)
                except NotFoundError as e:
                    return _fail(str(e), 404)
                except ValidationError as e:
                    return _fail(str(e), 400)
                except Exception:
                    logger.exception(fallback, extra={"path": request.path, "method": request.method})
                    return _fail(fallback, 500)

            return wrapper

        return decorator

    @app.route(f"{URL_PREFIX}/check-in", methods=["POST"], endpoint="tt_check_in")
    @employee_required
    @json_errors("Failed to check in")
    def check_in(employee_id: str):
        data = _body()
        result = service.check_in(
            employee_id,
            location=_location(data),
            notes=data.get("notes"),
            device_info=data.get("device_info"),
        )
        return _ok(result.message, result.to_dict())

    @app.route(f"{URL_PREFIX}/check-in-fallback", methods=["POST"], endpoint="tt_check_in_fallback")
    @employee_required
    @json_errors("Failed to check in without location")
    def check_in_fallback(employee_id: str):
        data = _body()
        result = service.check_in_without_location(
            employee_id,
            data.get("reason"),
            notes=data.get("notes"),
            device_info=data.get("device_info"),
        )
        return _ok(result.message, result.to_dict())

    @app.route(f"{URL_PREFIX}/check-out", methods=["POST"], endpoint="tt_check_out")
    @employee_required
    @json_errors("Failed to check out")
    def check_out(employee_id: str):
        data = _body()
        result = service.check_out(
            employee_id,
            location=_location(data),
            notes=data.get("notes"),
            device_info=data.get("device_info"),
        )
        return _ok(result.message, result.to_dict())

    @app.route(f"{URL_PREFIX}/active", methods=["GET"], endpoint="tt_active")
    @employee_required
    @json_errors("Failed to get active time entry")
    def active(employee_id: str):
        entry = service.get_active_entry(employee_id)
        if not entry:
            return _ok("No active time entry found", {"time_entry": None})
        return _ok("Active time entry retrieved", {"time_entry": entry.to_dict()})

    @app.route(f"{URL_PREFIX}/status", methods=["GET"], endpoint="tt_status")
    @employee_required
    @json_errors("Failed to get time tracking status")
    def status(employee_id: str):
        return _ok("Time tracking status retrieved", service.get_status(employee_id).to_dict())

    @app.route(f"{URL_PREFIX}/validate-location", methods=["POST"], endpoint="tt_validate_location")
    @employee_required
    @json_errors("Failed to validate location")
    def validate_location(employee_id: str):
        location = _location(_body())
        if location is None:
            raise ValidationError("Location is required")
        return _ok("Location validated", service.validate_location(location).to_dict())

    @app.route(f"{URL_PREFIX}/entries", methods=["GET"], endpoint="tt_entries")
    @employee_required
    @json_errors("Failed to get time entries")
    def entries(employee_id: str):
        page = service.get_time_entries(
            employee_id,
            start_date=request.args.get("start_date") or None,
            end_date=request.args.get("end_date") or None,
            limit=_int_arg("limit", DEFAULT_ENTRIES_LIMIT),
            offset=_int_arg("offset", 0),
        )
        return _ok("Time entries retrieved successfully", page.to_dict())

    @app.route(f"{URL_PREFIX}/attendance/<work_date>", methods=["GET"], endpoint="tt_attendance_record")
    @employee_required
    @json_errors("Failed to get attendance record")
    def attendance_record(employee_id: str, work_date: str):
        record = service.get_attendance_record(employee_id, work_date)
        return _ok("Attendance record retrieved successfully", {"attendance": record.to_dict()})

    @app.route(f"{URL_PREFIX}/attendance", methods=["GET"], endpoint="tt_attendance_records")
    @employee_required
    @json_errors("Failed to get attendance records")
    def attendance_records(employee_id: str):
        records = service.get_attendance_records(
            employee_id,
            request.args.get("start_date"),
            request.args.get("end_date"),
        )
        return _ok("Attendance records retrieved successfully", {"records": [r.to_dict() for r in records]})

    @app.route(f"{URL_PREFIX}/summary", methods=["GET"], endpoint="tt_summary")
    @employee_required
    @json_errors("Failed to generate work hours summary")
    def summary(employee_id: str):
        result = service.get_work_hours_summary(
            employee_id,
            request.args.get("start_date"),
            request.args.get("end_date"),
        )
        return _ok("Work hours summary retrieved successfully", {"summary": result.to_dict()})
