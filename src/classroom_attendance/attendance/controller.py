from __future__ import annotations

import hmac
import logging
from datetime import date, timedelta
from functools import wraps

from flask import Flask, current_app, jsonify, request

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..core.enums import RecordStatus
from ..core.exceptions import (
    DuplicateSubmission,
    NoActiveSession,
    RosterUnavailable,
    ScheduleUnavailable,
    ValidationError,
    WriteFailure,
)
from ..container import Container

logger = logging.getLogger(__name__)


def _session_json(session) -> dict | None:
    if session is None:
        return None
    return {
        "session_id": session.session_id,
        "subject_code": session.subject_code,
        "section_name": session.section_name,
        "room": session.room,
        "day": session.day,
        "start": session.start_at.strftime("%H:%M"),
        "end": session.end_at.strftime("%H:%M"),
    }


def _record_json(r) -> dict:
    return {
        "record_id": r.record_id,
        "student_id": r.student_id,
        "student_name": r.student_name,
        "session_id": r.session_id,
        "date": r.record_date.strftime("%Y-%m-%d"),
        "status": r.status.value,
        "confirmed_by_rfid": r.confirmed_by_rfid,
        "confirmed_by_weight": r.confirmed_by_weight,
        "timestamp": r.timestamp.isoformat(),
        "submitted_by": r.submitted_by,
        "amended_by": r.amended_by,
    }


def _counts_json(c) -> dict:
    return {"present": c.present, "late": c.late, "absent": c.absent, "attendance_rate": c.attendance_rate}


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service
    history = container.record_history_service

    def device_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            expected = current_app.config.get("DEVICE_TOKEN") or ""
            given = request.headers.get("X-Device-Token", "")
            if not expected or not hmac.compare_digest(given, expected):
                return jsonify({"success": False, "message": "Invalid device token"}), 401
            return view(*args, **kwargs)

        return wrapper

    def _body() -> dict:
        return request.get_json(silent=True) or {}

    def _timestamp(data: dict):
        raw = data.get("timestamp")
        if not raw:
            return container.clock()
        try:
            return parse_iso_datetime(str(raw))
        except ValueError:
            raise ValidationError("Invalid timestamp (ISO-8601 expected)")

    @app.errorhandler(ValidationError)
    def _validation_error(e):
        status = 409 if isinstance(e, NoActiveSession) else 400
        return jsonify({"success": False, "message": str(e)}), status

    @app.errorhandler(DuplicateSubmission)
    def _duplicate(e):
        return (
            jsonify(
                {
                    "success": False,
                    "confirm_required": True,
                    "existing_count": e.existing_count,
                    "message": str(e),
                }
            ),
            409,
        )

    @app.errorhandler(RosterUnavailable)
    @app.errorhandler(ScheduleUnavailable)
    @app.errorhandler(WriteFailure)
    def _unavailable(e):
        logger.error("%s: %s", type(e).__name__, e)
        return jsonify({"success": False, "message": str(e)}), 503

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    @app.route("/api/session/refresh", methods=["POST"], endpoint="session_refresh")
    def session_refresh():
        data = _body()
        session = service.refresh(str(data.get("instructor_id") or ""))
        return jsonify({"success": True, "session": _session_json(session)})

    @app.route("/api/session", methods=["GET"], endpoint="session_current")
    def session_current():
        return jsonify({"session": _session_json(service.current_session)})

    @app.route("/api/session/end", methods=["POST"], endpoint="session_end")
    def session_end():
        service.end_session()
        return jsonify({"success": True})

    # ===== DEVICE ENDPOINTS =====

    @app.route("/api/devices/tap", methods=["POST"], endpoint="device_tap")
    @device_required
    def device_tap():
        data = _body()
        accepted = service.ingest_tap(
            timestamp=_timestamp(data),
            student_id=data.get("student_id"),
            rfid_uid=data.get("rfid_uid"),
        )
        return jsonify({"success": True, "accepted": accepted}), 202

    @app.route("/api/devices/weight", methods=["POST"], endpoint="device_weight")
    @device_required
    def device_weight():
        data = _body()
        if data.get("weight") is None:
            raise ValidationError("Weight is required")
        accepted = service.ingest_weight(
            sensor_id=str(data.get("sensor_id") or ""),
            weight=data.get("weight"),
            timestamp=_timestamp(data),
        )
        return jsonify({"success": True, "accepted": accepted}), 202

    # ===== INSTRUCTOR ENDPOINTS =====

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_live")
    def attendance_live():
        rows = service.rows(
            query=request.args.get("q", ""),
            status=request.args.get("status") or None,
            sort_by=request.args.get("sort", "name"),
            descending=request.args.get("order", "asc") == "desc",
        )
        return jsonify({"session": _session_json(service.current_session), "students": rows})

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    def attendance_stats():
        return jsonify(service.stats().as_dict())

    @app.route("/api/attendance/<student_id>/override", methods=["POST"], endpoint="attendance_override")
    def attendance_override(student_id: str):
        data = _body()
        changed = service.override(student_id, str(data.get("status") or ""), actor=str(data.get("instructor_id") or ""))
        return jsonify({"success": True, "changed": changed})

    @app.route("/api/attendance/<student_id>/sensor", methods=["POST"], endpoint="attendance_assign_sensor")
    def attendance_assign_sensor(student_id: str):
        data = _body()
        binding = service.assign_sensor(student_id, str(data.get("sensor_id") or ""))
        return jsonify({"success": True, "sensor_id": binding.sensor_id, "student_id": binding.student_id})

    @app.route("/api/sensors", methods=["GET"], endpoint="sensors_list")
    def sensors_list():
        return jsonify({"sensors": list(service.available_sensors)})

    @app.route("/api/sensors/<sensor_id>", methods=["DELETE"], endpoint="sensors_release")
    def sensors_release(sensor_id: str):
        return jsonify({"success": True, "released": service.release_sensor(sensor_id)})

    @app.route("/api/attendance/submit", methods=["POST"], endpoint="attendance_submit")
    def attendance_submit():
        data = _body()
        result = service.submit(
            submitted_by=str(data.get("instructor_id") or ""),
            overwrite=bool(data.get("overwrite", False)),
        )
        return jsonify(
            {
                "success": True,
                "session_id": result.session_id,
                "written": result.written,
                "replaced": result.replaced,
            }
        )

    # ===== HISTORY =====

    def _date_arg(name: str, default: date) -> date:
        raw = request.args.get(name)
        if not raw:
            return default
        try:
            return parse_iso_date(raw)
        except ValueError:
            raise ValidationError(f"Invalid {name} date (YYYY-MM-DD expected)")

    @app.route("/api/records", methods=["GET"], endpoint="records_list")
    def records_list():
        today = date.today()
        start = _date_arg("start", today - timedelta(days=7))
        end = _date_arg("end", today)
        records = history.list_records(
            start=start,
            end=end,
            subject_code=request.args.get("subject") or None,
            section_name=request.args.get("section") or None,
            student_id=request.args.get("student_id") or None,
        )
        return jsonify({"records": [_record_json(r) for r in records]})

    @app.route("/api/records/summary", methods=["GET"], endpoint="records_summary")
    def records_summary():
        summary = history.summary(
            today=date.today(),
            subject_code=request.args.get("subject") or None,
            section_name=request.args.get("section") or None,
        )
        return jsonify({"weekly": _counts_json(summary.weekly), "monthly": _counts_json(summary.monthly)})

    @app.route("/api/records/<int:record_id>", methods=["PATCH"], endpoint="records_amend")
    def records_amend(record_id: int):
        data = _body()
        try:
            status = RecordStatus(str(data.get("status") or ""))
        except ValueError:
            raise ValidationError("Status must be present, late or absent")
        record = history.amend_status(
            record_id=record_id,
            new_status=status,
            actor=str(data.get("instructor_id") or ""),
            now=container.clock(),
            confirm=bool(data.get("confirm", False)),
        )
        return jsonify({"success": True, "record": _record_json(record)})

    @app.route("/api/records/<int:record_id>", methods=["DELETE"], endpoint="records_delete")
    def records_delete(record_id: int):
        data = _body()
        history.delete_record(
            record_id=record_id,
            actor=str(data.get("instructor_id") or ""),
            confirm=bool(data.get("confirm", False)),
        )
        return jsonify({"success": True})
