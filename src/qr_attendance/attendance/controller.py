from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date, parse_optional_date, parse_optional_datetime
from ..common.responses import error_response, ok
from ..common.validators import require_int
from ..container import Container
from ..core.exceptions import ValidationError
from .model import AttendanceFilter


def register(app: Flask, container: Container) -> None:
    @app.route("/api/scan", methods=["POST"], endpoint="api_scan")
    def api_scan():
        """Kiosk endpoint: {"token": "...", "scan_type": "check_in" | "check_out"}."""
        try:
            data = request.get_json(silent=True) or {}
            record = container.scan_service.process_scan(
                str(data.get("token", "")).strip(),
                data.get("scan_type", ""),
            )
            return ok(record=record.to_dict())
        except Exception as e:
            return error_response(e)

    @app.route("/api/scan/image", methods=["POST"], endpoint="api_scan_image")
    def api_scan_image():
        """Accept an uploaded photo of a QR code and apply it as a scan."""
        try:
            if "image" not in request.files:
                raise ValidationError("Missing image file")
            record = container.scan_service.process_scan_image(
                request.files["image"].stream,
                request.form.get("scan_type", ""),
            )
            return ok(record=record.to_dict())
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/date/<date_str>", methods=["GET"], endpoint="api_attendance_by_date")
    def api_attendance_by_date(date_str: str):
        try:
            rows = container.attendance_service.list_by_date(parse_iso_date(date_str))
            return ok(records=[r.to_dict() for r in rows])
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/student/<int:student_id>", methods=["GET"], endpoint="api_attendance_by_student")
    def api_attendance_by_student(student_id: int):
        try:
            rows = container.attendance_service.list_by_student(
                student_id,
                start_date=parse_optional_date(request.args.get("start_date")),
                end_date=parse_optional_date(request.args.get("end_date")),
            )
            return ok(records=[r.to_dict() for r in rows])
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/report", methods=["GET"], endpoint="api_attendance_report")
    def api_attendance_report():
        try:
            args = request.args
            flt = AttendanceFilter(
                student_id=require_int(args["student_id"], "student_id") if args.get("student_id") else None,
                class_id=require_int(args["class_id"], "class_id") if args.get("class_id") else None,
                start_date=parse_optional_date(args.get("start_date")),
                end_date=parse_optional_date(args.get("end_date")),
            )
            rows = container.attendance_service.report(flt)
            return ok(records=[r.to_dict() for r in rows])
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/<int:attendance_id>", methods=["PATCH"], endpoint="api_attendance_amend")
    def api_attendance_amend(attendance_id: int):
        try:
            data = request.get_json(silent=True) or {}
            changes = {}
            if "check_in_time" in data:
                changes["check_in_time"] = parse_optional_datetime(data["check_in_time"])
            if "check_out_time" in data:
                changes["check_out_time"] = parse_optional_datetime(data["check_out_time"])
            if "status" in data:
                changes["status"] = data["status"]
            if "note" in data:
                changes["note"] = data["note"]

            record = container.attendance_service.amend_record(attendance_id, **changes)
            return ok(record=record.to_dict())
        except Exception as e:
            return error_response(e)

