from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_iso_date
from ..common.responses import error_response, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/summary/<date_str>", methods=["GET"], endpoint="api_attendance_summary")
    def api_attendance_summary(date_str: str):
        try:
            summary = container.summary_service.summarize(parse_iso_date(date_str))
            return ok(summary=summary.to_dict())
        except Exception as e:
            return error_response(e)
