from __future__ import annotations

from flask import Flask, request

from ..common.responses import error_response, ok
from ..common.validators import require_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    dispatcher = container.notification_dispatcher

    @app.route("/api/notifications", methods=["POST"], endpoint="api_notification_enqueue")
    def api_notification_enqueue():
        try:
            data = request.get_json(silent=True) or {}
            notification = dispatcher.enqueue(
                require_int(data.get("student_id"), "student_id"),
                str(data.get("message", "")),
            )
            return ok(201, notification=notification.to_dict())
        except Exception as e:
            return error_response(e)

    @app.route("/api/notifications", methods=["GET"], endpoint="api_notification_history")
    def api_notification_history():
        try:
            raw = request.args.get("student_id")
            student_id = require_int(raw, "student_id") if raw else None
            rows = dispatcher.history(student_id)
            return ok(notifications=[n.to_dict() for n in rows])
        except Exception as e:
            return error_response(e)

    @app.route("/api/notifications/drain", methods=["POST"], endpoint="api_notification_drain")
    def api_notification_drain():
        try:
            result = dispatcher.drain_queue()
            return ok(processed=result.processed, failed=result.failed)
        except Exception as e:
            return error_response(e)

    @app.route("/api/notifications/<int:notification_id>/retry", methods=["POST"], endpoint="api_notification_retry")
    def api_notification_retry(notification_id: int):
        try:
            notification = dispatcher.retry(notification_id)
            return ok(notification=notification.to_dict())
        except Exception as e:
            return error_response(e)
