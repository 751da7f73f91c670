from __future__ import annotations

import io

from flask import Flask, send_file

from ..common.responses import error_response, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    directory = container.directory_service

    @app.route("/api/students/<int:student_id>/qr.png", methods=["GET"], endpoint="api_student_qr_image")
    def api_student_qr_image(student_id: int):
        """Printable QR badge for one student."""
        try:
            png = directory.render_qr_png(student_id)
            return send_file(io.BytesIO(png), mimetype="image/png")
        except Exception as e:
            return error_response(e)

    @app.route("/api/students/<int:student_id>/qr/regenerate", methods=["POST"], endpoint="api_student_qr_regenerate")
    def api_student_qr_regenerate(student_id: int):
        try:
            student = directory.regenerate_token(student_id)
            return ok(student_id=student.student_id, qr_token=student.qr_token)
        except Exception as e:
            return error_response(e)
