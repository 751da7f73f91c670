from __future__ import annotations

import io
from datetime import datetime

import pytest

from qr_attendance.main import create_app


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.get_json() == {"status": "ok"}


def test_scan_check_in_then_duplicate_conflicts(client):
    res = client.post("/api/scan", json={"token": "QR001", "scan_type": "check_in"})
    assert res.status_code == 200
    body = res.get_json()
    assert body["success"] is True
    assert body["record"]["status"] == "present"
    assert body["record"]["check_in_time"] == "2025-01-06T07:45:00"

    res = client.post("/api/scan", json={"token": "QR001", "scan_type": "check_in"})
    assert res.status_code == 409
    body = res.get_json()
    assert body["success"] is False
    assert body["current_state"] == "present"
    assert body["requested"] == "check_in"


def test_scan_unknown_token_is_404(client):
    res = client.post("/api/scan", json={"token": "QR999", "scan_type": "check_in"})
    assert res.status_code == 404
    assert res.get_json()["success"] is False


def test_scan_bad_scan_type_is_400(client):
    res = client.post("/api/scan", json={"token": "QR001", "scan_type": "teleport"})
    assert res.status_code == 400


def test_scan_image_requires_file(client):
    res = client.post("/api/scan/image", data={"scan_type": "check_in"})
    assert res.status_code == 400
    assert res.get_json()["message"] == "Missing image file"


def test_scan_image_rejects_non_image(client):
    pytest.importorskip("pyzbar.pyzbar")

    res = client.post(
        "/api/scan/image",
        data={"scan_type": "check_in", "image": (io.BytesIO(b"not an image"), "badge.png")},
        content_type="multipart/form-data",
    )
    assert res.status_code == 400


def test_attendance_by_date_and_summary(client, clock):
    client.post("/api/scan", json={"token": "QR001", "scan_type": "check_in"})
    clock.now = datetime(2025, 1, 6, 8, 30)
    client.post("/api/scan", json={"token": "QR002", "scan_type": "check_in"})

    res = client.get("/api/attendance/date/2025-01-06")
    assert res.status_code == 200
    assert [r["student_id"] for r in res.get_json()["records"]] == [1, 2]

    res = client.get("/api/attendance/summary/2025-01-06")
    assert res.status_code == 200
    assert res.get_json()["summary"] == {"total_students": 3, "present": 1, "absent": 1, "late": 1}


def test_bad_date_is_400(client):
    assert client.get("/api/attendance/date/06-01-2025").status_code == 400
    assert client.get("/api/attendance/summary/yesterday").status_code == 400


def test_attendance_by_student_unknown_is_404(client):
    assert client.get("/api/attendance/student/77").status_code == 404


def test_attendance_report_with_filters(client):
    client.post("/api/scan", json={"token": "QR003", "scan_type": "check_in"})

    res = client.get("/api/attendance/report?class_id=2&start_date=2025-01-01&end_date=2025-01-31")
    assert res.status_code == 200
    assert [r["student_id"] for r in res.get_json()["records"]] == [3]

    assert client.get("/api/attendance/report?class_id=abc").status_code == 400


def test_amend_attendance(client):
    rec = client.post("/api/scan", json={"token": "QR001", "scan_type": "check_in"}).get_json()["record"]

    res = client.patch(
        f"/api/attendance/{rec['id']}",
        json={"check_out_time": "2025-01-06T11:00:00", "status": "checked_out", "note": "sick"},
    )
    assert res.status_code == 200
    assert res.get_json()["record"]["note"] == "sick"

    res = client.patch(f"/api/attendance/{rec['id']}", json={"check_out_time": "2025-01-06T06:00:00"})
    assert res.status_code == 400
    assert client.patch("/api/attendance/9999", json={"note": "x"}).status_code == 404


def test_notifications_flow(client, transport):
    res = client.post("/api/notifications", json={"student_id": 1, "message": "School closes early today"})
    assert res.status_code == 201
    notification_id = res.get_json()["notification"]["id"]

    transport.outcomes = [False]
    res = client.post("/api/notifications/drain")
    assert res.get_json() == {"success": True, "processed": 0, "failed": 1}

    res = client.post(f"/api/notifications/{notification_id}/retry")
    assert res.status_code == 200
    assert res.get_json()["notification"]["status"] == "sent"

    res = client.post(f"/api/notifications/{notification_id}/retry")
    assert res.status_code == 404

    res = client.get("/api/notifications?student_id=1")
    assert [n["status"] for n in res.get_json()["notifications"]] == ["sent"]


def test_notification_retry_transport_error_is_502(client, transport):
    notification_id = client.post("/api/notifications", json={"student_id": 1, "message": "x"}).get_json()[
        "notification"
    ]["id"]
    transport.outcomes = [False, OSError("gateway reset")]
    client.post("/api/notifications/drain")

    res = client.post(f"/api/notifications/{notification_id}/retry")
    assert res.status_code == 502


def test_enqueue_validation(client):
    assert client.post("/api/notifications", json={"student_id": "x", "message": "hi"}).status_code == 400
    assert client.post("/api/notifications", json={"student_id": 1, "message": ""}).status_code == 400
    assert client.post("/api/notifications", json={"student_id": 50, "message": "hi"}).status_code == 404


def test_student_qr_endpoints(client):
    res = client.get("/api/students/1/qr.png")
    assert res.status_code == 200
    assert res.mimetype == "image/png"
    assert res.data.startswith(b"\x89PNG")

    res = client.post("/api/students/1/qr/regenerate")
    assert res.status_code == 200
    assert res.get_json()["qr_token"].startswith("QR-")

    assert client.get("/api/students/99/qr.png").status_code == 404


def test_drain_cli_command(app, container):
    container.notification_dispatcher.enqueue(1, "hello")

    result = app.test_cli_runner().invoke(args=["drain-notifications"])

    assert result.exit_code == 0
    assert "sent=1 failed=0" in result.output


def test_unexpected_error_is_500(client, container, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(container.attendance_service, "list_by_date", boom)

    res = client.get("/api/attendance/date/2025-01-06")
    assert res.status_code == 500
    assert res.get_json()["message"] == "Internal server error"


def test_amend_accepts_time_with_utc_offset(client):
    rec = client.post("/api/scan", json={"token": "QR001", "scan_type": "check_in"}).get_json()["record"]
    local_four_pm = datetime(2025, 1, 6, 16, 0).astimezone()

    res = client.patch(f"/api/attendance/{rec['id']}", json={"check_out_time": local_four_pm.isoformat()})

    assert res.status_code == 200
    assert res.get_json()["record"]["check_out_time"] == "2025-01-06T16:00:00"
