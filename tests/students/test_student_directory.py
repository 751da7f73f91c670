from __future__ import annotations

import io

import pytest
from PIL import Image

from qr_attendance.core.enums import ScanType
from qr_attendance.core.exceptions import NotFoundError


def test_resolve_by_token(container):
    directory = container.directory_service

    assert directory.resolve_by_token("QR002").full_name == "Tran Thi Binh"
    assert directory.resolve_by_token("  QR002  ").student_id == 2
    assert directory.resolve_by_token("") is None
    assert directory.resolve_by_token("nope") is None


def test_get_student_and_exists(container):
    directory = container.directory_service

    assert directory.get_student(3).class_id == 2
    assert directory.exists(3) is True
    assert directory.exists(30) is False
    with pytest.raises(NotFoundError):
        directory.get_student(30)


def test_regenerate_token_invalidates_old_badge(container):
    directory = container.directory_service

    student = directory.regenerate_token(1)

    assert student.qr_token.startswith("QR-")
    assert student.qr_token != "QR001"
    assert directory.resolve_by_token("QR001") is None
    assert directory.resolve_by_token(student.qr_token).student_id == 1


def test_scan_with_old_token_after_regeneration_fails(container):
    container.directory_service.regenerate_token(1)

    with pytest.raises(NotFoundError):
        container.scan_service.process_scan("QR001", ScanType.CHECK_IN)


def test_regenerate_unknown_student_raises(container):
    with pytest.raises(NotFoundError):
        container.directory_service.regenerate_token(404)


def test_render_qr_png_returns_image(container):
    png = container.directory_service.render_qr_png(1)

    assert png.startswith(b"\x89PNG")
    img = Image.open(io.BytesIO(png))
    assert img.width == img.height
    assert img.width > 0


def test_decoding_rendered_badge_yields_token(container, fixed_now):
    pytest.importorskip("pyzbar.pyzbar")

    png = container.directory_service.render_qr_png(2)
    rec = container.scan_service.process_scan_image(io.BytesIO(png), "check_in")

    assert rec.student_id == 2
    assert rec.work_date == fixed_now.date()
