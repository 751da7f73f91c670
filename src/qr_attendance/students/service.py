from __future__ import annotations

import io
import logging
import uuid
from typing import Optional, Sequence

import qrcode

from ..core.constants import QR_TOKEN_PREFIX
from ..core.exceptions import NotFoundError, ValidationError
from .model import Student
from .repository import StudentRepository

logger = logging.getLogger(__name__)


class StudentDirectoryService:
    """Lookup operations the attendance core needs from the student directory."""

    def __init__(self, students: StudentRepository):
        self._students = students

    def resolve_by_token(self, token: str) -> Optional[Student]:
        token = (token or "").strip()
        if not token:
            return None
        return self._students.get_by_token(token)

    def get_student(self, student_id: int) -> Student:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError(f"Student {student_id} not found")
        return student

    def exists(self, student_id: int) -> bool:
        return self._students.get_by_id(int(student_id)) is not None

    def roster(self) -> Sequence[Student]:
        return self._students.list_all()

    def guardian_contact(self, student_id: int) -> str:
        return self.get_student(student_id).guardian_contact

    def regenerate_token(self, student_id: int) -> Student:
        student = self.get_student(student_id)
        new_token = f"{QR_TOKEN_PREFIX}{uuid.uuid4()}"
        if not self._students.replace_token(student.student_id, new_token=new_token):
            raise NotFoundError(f"Student {student_id} not found")
        logger.info(f"Regenerated QR token for student {student.student_id}")
        return self.get_student(student.student_id)

    def render_qr_png(self, student_id: int) -> bytes:
        student = self.get_student(student_id)
        if not student.qr_token:
            raise ValidationError(f"Student {student_id} has no QR token")

        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=2,
        )
        qr.add_data(student.qr_token)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()
