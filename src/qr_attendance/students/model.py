from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Student:
    """Thực thể miền (domain): Học sinh.

    Read-only for the attendance core; owned by the school directory.
    """

    student_id: int
    student_number: str
    full_name: str
    class_id: int
    guardian_contact: str
    qr_token: str
