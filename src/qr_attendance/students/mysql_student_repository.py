from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Student
from .repository import StudentRepository

_COLUMNS = "student_id, student_number, full_name, class_id, guardian_contact, qr_token"


def _to_student(row: dict) -> Student:
    return Student(
        student_id=int(row["student_id"]),
        student_number=row["student_number"],
        full_name=row["full_name"],
        class_id=int(row["class_id"]),
        guardian_contact=row["guardian_contact"],
        qr_token=row["qr_token"],
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s", (int(student_id),))
            row = fetchone(cur)
            return _to_student(row) if row else None

    def get_by_token(self, qr_token: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE qr_token=%s", (qr_token,))
            row = fetchone(cur)
            return _to_student(row) if row else None

    def list_all(self) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students ORDER BY student_id ASC")
            return [_to_student(r) for r in fetchall(cur)]

    def replace_token(self, student_id: int, *, new_token: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE students SET qr_token=%s WHERE student_id=%s",
                (new_token, int(student_id)),
            )
            return cur.rowcount > 0
