from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictingWriteError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceFilter, AttendanceRecord
from .repository import AttendanceRepository

_SELECT = """
    SELECT ar.attendance_id, ar.student_id, ar.work_date, ar.check_in_time, ar.check_out_time, ar.status, ar.note
    FROM attendance_records ar
"""
_ORDER = "ORDER BY ar.work_date DESC, ar.student_id ASC"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        student_id=int(r["student_id"]),
        work_date=r["work_date"],
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        status=AttendanceStatus(r["status"]),
        note=r.get("note"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE ar.attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_student_and_date(self, student_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE ar.student_id=%s AND ar.work_date=%s",
                (int(student_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def insert_check_in(self, *, student_id: int, work_date: date, check_in_time: datetime) -> AttendanceRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(student_id, work_date, check_in_time, status)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (int(student_id), work_date, check_in_time, AttendanceStatus.PRESENT.value),
                )
                attendance_id = int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise ConflictingWriteError(
                    f"Attendance for student {student_id} on {work_date} was created concurrently"
                ) from e
            raise

        return AttendanceRecord(
            attendance_id=attendance_id,
            student_id=int(student_id),
            work_date=work_date,
            check_in_time=check_in_time,
            check_out_time=None,
            status=AttendanceStatus.PRESENT,
        )

    def mark_check_in(self, *, attendance_id: int, check_in_time: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_in_time=%s, status=%s
                WHERE attendance_id=%s AND check_in_time IS NULL
                """,
                (check_in_time, AttendanceStatus.PRESENT.value, int(attendance_id)),
            )
            return cur.rowcount > 0

    def mark_check_out(self, *, attendance_id: int, check_out_time: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s, status=%s
                WHERE attendance_id=%s
                  AND check_in_time IS NOT NULL
                  AND check_out_time IS NULL
                  AND check_in_time <= %s
                """,
                (check_out_time, AttendanceStatus.CHECKED_OUT.value, int(attendance_id), check_out_time),
            )
            return cur.rowcount > 0

    def admin_update_record(
        self,
        *,
        attendance_id: int,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_in_time=%s, check_out_time=%s, status=%s, note=%s
                WHERE attendance_id=%s
                """,
                (check_in_time, check_out_time, status.value, note, int(attendance_id)),
            )
            return cur.rowcount > 0

    def list_by_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE ar.work_date=%s {_ORDER}", (work_date,))
            return [_to_record(r) for r in fetchall(cur)]

    def list_by_student(
        self,
        student_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        return self.list_by_filter(AttendanceFilter(student_id=student_id, start_date=start_date, end_date=end_date))

    def list_by_filter(self, flt: AttendanceFilter) -> Sequence[AttendanceRecord]:
        joins = ""
        clauses: list[str] = []
        params: list[object] = []

        if flt.student_id is not None:
            clauses.append("ar.student_id=%s")
            params.append(int(flt.student_id))
        if flt.class_id is not None:
            # Class lives on the roster, not on the ledger row.
            joins = "JOIN students s ON s.student_id = ar.student_id"
            clauses.append("s.class_id=%s")
            params.append(int(flt.class_id))
        if flt.start_date is not None:
            clauses.append("ar.work_date >= %s")
            params.append(flt.start_date)
        if flt.end_date is not None:
            clauses.append("ar.work_date <= %s")
            params.append(flt.end_date)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} {joins} {where} {_ORDER}", tuple(params))
            return [_to_record(r) for r in fetchall(cur)]
