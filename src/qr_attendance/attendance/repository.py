from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceFilter, AttendanceRecord


class AttendanceRepository(Protocol):
    """Attendance ledger storage.

    The mark_* methods are conditional writes: they return False when the row
    is no longer in the state the caller observed. Listings are ordered by
    work_date DESC, student_id ASC.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_student_and_date(self, student_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def insert_check_in(self, *, student_id: int, work_date: date, check_in_time: datetime) -> AttendanceRecord:
        """Create the day's row as PRESENT. Raises ConflictingWriteError if it already exists."""

        raise NotImplementedError

    def mark_check_in(self, *, attendance_id: int, check_in_time: datetime) -> bool:
        raise NotImplementedError

    def mark_check_out(self, *, attendance_id: int, check_out_time: datetime) -> bool:
        raise NotImplementedError

    def admin_update_record(
        self,
        *,
        attendance_id: int,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> bool:
        """Admin-only override; bypasses the scan state machine."""

        raise NotImplementedError

    def list_by_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_by_student(
        self,
        student_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_by_filter(self, flt: AttendanceFilter) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
