from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, BinaryIO, Callable, Optional, Sequence

from PIL import Image, UnidentifiedImageError

from ..common.datetime_utils import now_local, to_naive_local
from ..common.validators import parse_scan_type
from ..core.constants import DEFAULT_SCAN_CONFLICT_RETRIES
from ..core.enums import AttendanceStatus, ScanType
from ..core.exceptions import ConflictingWriteError, InvalidTransitionError, NotFoundError, ValidationError
from ..notifications.service import NotificationDispatcher
from ..students.model import Student
from ..students.service import StudentDirectoryService
from .model import AttendanceFilter, AttendanceRecord
from .repository import AttendanceRepository
from .states import Absent, DayState, Present, day_state, require_transition

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class ScanService:
    """Turns one QR scan into one ledger transition plus one guardian notification."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        directory: StudentDirectoryService,
        dispatcher: NotificationDispatcher,
        *,
        clock: Callable[[], datetime] = now_local,
        conflict_retries: int = DEFAULT_SCAN_CONFLICT_RETRIES,
    ):
        self._attendance = attendance
        self._directory = directory
        self._dispatcher = dispatcher
        self._clock = clock
        self._conflict_retries = max(0, int(conflict_retries))

    def process_scan(self, token: str, scan_type: ScanType | str) -> AttendanceRecord:
        scan_type = parse_scan_type(scan_type.value if isinstance(scan_type, ScanType) else scan_type)

        student = self._directory.resolve_by_token(token)
        if not student:
            raise NotFoundError(f"Student with QR code {token} not found")

        # Ledger times are whole seconds, matching the DATETIME columns.
        now = self._clock().replace(microsecond=0)
        record = self._apply(student.student_id, now.date(), scan_type, now)
        logger.info(f"Student {student.student_id} {scan_type.value} on {record.work_date} -> {record.status.value}")

        self._notify_guardian(student, scan_type, now)
        return record

    def process_scan_image(self, image_stream: BinaryIO, scan_type: ScanType | str) -> AttendanceRecord:
        # pyzbar loads the native zbar library on import; only kiosks uploading photos need it.
        from pyzbar.pyzbar import decode as pyzbar_decode

        try:
            img = Image.open(image_stream).convert("RGB")
        except (UnidentifiedImageError, OSError):
            raise ValidationError("Uploaded file is not a readable image")

        decoded = pyzbar_decode(img)
        if not decoded:
            raise ValidationError("No QR code found in image")

        token = decoded[0].data.decode("utf-8").strip()
        return self.process_scan(token, scan_type)

    def _apply(self, student_id: int, today: date, scan_type: ScanType, now: datetime) -> AttendanceRecord:
        # Writes are conditional on the state we read; on a lost race we
        # re-read, so the loser sees the winner's state and is rejected.
        state: DayState = Absent()
        for _ in range(self._conflict_retries + 1):
            state = day_state(self._attendance.get_for_student_and_date(student_id, today))
            require_transition(state, scan_type)

            try:
                won = self._write(student_id, today, state, now)
            except ConflictingWriteError:
                won = None
            if won is not None:
                return won
            logger.info(f"Concurrent scan for student {student_id} on {today}; re-reading")

        raise InvalidTransitionError(state.name, scan_type.value)

    def _write(self, student_id: int, today: date, state: DayState, now: datetime) -> Optional[AttendanceRecord]:
        if isinstance(state, Absent):
            if state.record is None:
                return self._attendance.insert_check_in(student_id=student_id, work_date=today, check_in_time=now)
            if self._attendance.mark_check_in(attendance_id=state.record.attendance_id, check_in_time=now):
                return replace(state.record, check_in_time=now, status=AttendanceStatus.PRESENT)
            return None

        if isinstance(state, Present):
            check_out = max(now, state.check_in)
            if self._attendance.mark_check_out(attendance_id=state.record.attendance_id, check_out_time=check_out):
                return replace(state.record, check_out_time=check_out, status=AttendanceStatus.CHECKED_OUT)
            return None

        return None

    def _notify_guardian(self, student: Student, scan_type: ScanType, now: datetime) -> None:
        action = "checked in" if scan_type == ScanType.CHECK_IN else "checked out"
        message = f"{student.full_name} has {action} at {now.strftime('%H:%M:%S')}"
        try:
            self._dispatcher.enqueue(student.student_id, message, destination=student.guardian_contact)
        except Exception:
            # Attendance is already committed; the notification is auxiliary.
            logger.exception(f"Attendance recorded but notification could not be queued for student {student.student_id}")


class AttendanceService:
    """Read side of the ledger plus the administrative amendment path."""

    def __init__(self, attendance: AttendanceRepository, directory: StudentDirectoryService):
        self._attendance = attendance
        self._directory = directory

    def get_record(self, student_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_student_and_date(int(student_id), work_date)

    def list_by_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        return self._attendance.list_by_date(work_date)

    def list_by_student(
        self,
        student_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        student = self._directory.get_student(int(student_id))
        _check_range(start_date, end_date)
        return self._attendance.list_by_student(student.student_id, start_date=start_date, end_date=end_date)

    def report(self, flt: AttendanceFilter) -> Sequence[AttendanceRecord]:
        _check_range(flt.start_date, flt.end_date)
        return self._attendance.list_by_filter(flt)

    def amend_record(
        self,
        attendance_id: int,
        *,
        check_in_time: Optional[datetime] = _UNSET,
        check_out_time: Optional[datetime] = _UNSET,
        status: AttendanceStatus | str = _UNSET,
        note: Optional[str] = _UNSET,
    ) -> AttendanceRecord:
        """Admin override of one record; omitted fields keep their current value."""
        rec = self._attendance.get_by_id(int(attendance_id))
        if not rec:
            raise NotFoundError(f"Attendance record with ID {attendance_id} not found")

        new_check_in = rec.check_in_time if check_in_time is _UNSET else to_naive_local(check_in_time)
        new_check_out = rec.check_out_time if check_out_time is _UNSET else to_naive_local(check_out_time)
        new_note = rec.note if note is _UNSET else note
        if status is _UNSET:
            new_status = rec.status
        else:
            try:
                new_status = AttendanceStatus(status)
            except ValueError:
                raise ValidationError(f"Unknown attendance status: {status!r}")

        if new_check_out is not None and new_check_in is None:
            raise ValidationError("Check-out time requires a check-in time")
        if new_check_out is not None and new_check_out < new_check_in:
            raise ValidationError("Check-out time cannot be earlier than check-in time")

        ok = self._attendance.admin_update_record(
            attendance_id=rec.attendance_id,
            check_in_time=new_check_in,
            check_out_time=new_check_out,
            status=new_status,
            note=new_note,
        )
        if not ok:
            raise NotFoundError(f"Attendance record with ID {attendance_id} not found")

        logger.info(f"Attendance record {rec.attendance_id} amended")
        return replace(
            rec,
            check_in_time=new_check_in,
            check_out_time=new_check_out,
            status=new_status,
            note=new_note,
        )


def _check_range(start: Optional[date], end: Optional[date]) -> None:
    if start and end and start > end:
        raise ValidationError("start_date must not be after end_date")
