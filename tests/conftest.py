from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

import pytest

from qr_attendance.attendance.model import AttendanceFilter, AttendanceRecord
from qr_attendance.container import wire_services
from qr_attendance.core.enums import AttendanceStatus, NotificationStatus
from qr_attendance.core.exceptions import ConflictingWriteError
from qr_attendance.notifications.model import Notification
from qr_attendance.students.model import Student


class InMemoryStudents:
    def __init__(self, students: list[Student]):
        self._by_id = {s.student_id: s for s in students}

    def get_by_id(self, student_id: int) -> Optional[Student]:
        return self._by_id.get(student_id)

    def get_by_token(self, qr_token: str) -> Optional[Student]:
        for s in self._by_id.values():
            if s.qr_token == qr_token:
                return s
        return None

    def list_all(self):
        return sorted(self._by_id.values(), key=lambda s: s.full_name)

    def replace_token(self, student_id: int, *, new_token: str) -> bool:
        s = self._by_id.get(student_id)
        if not s:
            return False
        self._by_id[student_id] = replace(s, qr_token=new_token)
        return True


class InMemoryAttendance:
    """Ledger fake with the same conditional-write contract as the MySQL repository."""

    def __init__(self, students: Optional[InMemoryStudents] = None):
        self._students = students
        self._rows: dict[int, AttendanceRecord] = {}
        self._id = 0
        self._lock = threading.RLock()

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        with self._lock:
            self._id = max(self._id, record.attendance_id)
            self._rows[record.attendance_id] = record
        return record

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._rows.get(attendance_id)

    def get_for_student_and_date(self, student_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with self._lock:
            for r in self._rows.values():
                if r.student_id == student_id and r.work_date == work_date:
                    return r
        return None

    def insert_check_in(self, *, student_id: int, work_date: date, check_in_time: datetime) -> AttendanceRecord:
        with self._lock:
            if self.get_for_student_and_date(student_id, work_date):
                raise ConflictingWriteError(f"Attendance for student {student_id} on {work_date} already exists")
            self._id += 1
            rec = AttendanceRecord(
                attendance_id=self._id,
                student_id=student_id,
                work_date=work_date,
                check_in_time=check_in_time,
                check_out_time=None,
                status=AttendanceStatus.PRESENT,
            )
            self._rows[rec.attendance_id] = rec
            return rec

    def mark_check_in(self, *, attendance_id: int, check_in_time: datetime) -> bool:
        with self._lock:
            rec = self._rows.get(attendance_id)
            if not rec or rec.check_in_time is not None:
                return False
            self._rows[attendance_id] = replace(rec, check_in_time=check_in_time, status=AttendanceStatus.PRESENT)
            return True

    def mark_check_out(self, *, attendance_id: int, check_out_time: datetime) -> bool:
        with self._lock:
            rec = self._rows.get(attendance_id)
            if not rec or rec.check_in_time is None or rec.check_out_time is not None:
                return False
            if check_out_time < rec.check_in_time:
                return False
            self._rows[attendance_id] = replace(
                rec, check_out_time=check_out_time, status=AttendanceStatus.CHECKED_OUT
            )
            return True

    def admin_update_record(self, *, attendance_id, check_in_time, check_out_time, status, note=None) -> bool:
        with self._lock:
            rec = self._rows.get(attendance_id)
            if not rec:
                return False
            self._rows[attendance_id] = replace(
                rec, check_in_time=check_in_time, check_out_time=check_out_time, status=status, note=note
            )
            return True

    def list_by_date(self, work_date: date):
        return self._ordered(r for r in list(self._rows.values()) if r.work_date == work_date)

    def list_by_student(self, student_id: int, *, start_date=None, end_date=None):
        return self.list_by_filter(AttendanceFilter(student_id=student_id, start_date=start_date, end_date=end_date))

    def list_by_filter(self, flt: AttendanceFilter):
        def keep(r: AttendanceRecord) -> bool:
            if flt.student_id is not None and r.student_id != flt.student_id:
                return False
            if flt.class_id is not None:
                s = self._students.get_by_id(r.student_id) if self._students else None
                if not s or s.class_id != flt.class_id:
                    return False
            if flt.start_date and r.work_date < flt.start_date:
                return False
            if flt.end_date and r.work_date > flt.end_date:
                return False
            return True

        return self._ordered(r for r in list(self._rows.values()) if keep(r))

    @staticmethod
    def _ordered(rows):
        return sorted(rows, key=lambda r: (-r.work_date.toordinal(), r.student_id))


class InMemoryNotifications:
    def __init__(self):
        self._rows: dict[int, Notification] = {}
        self._id = 0
        self._lock = threading.Lock()
        self._drain = threading.Lock()

    def create(self, *, student_id: int, message: str, destination: str, created_at: datetime) -> Notification:
        with self._lock:
            self._id += 1
            n = Notification(
                notification_id=self._id,
                student_id=student_id,
                message=message,
                destination=destination,
                status=NotificationStatus.PENDING,
                created_at=created_at,
            )
            self._rows[n.notification_id] = n
            return n

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        return self._rows.get(notification_id)

    def list_by_status(self, status: NotificationStatus):
        return [n for n in sorted(self._rows.values(), key=lambda n: n.notification_id) if n.status == status]

    def list_history(self, *, student_id: Optional[int] = None):
        rows = [n for n in self._rows.values() if student_id is None or n.student_id == student_id]
        return sorted(rows, key=lambda n: n.notification_id)

    def transition(self, *, notification_id, expected, new_status, sent_at=None) -> bool:
        with self._lock:
            n = self._rows.get(notification_id)
            if not n or n.status != expected:
                return False
            self._rows[notification_id] = replace(n, status=new_status, sent_at=sent_at or n.sent_at)
            return True

    @contextmanager
    def drain_lock(self):
        acquired = self._drain.acquire(blocking=False)
        try:
            yield acquired
        finally:
            if acquired:
                self._drain.release()


class RecordingTransport:
    """Returns queued outcomes in order (True by default); an Exception outcome is raised."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.sent: list[tuple[str, str]] = []

    def send(self, destination: str, body: str) -> bool:
        self.sent.append((destination, body))
        outcome = self.outcomes.pop(0) if self.outcomes else True
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_student(student_id: int, full_name: str, *, class_id: int = 1, token: Optional[str] = None) -> Student:
    return Student(
        student_id=student_id,
        student_number=f"HS{student_id:03d}",
        full_name=full_name,
        class_id=class_id,
        guardian_contact=f"+8490000000{student_id}",
        qr_token=token or f"QR{student_id:03d}",
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 1, 6, 7, 45, 0)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def students_repo() -> InMemoryStudents:
    return InMemoryStudents(
        [
            make_student(1, "Nguyen Van An", class_id=1),
            make_student(2, "Tran Thi Binh", class_id=1),
            make_student(3, "Le Minh Chau", class_id=2),
        ]
    )


@pytest.fixture
def attendance_repo(students_repo) -> InMemoryAttendance:
    return InMemoryAttendance(students_repo)


@pytest.fixture
def notifications_repo() -> InMemoryNotifications:
    return InMemoryNotifications()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def sleeps() -> list:
    return []


@pytest.fixture
def container(students_repo, attendance_repo, notifications_repo, transport, clock, sleeps):
    return wire_services(
        students_repo=students_repo,
        attendance_repo=attendance_repo,
        notifications_repo=notifications_repo,
        transport=transport,
        settings={"NOTIFY_DELAY_SECONDS": 1.0, "LATE_THRESHOLD_HOUR": 8, "SCAN_CONFLICT_RETRIES": 3},
        clock=clock,
        sleep=sleeps.append,
    )
