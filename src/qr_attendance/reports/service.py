from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date

from ..attendance.repository import AttendanceRepository
from ..core.constants import DEFAULT_LATE_THRESHOLD_HOUR
from ..core.enums import AttendanceStatus
from ..students.service import StudentDirectoryService

_ATTENDED = (AttendanceStatus.PRESENT, AttendanceStatus.CHECKED_OUT)


@dataclass(frozen=True)
class DailySummary:
    total_students: int
    present: int
    absent: int
    late: int

    def to_dict(self) -> dict:
        return asdict(self)


class DailySummaryService:
    """Point-in-time present/late/absent counts for one day.

    Lateness is derived here from the check-in hour; the ledger never stores it.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        directory: StudentDirectoryService,
        *,
        late_threshold_hour: int = DEFAULT_LATE_THRESHOLD_HOUR,
    ):
        self._attendance = attendance
        self._directory = directory
        self._late_threshold_hour = int(late_threshold_hour)

    def summarize(self, day: date) -> DailySummary:
        total = len(self._directory.roster())

        present = 0
        late = 0
        for r in self._attendance.list_by_date(day):
            if r.status not in _ATTENDED:
                continue
            if r.check_in_time is not None and r.check_in_time.hour >= self._late_threshold_hour:
                late += 1
            else:
                present += 1

        return DailySummary(
            total_students=total,
            present=present,
            absent=max(0, total - present - late),
            late=late,
        )
