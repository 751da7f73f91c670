"""Per student-day state machine.

    ABSENT --check_in--> PRESENT --check_out--> CHECKED_OUT

Every other (state, scan) pair is rejected. ABSENT covers both "no record"
and "record without a check-in", so the record/no-record distinction never
leaks into the status enum.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from ..core.enums import ScanType
from ..core.exceptions import InvalidTransitionError
from .model import AttendanceRecord


@dataclass(frozen=True)
class Absent:
    record: Optional[AttendanceRecord] = None
    name = "absent"


@dataclass(frozen=True)
class Present:
    record: AttendanceRecord
    check_in: datetime
    name = "present"


@dataclass(frozen=True)
class CheckedOut:
    record: AttendanceRecord
    check_in: datetime
    check_out: datetime
    name = "checked_out"


DayState = Union[Absent, Present, CheckedOut]


def day_state(record: Optional[AttendanceRecord]) -> DayState:
    if record is None or record.check_in_time is None:
        return Absent(record)
    if record.check_out_time is None:
        return Present(record, record.check_in_time)
    return CheckedOut(record, record.check_in_time, record.check_out_time)


def require_transition(state: DayState, scan_type: ScanType) -> None:
    """Raise InvalidTransitionError unless `scan_type` is legal from `state`."""
    if isinstance(state, Absent) and scan_type == ScanType.CHECK_IN:
        return
    if isinstance(state, Present) and scan_type == ScanType.CHECK_OUT:
        return
    raise InvalidTransitionError(state.name, scan_type.value)
