from __future__ import annotations

from enum import Enum


class ScanType(str, Enum):
    """Loại quét QR tại cổng trường."""

    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"


class AttendanceStatus(str, Enum):
    """Trạng thái điểm danh lưu trong CSDL.

    LATE is only ever written by the admin amendment path; scans store
    PRESENT / CHECKED_OUT and lateness is derived at summary time.
    """

    ABSENT = "absent"
    PRESENT = "present"
    LATE = "late"
    CHECKED_OUT = "checked_out"


class NotificationStatus(str, Enum):
    """Trạng thái hàng đợi tin nhắn gửi phụ huynh."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    RETRYING = "retrying"
