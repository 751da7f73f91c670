from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import NotificationStatus


@dataclass(frozen=True)
class Notification:
    """Tin nhắn gửi phụ huynh; giữ lại vĩnh viễn làm nhật ký (audit trail).

    `destination` is the guardian contact copied at creation time, so later
    contact changes do not redirect queued messages.
    """

    notification_id: int
    student_id: int
    message: str
    destination: str
    status: NotificationStatus
    created_at: datetime
    sent_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.notification_id,
            "student_id": self.student_id,
            "message": self.message,
            "destination": self.destination,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
        }


@dataclass(frozen=True)
class DrainResult:
    processed: int
    failed: int = 0
