from __future__ import annotations

from datetime import datetime
from typing import ContextManager, Optional, Protocol, Sequence

from ..core.enums import NotificationStatus
from .model import Notification


class NotificationRepository(Protocol):
    def create(self, *, student_id: int, message: str, destination: str, created_at: datetime) -> Notification:
        """Insert a PENDING notification."""

        raise NotImplementedError

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        raise NotImplementedError

    def list_by_status(self, status: NotificationStatus) -> Sequence[Notification]:
        raise NotImplementedError

    def list_history(self, *, student_id: Optional[int] = None) -> Sequence[Notification]:
        raise NotImplementedError

    def transition(
        self,
        *,
        notification_id: int,
        expected: NotificationStatus,
        new_status: NotificationStatus,
        sent_at: Optional[datetime] = None,
    ) -> bool:
        """Compare-and-set on status; False when the row is not in `expected`."""

        raise NotImplementedError

    def drain_lock(self) -> ContextManager[bool]:
        """Queue-wide exclusive lock for one drain; yields False if another drainer holds it."""

        raise NotImplementedError
