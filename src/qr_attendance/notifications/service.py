from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_NOTIFY_DELAY_SECONDS
from ..core.enums import NotificationStatus
from ..core.exceptions import NotFoundError, TransportError
from ..students.service import StudentDirectoryService
from .model import DrainResult, Notification
from .repository import NotificationRepository
from .transport import MessageTransport

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Durable guardian-message queue plus its single delivery worker.

    Deliveries are strictly sequential with a fixed pause between attempts.
    Only one drain runs at a time across all workers: a drain that finds the
    queue lock taken returns without sending anything.
    """

    def __init__(
        self,
        notifications: NotificationRepository,
        directory: StudentDirectoryService,
        transport: MessageTransport,
        *,
        delay_seconds: float = DEFAULT_NOTIFY_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = now_local,
    ):
        self._notifications = notifications
        self._directory = directory
        self._transport = transport
        self._delay_seconds = max(0.0, float(delay_seconds))
        self._sleep = sleep
        self._clock = clock

    def enqueue(self, student_id: int, message: str, *, destination: Optional[str] = None) -> Notification:
        message = require_non_empty(message, "message")
        if destination is None:
            destination = self._directory.guardian_contact(int(student_id))

        notification = self._notifications.create(
            student_id=int(student_id),
            message=message,
            destination=destination,
            created_at=self._clock(),
        )
        logger.debug(f"Queued notification {notification.notification_id} for student {student_id}")
        return notification

    def drain_queue(self) -> DrainResult:
        """Deliver every PENDING notification once; SENT/FAILED rows are never touched."""
        with self._notifications.drain_lock() as acquired:
            if not acquired:
                logger.info("Notification drain skipped: another drain is running")
                return DrainResult(processed=0)

            pending = self._notifications.list_by_status(NotificationStatus.PENDING)
            processed = 0
            failed = 0

            for index, notification in enumerate(pending):
                if index > 0 and self._delay_seconds:
                    self._sleep(self._delay_seconds)

                if self._attempt(notification):
                    if self._notifications.transition(
                        notification_id=notification.notification_id,
                        expected=NotificationStatus.PENDING,
                        new_status=NotificationStatus.SENT,
                        sent_at=self._clock(),
                    ):
                        processed += 1
                elif self._notifications.transition(
                    notification_id=notification.notification_id,
                    expected=NotificationStatus.PENDING,
                    new_status=NotificationStatus.FAILED,
                ):
                    failed += 1

            if pending:
                logger.info(f"Notification drain finished: sent={processed} failed={failed} of {len(pending)}")
            return DrainResult(processed=processed, failed=failed)

    def retry(self, notification_id: int) -> Notification:
        """Re-send one FAILED notification.

        Only FAILED records are eligible; PENDING, SENT, RETRYING and unknown
        ids all raise NotFoundError. The record ends as SENT or FAILED, even
        when the transport raises (the error is re-raised as TransportError
        after the record is put back to FAILED).
        """
        notification = self._notifications.get_by_id(int(notification_id))
        if not notification or notification.status != NotificationStatus.FAILED:
            raise NotFoundError(f"Failed notification with ID {notification_id} not found")

        if not self._notifications.transition(
            notification_id=notification.notification_id,
            expected=NotificationStatus.FAILED,
            new_status=NotificationStatus.RETRYING,
        ):
            raise NotFoundError(f"Failed notification with ID {notification_id} not found")

        try:
            delivered = self._transport.send(notification.destination, notification.message)
        except TransportError:
            self._mark_retry_failed(notification.notification_id)
            raise
        except Exception as e:
            self._mark_retry_failed(notification.notification_id)
            raise TransportError(f"Retry of notification {notification_id} failed: {e}") from e

        if delivered:
            self._notifications.transition(
                notification_id=notification.notification_id,
                expected=NotificationStatus.RETRYING,
                new_status=NotificationStatus.SENT,
                sent_at=self._clock(),
            )
        else:
            self._mark_retry_failed(notification.notification_id)

        updated = self._notifications.get_by_id(notification.notification_id)
        if not updated:
            raise NotFoundError(f"Notification with ID {notification_id} not found")
        return updated

    def history(self, student_id: Optional[int] = None) -> Sequence[Notification]:
        return self._notifications.list_history(student_id=None if student_id is None else int(student_id))

    def _attempt(self, notification: Notification) -> bool:
        try:
            return bool(self._transport.send(notification.destination, notification.message))
        except Exception as e:
            logger.warning(f"Failed to send notification {notification.notification_id}: {e}")
            return False

    def _mark_retry_failed(self, notification_id: int) -> None:
        self._notifications.transition(
            notification_id=notification_id,
            expected=NotificationStatus.RETRYING,
            new_status=NotificationStatus.FAILED,
        )
        logger.warning(f"Retry of notification {notification_id} failed")
