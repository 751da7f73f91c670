from __future__ import annotations

from datetime import datetime
from typing import ContextManager, Optional, Sequence

from ..core.enums import NotificationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import advisory_lock, db_cursor, fetchall, fetchone
from .model import Notification
from .repository import NotificationRepository

_SELECT = """
    SELECT notification_id, student_id, message, destination, status, created_at, sent_at
    FROM notifications
"""
_DRAIN_LOCK = "qr_attendance.notification_drain"


def _to_notification(r: dict) -> Notification:
    return Notification(
        notification_id=int(r["notification_id"]),
        student_id=int(r["student_id"]),
        message=r["message"],
        destination=r["destination"],
        status=NotificationStatus(r["status"]),
        created_at=r["created_at"],
        sent_at=r.get("sent_at"),
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, student_id: int, message: str, destination: str, created_at: datetime) -> Notification:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(student_id, message, destination, status, created_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(student_id), message, destination, NotificationStatus.PENDING.value, created_at),
            )
            notification_id = int(cur.lastrowid)

        return Notification(
            notification_id=notification_id,
            student_id=int(student_id),
            message=message,
            destination=destination,
            status=NotificationStatus.PENDING,
            created_at=created_at,
        )

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE notification_id=%s", (int(notification_id),))
            r = fetchone(cur)
            return _to_notification(r) if r else None

    def list_by_status(self, status: NotificationStatus) -> Sequence[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE status=%s ORDER BY notification_id ASC", (status.value,))
            return [_to_notification(r) for r in fetchall(cur)]

    def list_history(self, *, student_id: Optional[int] = None) -> Sequence[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            if student_id is None:
                cur.execute(f"{_SELECT} ORDER BY notification_id ASC")
            else:
                cur.execute(
                    f"{_SELECT} WHERE student_id=%s ORDER BY notification_id ASC",
                    (int(student_id),),
                )
            return [_to_notification(r) for r in fetchall(cur)]

    def transition(
        self,
        *,
        notification_id: int,
        expected: NotificationStatus,
        new_status: NotificationStatus,
        sent_at: Optional[datetime] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE notifications
                SET status=%s, sent_at=COALESCE(%s, sent_at)
                WHERE notification_id=%s AND status=%s AND status <> %s
                """,
                (
                    new_status.value,
                    sent_at,
                    int(notification_id),
                    expected.value,
                    NotificationStatus.SENT.value,
                ),
            )
            return cur.rowcount > 0

    def drain_lock(self) -> ContextManager[bool]:
        return advisory_lock(self._conn_factory, _DRAIN_LOCK)
