from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService, ScanService
from .common.datetime_utils import now_local
from .core.constants import (
    DEFAULT_LATE_THRESHOLD_HOUR,
    DEFAULT_NOTIFY_DELAY_SECONDS,
    DEFAULT_SCAN_CONFLICT_RETRIES,
    DEFAULT_TRANSPORT_TIMEOUT_SECONDS,
)
from .database.connection import DatabaseConnection, DBConfig
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationDispatcher
from .notifications.transport import MessageTransport, build_transport
from .reports.service import DailySummaryService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import StudentDirectoryService


@dataclass(frozen=True)
class Container:
    students_repo: StudentRepository
    attendance_repo: AttendanceRepository
    notifications_repo: NotificationRepository

    directory_service: StudentDirectoryService
    attendance_service: AttendanceService
    scan_service: ScanService
    notification_dispatcher: NotificationDispatcher
    summary_service: DailySummaryService


def wire_services(
    *,
    students_repo: StudentRepository,
    attendance_repo: AttendanceRepository,
    notifications_repo: NotificationRepository,
    transport: MessageTransport,
    settings: Mapping[str, Any] | None = None,
    clock: Optional[Callable[[], datetime]] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> Container:
    """Build services over any repository implementations (MySQL or in-memory)."""
    settings = settings or {}
    clock = clock or now_local
    sleep = sleep or time.sleep

    directory_service = StudentDirectoryService(students_repo)
    notification_dispatcher = NotificationDispatcher(
        notifications_repo,
        directory_service,
        transport,
        delay_seconds=float(settings.get("NOTIFY_DELAY_SECONDS", DEFAULT_NOTIFY_DELAY_SECONDS)),
        sleep=sleep,
        clock=clock,
    )
    scan_service = ScanService(
        attendance_repo,
        directory_service,
        notification_dispatcher,
        conflict_retries=int(settings.get("SCAN_CONFLICT_RETRIES", DEFAULT_SCAN_CONFLICT_RETRIES)),
        clock=clock,
    )
    attendance_service = AttendanceService(attendance_repo, directory_service)
    summary_service = DailySummaryService(
        attendance_repo,
        directory_service,
        late_threshold_hour=int(settings.get("LATE_THRESHOLD_HOUR", DEFAULT_LATE_THRESHOLD_HOUR)),
    )

    return Container(
        students_repo=students_repo,
        attendance_repo=attendance_repo,
        notifications_repo=notifications_repo,
        directory_service=directory_service,
        attendance_service=attendance_service,
        scan_service=scan_service,
        notification_dispatcher=notification_dispatcher,
        summary_service=summary_service,
    )


def build_container(*, db_config: dict, settings: Mapping[str, Any] | None = None) -> Container:
    settings = settings or {}
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    transport = build_transport(
        webhook_url=str(settings.get("WHATSAPP_WEBHOOK_URL", "") or ""),
        timeout=float(settings.get("TRANSPORT_TIMEOUT_SECONDS", DEFAULT_TRANSPORT_TIMEOUT_SECONDS)),
    )

    return wire_services(
        students_repo=MySQLStudentRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
        transport=transport,
        settings=settings,
    )
