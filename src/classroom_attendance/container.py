from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.commit import CommitService
from .attendance.factory import ClassificationStrategyFactory
from .attendance.history import RecordHistoryService
from .attendance.model import GraceConfig
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import Clock, now_local
from .core.constants import (
    DEFAULT_AVAILABLE_SENSORS,
    DEFAULT_FEED_MAX_RETRIES,
    DEFAULT_FEED_RETRY_BACKOFF_SECONDS,
    DEFAULT_TICK_SECONDS,
)
from .database.connection import DBConfig, DatabaseConnection
from .events.channel import EventChannel
from .events.mysql_device_feed import MySQLDeviceFeed
from .roster.mysql_roster_repository import MySQLRosterRepository
from .roster.service import RosterLoader
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.service import SessionContextService
from .sensors.registry import SensorBindingRegistry


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    clock: Clock

    schedules_repo: MySQLScheduleRepository
    roster_repo: MySQLRosterRepository
    records_repo: MySQLAttendanceRepository

    channel: EventChannel
    bindings: SensorBindingRegistry

    session_service: SessionContextService
    roster_loader: RosterLoader
    commit_service: CommitService
    attendance_service: AttendanceService
    record_history_service: RecordHistoryService


def build_container(*, db_config: dict, settings=None, clock: Optional[Clock] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    clock = clock or now_local
    grace = GraceConfig.from_settings(settings)

    schedules_repo = MySQLScheduleRepository(conn)
    roster_repo = MySQLRosterRepository(conn)
    records_repo = MySQLAttendanceRepository(conn)

    channel = EventChannel()
    bindings = SensorBindingRegistry()

    session_service = SessionContextService(schedules_repo)
    roster_loader = RosterLoader(roster_repo)
    commit_service = CommitService(records_repo)

    use_feed = bool(getattr(settings, "DEVICE_FEED_ENABLED", False))
    attendance_service = AttendanceService(
        session_service,
        roster_loader,
        channel,
        commit_service,
        config=grace,
        bindings=bindings,
        strategy_factory=ClassificationStrategyFactory(),
        clock=clock,
        tick_seconds=float(getattr(settings, "TICK_SECONDS", DEFAULT_TICK_SECONDS)),
        autostart=bool(getattr(settings, "AUTOSTART_LOOP", True)),
        feed=MySQLDeviceFeed(conn) if use_feed else None,
        feed_max_retries=int(getattr(settings, "FEED_MAX_RETRIES", DEFAULT_FEED_MAX_RETRIES)),
        feed_backoff_seconds=float(getattr(settings, "FEED_RETRY_BACKOFF_SECONDS", DEFAULT_FEED_RETRY_BACKOFF_SECONDS)),
        available_sensors=tuple(getattr(settings, "AVAILABLE_SENSORS", DEFAULT_AVAILABLE_SENSORS)),
    )
    record_history_service = RecordHistoryService(records_repo)

    return Container(
        conn=conn,
        clock=clock,
        schedules_repo=schedules_repo,
        roster_repo=roster_repo,
        records_repo=records_repo,
        channel=channel,
        bindings=bindings,
        session_service=session_service,
        roster_loader=roster_loader,
        commit_service=commit_service,
        attendance_service=attendance_service,
        record_history_service=record_history_service,
    )
