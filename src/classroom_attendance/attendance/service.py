from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import Clock, now_local
from ..common.validators import require_non_empty, require_non_negative
from ..core.constants import DEFAULT_AVAILABLE_SENSORS, DEFAULT_TICK_SECONDS
from ..core.enums import RecordStatus
from ..core.exceptions import NoActiveSession, ValidationError
from ..events.channel import EventChannel
from ..events.feed import DeviceFeed, FeedPoller
from ..events.model import TapEvent, WeightEvent
from ..roster.service import RosterLoader
from ..schedules.model import Session
from ..schedules.service import SessionContextService
from ..sensors.registry import SensorBinding, SensorBindingRegistry
from ..stats.service import AttendanceStats, compute_stats
from .commit import CommitService
from .factory import ClassificationStrategyFactory
from .loop import ReconciliationLoop
from .machine import AttendanceStateMachine
from .model import CommitResult, GraceConfig
from .state import Unmarked
from .view import live_rows

logger = logging.getLogger(__name__)


class AttendanceService:
    """Take-attendance workflow for one instructor console.

    Holds at most one live session. Resolving a different session tears the
    old one down (subscriptions retired, loop stopped) before the new one
    starts receiving events.
    """

    def __init__(
        self,
        sessions: SessionContextService,
        roster_loader: RosterLoader,
        channel: EventChannel,
        commit: CommitService,
        *,
        config: GraceConfig,
        bindings: Optional[SensorBindingRegistry] = None,
        strategy_factory: Optional[ClassificationStrategyFactory] = None,
        clock: Optional[Clock] = None,
        tick_seconds: float = DEFAULT_TICK_SECONDS,
        autostart: bool = False,
        feed: Optional[DeviceFeed] = None,
        feed_max_retries: Optional[int] = None,
        feed_backoff_seconds: Optional[float] = None,
        available_sensors: Sequence[str] = DEFAULT_AVAILABLE_SENSORS,
    ):
        self._sessions = sessions
        self._roster_loader = roster_loader
        self._channel = channel
        self._commit = commit
        self._config = config
        self._bindings = bindings or SensorBindingRegistry()
        self._factory = strategy_factory or ClassificationStrategyFactory()
        self._clock = clock or now_local
        self._tick_seconds = float(tick_seconds)
        self._autostart = bool(autostart)
        self._feed = feed
        self._feed_options = {
            k: v
            for k, v in {"max_retries": feed_max_retries, "backoff_seconds": feed_backoff_seconds}.items()
            if v is not None
        }
        self._available_sensors = tuple(available_sensors)

        self._lock = threading.RLock()
        self._loop: Optional[ReconciliationLoop] = None

    # ----- session lifecycle -----

    @property
    def current_session(self) -> Optional[Session]:
        loop = self._loop
        return loop.machine.session if loop else None

    @property
    def machine(self) -> Optional[AttendanceStateMachine]:
        loop = self._loop
        return loop.machine if loop else None

    @property
    def available_sensors(self) -> tuple[str, ...]:
        return self._available_sensors

    def refresh(self, instructor_id: str, *, now: Optional[datetime] = None) -> Optional[Session]:
        """Re-evaluate the instructor's timetable and switch sessions if needed.

        When no slot matches any more, the last session stays open so it can
        still be submitted; only a different session replaces it.
        """

        now = now or self._clock()
        resolved = self._sessions.current_session(require_non_empty(instructor_id, "Instructor"), now)

        with self._lock:
            current = self.current_session
            if resolved is None or (current is not None and current.key == resolved.key):
                return current
            self.activate(resolved)
            return resolved

    def activate(self, session: Session) -> AttendanceStateMachine:
        with self._lock:
            # Load first: if the roster is unavailable the old session stays live.
            roster = self._roster_loader.load(session)

            self._teardown()
            self._bindings.load_roster(roster)
            machine = AttendanceStateMachine(
                session,
                roster,
                self._config,
                bindings=self._bindings,
                strategy_factory=self._factory,
            )
            poller = None
            if self._feed is not None:
                poller = FeedPoller(
                    self._feed,
                    self._channel,
                    session_id=session.session_id,
                    room=session.room,
                    not_before=session.start_at,
                    **self._feed_options,
                )
            self._loop = ReconciliationLoop(
                machine, self._channel, clock=self._clock, tick_seconds=self._tick_seconds, poller=poller
            )
            if self._autostart:
                self._loop.start()

            logger.info(
                "session %s active (%s-%s, %d students)",
                session.session_id,
                session.start_at.strftime("%H:%M"),
                session.end_at.strftime("%H:%M"),
                len(roster),
            )
            return machine

    def end_session(self) -> None:
        with self._lock:
            self._teardown()

    def shutdown(self) -> None:
        with self._lock:
            self._teardown()
            self._channel.close_all()

    def _teardown(self) -> None:
        loop = self._loop
        if loop is None:
            return
        self._loop = None
        loop.stop()
        unsaved = sum(1 for s in loop.machine.snapshot().values() if not isinstance(s, Unmarked))
        if unsaved:
            logger.warning("session %s closed with %d unsubmitted states", loop.session_id, unsaved)

    def _require_loop(self) -> ReconciliationLoop:
        loop = self._loop
        if loop is None:
            raise NoActiveSession("No active class session")
        return loop

    def pump(self, *, now: Optional[datetime] = None) -> int:
        """Apply pending events and the clock tick right away."""

        return self._require_loop().pump(now)

    # ----- device ingestion -----

    def ingest_tap(
        self,
        *,
        timestamp: datetime,
        student_id: Optional[str] = None,
        rfid_uid: Optional[str] = None,
    ) -> bool:
        loop = self._require_loop()
        machine = loop.machine

        if not student_id:
            uid = require_non_empty(rfid_uid, "Card UID")
            match = next((s for s in machine.roster if s.rfid_uid and s.rfid_uid == uid), None)
            if match is None:
                logger.warning("tap from unknown card %s in %s", uid, loop.session_id)
                return False
            student_id = match.student_id

        delivered = self._channel.publish_tap(loop.session_id, TapEvent(student_id=str(student_id), timestamp=timestamp))
        return delivered > 0

    def ingest_weight(self, *, sensor_id: str, weight: float, timestamp: datetime) -> bool:
        loop = self._require_loop()
        event = WeightEvent(
            sensor_id=require_non_empty(sensor_id, "Sensor"),
            weight=require_non_negative(weight, "Weight"),
            timestamp=timestamp,
        )
        return self._channel.publish_weight(loop.session_id, event) > 0

    # ----- instructor actions -----

    def override(self, student_id: str, status: RecordStatus | str, *, actor: str, now: Optional[datetime] = None) -> bool:
        try:
            status = RecordStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown attendance status: {status}")
        machine = self._require_loop().machine
        return machine.override(str(student_id), status, actor=require_non_empty(actor, "Instructor"), now=now or self._clock())

    def assign_sensor(self, student_id: str, sensor_id: str) -> SensorBinding:
        machine = self._require_loop().machine
        sensor_id = require_non_empty(sensor_id, "Sensor")
        if machine.student(str(student_id)) is None:
            raise ValidationError(f"Student {student_id} is not enrolled in this session")
        if self._available_sensors and sensor_id not in self._available_sensors:
            raise ValidationError(f"Unknown sensor: {sensor_id}")
        binding = self._bindings.assign(sensor_id, str(student_id), session_scoped=True)
        logger.info("sensor %s assigned to %s", sensor_id, student_id)
        return binding

    def release_sensor(self, sensor_id: str) -> bool:
        return self._bindings.release(require_non_empty(sensor_id, "Sensor"))

    def submit(self, *, submitted_by: str, overwrite: bool = False, now: Optional[datetime] = None) -> CommitResult:
        with self._lock:
            loop = self._loop
            if loop is None:
                raise NoActiveSession("No active class session to submit")
            # No background pump between snapshot and reset.
            with loop.paused():
                loop.pump(now)
                return self._commit.submit(
                    loop.machine.session,
                    loop.machine,
                    submitted_by=submitted_by,
                    now=now or self._clock(),
                    overwrite=overwrite,
                )

    # ----- read side -----

    def stats(self) -> AttendanceStats:
        loop = self._loop
        if loop is None:
            return compute_stats({})
        return compute_stats(loop.machine.snapshot())

    def rows(self, *, query: str = "", status: Optional[str] = None, sort_by: str = "name", descending: bool = False) -> list[dict]:
        loop = self._loop
        if loop is None:
            return []
        machine = loop.machine
        try:
            return live_rows(
                machine.roster,
                machine.snapshot(),
                self._bindings,
                query=query,
                status=status,
                sort_by=sort_by,
                descending=descending,
            )
        except ValueError as e:
            raise ValidationError(str(e))
