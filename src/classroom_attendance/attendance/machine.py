from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Iterable, Mapping, Optional

from ..common.datetime_utils import ms
from ..core.enums import AbsentReason, RecordStatus
from ..core.exceptions import InvalidBinding, ValidationError
from ..events.model import TapEvent, WeightEvent
from ..roster.model import StudentIdentity
from ..schedules.model import Session
from ..sensors.registry import SensorBindingRegistry
from .factory import ClassificationStrategyFactory
from .model import GraceConfig
from .state import (
    UNMARKED,
    Absent,
    AttendanceState,
    Confirmed,
    ManualOverride,
    TapPending,
    Unmarked,
)

logger = logging.getLogger(__name__)


class AttendanceStateMachine:
    """Live attendance of one session: exactly one state per roster member.

    Every mutation takes the machine lock, so events from the reconciliation
    loop, instructor overrides and the commit reset are applied one at a time.
    Grace-period and timeout decisions use the timestamps carried by the
    events, not the order they arrive in.
    """

    def __init__(
        self,
        session: Session,
        roster: Iterable[StudentIdentity],
        config: GraceConfig,
        *,
        bindings: Optional[SensorBindingRegistry] = None,
        strategy_factory: Optional[ClassificationStrategyFactory] = None,
    ):
        self._session = session
        self._roster = tuple(roster)
        self._config = config
        self._bindings = bindings or SensorBindingRegistry()
        self._factory = strategy_factory or ClassificationStrategyFactory()
        self._lock = threading.RLock()

        self._students = {s.student_id: s for s in self._roster}
        self._states: dict[str, AttendanceState] = {s.student_id: UNMARKED for s in self._roster}
        # Latest seat reading per student that arrived before their tap.
        self._buffered: dict[str, WeightEvent] = {}
        self._seen: set[tuple] = set()

    @property
    def session(self) -> Session:
        return self._session

    @property
    def roster(self) -> tuple[StudentIdentity, ...]:
        return self._roster

    @property
    def config(self) -> GraceConfig:
        return self._config

    @property
    def bindings(self) -> SensorBindingRegistry:
        return self._bindings

    def student(self, student_id: str) -> Optional[StudentIdentity]:
        return self._students.get(student_id)

    def state_of(self, student_id: str) -> AttendanceState:
        with self._lock:
            if student_id not in self._states:
                raise ValidationError(f"Student {student_id} is not enrolled in {self._session.session_id}")
            return self._states[student_id]

    def snapshot(self) -> dict[str, AttendanceState]:
        """Copy of all states in roster order."""

        with self._lock:
            return {s.student_id: self._states[s.student_id] for s in self._roster}

    # ----- events -----

    def apply_tap(self, event: TapEvent) -> bool:
        """Apply a card tap. Returns True when the student's state changed."""

        with self._lock:
            if not self._first_delivery(event.dedup_key):
                logger.debug("duplicate tap ignored: %s at %s", event.student_id, event.timestamp)
                return False

            current = self._states.get(event.student_id)
            if current is None:
                logger.warning("tap from student %s not on roster of %s", event.student_id, self._session.session_id)
                return False

            if isinstance(current, Unmarked):
                self._states[event.student_id] = TapPending(tap_timestamp=event.timestamp, last_tap_at=event.timestamp)
                buffered = self._buffered.pop(event.student_id, None)
                if buffered is not None and buffered.weight >= self._config.presence_threshold:
                    self._confirm(event.student_id, event.timestamp, buffered)
                return True

            if isinstance(current, TapPending):
                # Out-of-order taps: classify by the earliest, time out from the latest.
                updated = TapPending(
                    tap_timestamp=min(current.tap_timestamp, event.timestamp),
                    last_tap_at=max(current.timeout_from, event.timestamp),
                )
                if updated == current:
                    return False
                self._states[event.student_id] = updated
                return True

            return False

    def apply_weight(self, event: WeightEvent) -> bool:
        """Apply a seat reading. Raises InvalidBinding for an unbound sensor."""

        with self._lock:
            if not self._first_delivery(event.dedup_key):
                logger.debug("duplicate weight ignored: %s at %s", event.sensor_id, event.timestamp)
                return False

            # Resolved now, not when the reading was produced or subscribed.
            student_id = self._bindings.resolve(event.sensor_id)
            if student_id is None:
                raise InvalidBinding(f"Sensor {event.sensor_id} is not bound to a student")

            current = self._states.get(student_id)
            if current is None:
                logger.warning("sensor %s bound to %s who is not on the roster", event.sensor_id, student_id)
                return False

            if isinstance(current, Unmarked):
                # Presence without identity never marks attendance on its own.
                self._buffered[student_id] = event
                return False

            if not isinstance(current, TapPending):
                return False

            if event.timestamp - current.timeout_from >= ms(self._config.absent_timeout_ms):
                self._time_out(student_id, current, at=event.timestamp)
                return True

            if event.weight < self._config.presence_threshold:
                return False

            self._confirm(student_id, current.tap_timestamp, event)
            return True

    def tick(self, now: datetime) -> list[str]:
        """Apply clock-driven transitions. Returns the ids that changed."""

        changed: list[str] = []
        with self._lock:
            timeout = ms(self._config.absent_timeout_ms)
            for student_id, current in self._states.items():
                if isinstance(current, TapPending) and now - current.timeout_from >= timeout:
                    self._time_out(student_id, current, at=now)
                    changed.append(student_id)
                elif isinstance(current, Unmarked) and now > self._session.end_at:
                    self._states[student_id] = Absent(reason=AbsentReason.NO_TAP, at=now)
                    changed.append(student_id)
        if changed:
            logger.debug("tick at %s changed %d states", now, len(changed))
        return changed

    # ----- instructor actions -----

    def override(self, student_id: str, classification: RecordStatus, *, actor: str, now: datetime) -> bool:
        """Force a status. Same classification twice is a no-op."""

        classification = RecordStatus(classification)
        with self._lock:
            current = self.state_of(student_id)
            if isinstance(current, ManualOverride) and current.classification == classification:
                return False
            self._states[student_id] = ManualOverride(classification=classification, set_at=now, actor=actor)
            self._buffered.pop(student_id, None)
            logger.info(
                "override %s -> %s by %s in %s", student_id, classification.value, actor, self._session.session_id
            )
            return True

    def reset(self, committed: Optional[Mapping[str, AttendanceState]] = None) -> list[str]:
        """Return students to Unmarked for the next cycle.

        With ``committed`` (the snapshot that was stored) only students whose
        state is still the committed one are reset; anything applied since
        stays for the next submission. Delivery keys are kept so a
        redelivered old event cannot replay. Returns the ids that were reset.
        """

        with self._lock:
            cleared: list[str] = []
            for student_id, current in self._states.items():
                if committed is not None and committed.get(student_id) != current:
                    continue
                self._states[student_id] = UNMARKED
                self._buffered.pop(student_id, None)
                cleared.append(student_id)
            kept = len(self._states) - len(cleared)
            if kept:
                logger.info("reset kept %d states applied after the snapshot in %s", kept, self._session.session_id)
            return cleared

    # ----- internals -----

    def _first_delivery(self, key: tuple) -> bool:
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def _confirm(self, student_id: str, tap_timestamp: datetime, reading: WeightEvent) -> None:
        strategy = self._factory.for_confirmed_tap(
            tap_timestamp=tap_timestamp,
            session_start=self._session.start_at,
            grace_window_ms=self._config.grace_window_ms,
        )
        decision = strategy.decide(
            tap_timestamp=tap_timestamp,
            session_start=self._session.start_at,
            grace_window_ms=self._config.grace_window_ms,
        )
        self._states[student_id] = Confirmed(
            classification=decision.classification,
            tap_timestamp=tap_timestamp,
            weight=reading.weight,
            confirmed_at=max(tap_timestamp, reading.timestamp),
        )
        logger.info(
            "%s confirmed %s in %s%s",
            student_id,
            decision.classification.value,
            self._session.session_id,
            f" ({decision.note})" if decision.note else "",
        )

    def _time_out(self, student_id: str, pending: TapPending, *, at: datetime) -> None:
        strategy = self._factory.for_unverified_tap(policy=self._config.unverified_tap_policy)
        if strategy is None:
            self._states[student_id] = Absent(reason=AbsentReason.TIMEOUT, at=at, tap_timestamp=pending.tap_timestamp)
            logger.info("seat never confirmed for %s; marked absent", student_id)
            return

        decision = strategy.decide(
            tap_timestamp=pending.tap_timestamp,
            session_start=self._session.start_at,
            grace_window_ms=self._config.grace_window_ms,
        )
        self._states[student_id] = Confirmed(
            classification=decision.classification,
            tap_timestamp=pending.tap_timestamp,
            weight=None,
            confirmed_at=at,
        )
        logger.info(
            "seat never confirmed for %s; kept as %s (%s)", student_id, decision.classification.value, decision.note
        )
