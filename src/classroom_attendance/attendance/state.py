from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from ..core.enums import AbsentReason, Classification, RecordStatus, StateKind


@dataclass(frozen=True)
class Unmarked:
    pass


@dataclass(frozen=True)
class TapPending:
    """Card tapped, seat not yet confirmed.

    ``tap_timestamp`` is the earliest tap and drives classification; the
    absent timeout runs from ``last_tap_at``, the latest tap seen.
    """

    tap_timestamp: datetime
    last_tap_at: Optional[datetime] = None

    @property
    def timeout_from(self) -> datetime:
        return self.last_tap_at or self.tap_timestamp


@dataclass(frozen=True)
class Confirmed:
    classification: Classification
    tap_timestamp: datetime
    weight: Optional[float]
    confirmed_at: datetime


@dataclass(frozen=True)
class Absent:
    reason: AbsentReason
    at: datetime
    tap_timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class ManualOverride:
    """Instructor decision; automatic events no longer apply until reset."""

    classification: RecordStatus
    set_at: datetime
    actor: str = ""


AttendanceState = Union[Unmarked, TapPending, Confirmed, Absent, ManualOverride]

UNMARKED = Unmarked()


def state_kind(state: AttendanceState) -> StateKind:
    if isinstance(state, TapPending):
        return StateKind.PENDING
    if isinstance(state, Confirmed):
        return StateKind.PRESENT if state.classification == Classification.PRESENT else StateKind.LATE
    if isinstance(state, Absent):
        return StateKind.ABSENT
    if isinstance(state, ManualOverride):
        return StateKind(state.classification.value)
    return StateKind.UNMARKED


def final_status(state: AttendanceState) -> RecordStatus:
    """Status written at commit time.

    Anything not confirmed (unmarked, still pending, timed out) is absent.
    """

    if isinstance(state, Confirmed):
        return RecordStatus(state.classification.value)
    if isinstance(state, ManualOverride):
        return state.classification
    return RecordStatus.ABSENT


def state_timestamp(state: AttendanceState) -> Optional[datetime]:
    if isinstance(state, TapPending):
        return state.tap_timestamp
    if isinstance(state, Confirmed):
        return state.confirmed_at
    if isinstance(state, Absent):
        return state.at
    if isinstance(state, ManualOverride):
        return state.set_at
    return None


def tap_seen(state: AttendanceState) -> bool:
    if isinstance(state, (TapPending, Confirmed)):
        return True
    return isinstance(state, Absent) and state.tap_timestamp is not None


def weight_confirmed(state: AttendanceState) -> bool:
    return isinstance(state, Confirmed) and state.weight is not None
