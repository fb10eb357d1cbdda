from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from ..core.constants import (
    DEFAULT_ABSENT_TIMEOUT_MINUTES,
    DEFAULT_GRACE_WINDOW_MINUTES,
    DEFAULT_PRESENCE_THRESHOLD,
)
from ..core.enums import RecordStatus, UnverifiedTapPolicy
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class AttendanceRecord:
    """Finalized attendance of one student for one session (never mutated)."""

    student_id: str
    session_id: str
    record_date: date
    status: RecordStatus
    confirmed_by_rfid: bool
    confirmed_by_weight: bool
    timestamp: datetime
    submitted_by: str
    subject_code: str = ""
    section_name: str = ""
    room: str = ""
    student_name: str = ""
    amended_by: str = ""
    record_id: Optional[int] = None

    def with_id(self, record_id: int) -> "AttendanceRecord":
        return replace(self, record_id=int(record_id))


@dataclass(frozen=True)
class GraceConfig:
    """Process-wide classification settings."""

    grace_window_ms: int = DEFAULT_GRACE_WINDOW_MINUTES * 60_000
    absent_timeout_ms: int = DEFAULT_ABSENT_TIMEOUT_MINUTES * 60_000
    presence_threshold: float = DEFAULT_PRESENCE_THRESHOLD
    unverified_tap_policy: UnverifiedTapPolicy = UnverifiedTapPolicy.ABSENT

    def __post_init__(self):
        if self.grace_window_ms < 0:
            raise ValidationError("grace window must not be negative")
        if self.absent_timeout_ms <= 0:
            raise ValidationError("absent timeout must be positive")
        if self.presence_threshold < 0:
            raise ValidationError("presence threshold must not be negative")

    @classmethod
    def from_settings(cls, settings) -> "GraceConfig":
        return cls(
            grace_window_ms=int(float(getattr(settings, "GRACE_WINDOW_MINUTES", DEFAULT_GRACE_WINDOW_MINUTES)) * 60_000),
            absent_timeout_ms=int(
                float(getattr(settings, "ABSENT_TIMEOUT_MINUTES", DEFAULT_ABSENT_TIMEOUT_MINUTES)) * 60_000
            ),
            presence_threshold=float(getattr(settings, "PRESENCE_THRESHOLD", DEFAULT_PRESENCE_THRESHOLD)),
            unverified_tap_policy=UnverifiedTapPolicy(
                str(getattr(settings, "UNVERIFIED_TAP_POLICY", UnverifiedTapPolicy.ABSENT.value)).lower()
            ),
        )


@dataclass(frozen=True)
class CommitResult:
    session_id: str
    record_date: date
    records: tuple[AttendanceRecord, ...]
    replaced: int = 0

    @property
    def written(self) -> int:
        return len(self.records)
