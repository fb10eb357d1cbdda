from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Iterable, Mapping

from ..attendance.model import AttendanceRecord
from ..attendance.state import AttendanceState, state_kind
from ..core.enums import RecordStatus, StateKind


@dataclass(frozen=True)
class AttendanceStats:
    total: int
    present: int
    late: int
    absent: int
    pending: int
    unmarked: int
    attendance_rate: float
    punctuality_rate: float

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class StatusCounts:
    present: int = 0
    late: int = 0
    absent: int = 0

    @property
    def total(self) -> int:
        return self.present + self.late + self.absent

    @property
    def attendance_rate(self) -> float:
        return (self.present + self.late) / self.total if self.total else 0.0


@dataclass(frozen=True)
class RecordSummary:
    weekly: StatusCounts
    monthly: StatusCounts


def compute_stats(states: Mapping[str, AttendanceState]) -> AttendanceStats:
    """Summarize live states. Pure; safe to call at any time.

    Rates are fractions in [0, 1]. An empty roster gives 0 for both.
    """

    counts = {kind: 0 for kind in StateKind}
    for state in states.values():
        counts[state_kind(state)] += 1

    total = len(states)
    present = counts[StateKind.PRESENT]
    late = counts[StateKind.LATE]
    attended = present + late

    return AttendanceStats(
        total=total,
        present=present,
        late=late,
        absent=counts[StateKind.ABSENT],
        pending=counts[StateKind.PENDING],
        unmarked=counts[StateKind.UNMARKED],
        attendance_rate=attended / total if total else 0.0,
        punctuality_rate=present / (attended or 1) if total else 0.0,
    )


def count_statuses(records: Iterable[AttendanceRecord]) -> StatusCounts:
    present = late = absent = 0
    for r in records:
        if r.status == RecordStatus.PRESENT:
            present += 1
        elif r.status == RecordStatus.LATE:
            late += 1
        else:
            absent += 1
    return StatusCounts(present=present, late=late, absent=absent)


def summarize_records(records: Iterable[AttendanceRecord], *, today: date) -> RecordSummary:
    """Weekly (last 7 days) and monthly (last 30 days) counts, today included."""

    records = list(records)
    week_start = today - timedelta(days=6)
    month_start = today - timedelta(days=29)
    return RecordSummary(
        weekly=count_statuses(r for r in records if week_start <= r.record_date <= today),
        monthly=count_statuses(r for r in records if month_start <= r.record_date <= today),
    )
