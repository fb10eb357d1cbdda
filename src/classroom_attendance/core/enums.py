from __future__ import annotations

from enum import Enum


class Classification(str, Enum):
    """Outcome of fusing a tap with a weight confirmation."""

    PRESENT = "present"
    LATE = "late"


class RecordStatus(str, Enum):
    """Status stored on a finalized attendance record."""

    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"


class AbsentReason(str, Enum):
    TIMEOUT = "timeout"
    MANUAL_OVERRIDE = "manual_override"
    NO_TAP = "no_tap"


class UnverifiedTapPolicy(str, Enum):
    """What a tap becomes when the seat sensor never confirms it."""

    ABSENT = "absent"
    LATE = "late"


class StateKind(str, Enum):
    """Flat label for a live attendance state (used for filtering/sorting)."""

    UNMARKED = "unmarked"
    PENDING = "pending"
    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
