from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..core.enums import StateKind
from ..core.exceptions import ValidationError
from ..roster.model import StudentIdentity
from ..sensors.registry import SensorBindingRegistry
from .state import AttendanceState, Confirmed, ManualOverride, state_kind, state_timestamp

_STATUS_ORDER = {
    StateKind.PRESENT: 1,
    StateKind.LATE: 2,
    StateKind.ABSENT: 3,
    StateKind.PENDING: 4,
    StateKind.UNMARKED: 5,
}

_LABELS = {
    StateKind.PRESENT: "Present",
    StateKind.LATE: "Late",
    StateKind.ABSENT: "Absent",
    StateKind.PENDING: "Awaiting seat confirmation",
    StateKind.UNMARKED: "Not marked",
}

SORT_KEYS = ("name", "status", "time")


def live_rows(
    roster: Sequence[StudentIdentity],
    states: Mapping[str, AttendanceState],
    bindings: SensorBindingRegistry,
    *,
    query: str = "",
    status: Optional[str] = None,
    sort_by: str = "name",
    descending: bool = False,
) -> list[dict]:
    """Read-only rows for the take-attendance screen and exports."""

    if sort_by not in SORT_KEYS:
        raise ValidationError(f"Unknown sort key: {sort_by}")
    wanted = StateKind(status) if status and status != "all" else None
    needle = (query or "").strip().lower()

    rows = []
    for student in roster:
        state = states[student.student_id]
        kind = state_kind(state)
        if wanted is not None and kind != wanted:
            continue
        if needle and needle not in student.display_name.lower():
            continue
        rows.append((student, state, kind))

    def _key(item):
        student, state, kind = item
        if sort_by == "status":
            return _STATUS_ORDER[kind]
        if sort_by == "time":
            ts = state_timestamp(state)
            return ts.timestamp() if ts else float("inf")
        return student.display_name.lower()

    rows.sort(key=_key, reverse=descending)
    return [_to_row(student, state, kind, bindings) for student, state, kind in rows]


def _to_row(student: StudentIdentity, state: AttendanceState, kind: StateKind, bindings: SensorBindingRegistry) -> dict:
    ts: Optional[datetime] = state_timestamp(state)
    weight = state.weight if isinstance(state, Confirmed) else None
    return {
        "student_id": student.student_id,
        "name": student.display_name,
        "contact": student.contact_info,
        "rfid_uid": student.rfid_uid,
        "sensor_id": bindings.sensor_for(student.student_id) or "",
        "status": kind.value,
        "label": _LABELS[kind],
        "time": ts.strftime("%H:%M:%S") if ts else "",
        "weight": f"{weight:.1f}" if weight is not None else "",
        "manual": isinstance(state, ManualOverride),
    }
