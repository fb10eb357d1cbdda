import pytest

from classroom_attendance.attendance.state import UNMARKED, Confirmed, ManualOverride, TapPending
from classroom_attendance.attendance.view import live_rows
from classroom_attendance.core.enums import Classification, RecordStatus
from classroom_attendance.core.exceptions import ValidationError

from support import at


@pytest.fixture()
def states():
    return {
        "s1": Confirmed(classification=Classification.LATE, tap_timestamp=at(8, 20), weight=61.3, confirmed_at=at(8, 21)),
        "s2": TapPending(tap_timestamp=at(8, 2)),
        "s3": ManualOverride(classification=RecordStatus.PRESENT, set_at=at(8, 10), actor="t01"),
    }


def test_rows_follow_roster_fields(roster, states, bindings):
    rows = live_rows(roster, states, bindings)

    alice = rows[0]
    assert alice["student_id"] == "s1"
    assert alice["sensor_id"] == "Sensor1"
    assert alice["status"] == "late"
    assert alice["time"] == "08:21:00"
    assert alice["weight"] == "61.3"
    assert not alice["manual"]
    assert rows[2]["manual"]
    assert rows[2]["contact"] == ""


def test_filter_by_status_and_name(roster, states, bindings):
    assert [r["student_id"] for r in live_rows(roster, states, bindings, status="pending")] == ["s2"]
    assert [r["student_id"] for r in live_rows(roster, states, bindings, query="pham")] == ["s3"]
    assert len(live_rows(roster, states, bindings, status="all")) == 3


def test_sort_by_status_and_time(roster, states, bindings):
    by_status = live_rows(roster, states, bindings, sort_by="status")
    assert [r["status"] for r in by_status] == ["present", "late", "pending"]

    by_time = live_rows(roster, states, bindings, sort_by="time", descending=True)
    assert [r["student_id"] for r in by_time] == ["s1", "s3", "s2"]


def test_unmarked_rows_have_no_time(roster, bindings):
    rows = live_rows(roster, {s.student_id: UNMARKED for s in roster}, bindings)

    assert all(r["time"] == "" and r["label"] == "Not marked" for r in rows)


def test_unknown_sort_key(roster, states, bindings):
    with pytest.raises(ValidationError):
        live_rows(roster, states, bindings, sort_by="height")
