from __future__ import annotations

import pytest

from classroom_attendance.attendance.commit import CommitService
from classroom_attendance.attendance.history import RecordHistoryService
from classroom_attendance.attendance.machine import AttendanceStateMachine
from classroom_attendance.attendance.state import TapPending, Unmarked
from classroom_attendance.core.enums import RecordStatus
from classroom_attendance.core.exceptions import DuplicateSubmission, NoActiveSession, WriteFailure
from classroom_attendance.events.model import TapEvent, WeightEvent

from support import FakeRecordStore, at, make_session


@pytest.fixture()
def machine(session, roster, grace, bindings) -> AttendanceStateMachine:
    m = AttendanceStateMachine(session, roster, grace, bindings=bindings)
    # s1 present, s2 late, s3 never taps
    m.apply_tap(TapEvent(student_id="s1", timestamp=at(8, 3)))
    m.apply_weight(WeightEvent(sensor_id="Sensor1", weight=60.0, timestamp=at(8, 4)))
    m.apply_tap(TapEvent(student_id="s2", timestamp=at(8, 40)))
    m.apply_weight(WeightEvent(sensor_id="Sensor2", weight=48.0, timestamp=at(8, 41)))
    return m


def test_submit_writes_one_record_per_student_and_resets(session, machine, record_store):
    service = CommitService(record_store)

    result = service.submit(session, machine, submitted_by="t01", now=at(9, 0))

    assert result.written == 3
    assert result.replaced == 0
    by_student = {r.student_id: r for r in record_store.rows.values()}
    assert by_student["s1"].status == RecordStatus.PRESENT
    assert by_student["s1"].confirmed_by_rfid and by_student["s1"].confirmed_by_weight
    assert by_student["s2"].status == RecordStatus.LATE
    assert by_student["s3"].status == RecordStatus.ABSENT
    assert not by_student["s3"].confirmed_by_rfid
    assert by_student["s3"].timestamp == at(9, 0)
    assert all(r.session_id == session.session_id and r.submitted_by == "t01" for r in by_student.values())
    assert all(isinstance(s, Unmarked) for s in machine.snapshot().values())


def test_pending_tap_is_stored_as_absent(session, roster, grace, bindings, record_store):
    machine = AttendanceStateMachine(session, roster, grace, bindings=bindings)
    machine.apply_tap(TapEvent(student_id="s3", timestamp=at(8, 5)))

    result = CommitService(record_store).submit(session, machine, submitted_by="t01", now=at(8, 6))

    record = next(r for r in result.records if r.student_id == "s3")
    assert record.status == RecordStatus.ABSENT
    assert record.confirmed_by_rfid
    assert not record.confirmed_by_weight


def test_duplicate_submission_without_overwrite_writes_nothing(session, machine, record_store):
    service = CommitService(record_store)
    service.submit(session, machine, submitted_by="t01", now=at(9, 0))
    machine.apply_tap(TapEvent(student_id="s3", timestamp=at(9, 1)))

    with pytest.raises(DuplicateSubmission) as exc:
        service.submit(session, machine, submitted_by="t01", now=at(9, 2))

    assert exc.value.existing_count == 3
    assert record_store.write_calls == 1
    assert len(record_store.rows) == 3
    assert isinstance(machine.state_of("s3"), TapPending)


def test_overwrite_replaces_previous_submission(session, machine, record_store):
    service = CommitService(record_store)
    service.submit(session, machine, submitted_by="t01", now=at(9, 0))
    machine.override("s3", RecordStatus.PRESENT, actor="t01", now=at(9, 5))

    result = service.submit(session, machine, submitted_by="t01", now=at(9, 6), overwrite=True)

    assert result.replaced == 3
    assert len(record_store.rows) == 3
    statuses = {r.student_id: r.status for r in record_store.rows.values()}
    assert statuses == {"s1": RecordStatus.ABSENT, "s2": RecordStatus.ABSENT, "s3": RecordStatus.PRESENT}


def test_other_submitter_is_not_a_duplicate(session, machine, record_store):
    service = CommitService(record_store)
    service.submit(session, machine, submitted_by="t01", now=at(9, 0))

    result = service.submit(session, machine, submitted_by="t02", now=at(9, 1))

    assert result.written == 3
    assert len(record_store.rows) == 6


def test_write_failure_keeps_live_state(session, machine, record_store):
    record_store.fail_writes = True
    before = machine.snapshot()

    with pytest.raises(WriteFailure):
        CommitService(record_store).submit(session, machine, submitted_by="t01", now=at(9, 0))

    assert machine.snapshot() == before
    assert record_store.rows == {}


def test_empty_roster_commits_zero_records(session, grace, record_store):
    machine = AttendanceStateMachine(session, (), grace)

    result = CommitService(record_store).submit(session, machine, submitted_by="t01", now=at(9, 0))

    assert result.written == 0
    assert record_store.rows == {}


def test_submit_without_session_is_rejected(record_store):
    with pytest.raises(NoActiveSession):
        CommitService(record_store).submit(None, None, submitted_by="t01", now=at(9, 0))


def test_submit_for_mismatched_session_is_rejected(machine, record_store):
    other = make_session(subject="MA201")

    with pytest.raises(NoActiveSession):
        CommitService(record_store).submit(other, machine, submitted_by="t01", now=at(9, 0))


def test_session_scoped_sensor_assignments_are_released(session, machine, bindings, record_store):
    bindings.assign("Sensor3", "s3")

    CommitService(record_store).submit(session, machine, submitted_by="t01", now=at(9, 0))

    assert bindings.resolve("Sensor3") is None
    assert bindings.resolve("Sensor1") == "s1"


def test_events_applied_during_write_survive_reset(session, machine):
    class TapDuringWrite(FakeRecordStore):
        def write_records(self, records):
            machine.apply_tap(TapEvent(student_id="s3", timestamp=at(9, 1)))
            return super().write_records(records)

    store = TapDuringWrite()

    result = CommitService(store).submit(session, machine, submitted_by="t01", now=at(9, 0))

    assert next(r for r in result.records if r.student_id == "s3").status == RecordStatus.ABSENT
    assert isinstance(machine.state_of("s3"), TapPending)
    assert isinstance(machine.state_of("s1"), Unmarked)


def test_overwrite_after_correction_keeps_one_record_per_student(session, machine, record_store):
    service = CommitService(record_store)
    service.submit(session, machine, submitted_by="t01", now=at(9, 0))
    s3_id = next(i for i, r in record_store.rows.items() if r.student_id == "s3")
    RecordHistoryService(record_store).amend_status(
        record_id=s3_id, new_status=RecordStatus.LATE, actor="t02", now=at(9, 30), confirm=True
    )

    result = service.submit(session, machine, submitted_by="t01", now=at(9, 40), overwrite=True)

    assert result.replaced == 3
    per_student = sorted(r.student_id for r in record_store.rows.values())
    assert per_student == ["s1", "s2", "s3"]
