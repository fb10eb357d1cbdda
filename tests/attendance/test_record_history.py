from __future__ import annotations

from datetime import date

import pytest

from classroom_attendance.attendance.history import RecordHistoryService
from classroom_attendance.attendance.model import AttendanceRecord
from classroom_attendance.core.enums import RecordStatus
from classroom_attendance.core.exceptions import ValidationError, WriteFailure

from support import MONDAY, at


@pytest.fixture()
def stored(record_store):
    record_store.write_records(
        [
            AttendanceRecord(
                student_id=sid,
                student_name=name,
                session_id="2025-01-06|CS101|A|R101",
                subject_code="CS101",
                section_name="A",
                room="R101",
                record_date=MONDAY,
                status=status,
                confirmed_by_rfid=status != RecordStatus.ABSENT,
                confirmed_by_weight=status != RecordStatus.ABSENT,
                timestamp=at(8, 5),
                submitted_by="t01",
            )
            for sid, name, status in [
                ("s1", "Alice Tran", RecordStatus.PRESENT),
                ("s2", "Bao Le", RecordStatus.ABSENT),
            ]
        ]
    )
    return record_store


def test_list_records_filters_by_student(stored):
    history = RecordHistoryService(stored)

    records = history.list_records(start=MONDAY, end=MONDAY, student_id="s2")

    assert [r.student_id for r in records] == ["s2"]


def test_list_records_rejects_inverted_range(stored):
    with pytest.raises(ValidationError):
        RecordHistoryService(stored).list_records(start=date(2025, 1, 7), end=MONDAY)


def test_amend_requires_confirmation(stored):
    with pytest.raises(ValidationError):
        RecordHistoryService(stored).amend_status(record_id=2, new_status=RecordStatus.LATE, actor="t01", now=at(12, 0))

    assert stored.get_by_id(2).status == RecordStatus.ABSENT


def test_amend_replaces_record(stored):
    corrected = RecordHistoryService(stored).amend_status(
        record_id=2, new_status=RecordStatus.LATE, actor="t02", now=at(12, 0), confirm=True
    )

    assert corrected.status == RecordStatus.LATE
    assert corrected.submitted_by == "t01"
    assert corrected.amended_by == "t02"
    assert stored.get_by_id(2) is None
    statuses = sorted((r.student_id, r.status) for r in stored.rows.values())
    assert statuses == [("s1", RecordStatus.PRESENT), ("s2", RecordStatus.LATE)]


def test_amend_to_same_status_changes_nothing(stored):
    record = RecordHistoryService(stored).amend_status(record_id=1, new_status=RecordStatus.PRESENT, actor="t01", now=at(12, 0))

    assert record.record_id == 1
    assert stored.write_calls == 1


def test_amend_missing_record(stored):
    with pytest.raises(ValidationError):
        RecordHistoryService(stored).amend_status(record_id=99, new_status=RecordStatus.LATE, actor="t01", now=at(12, 0), confirm=True)


def test_amend_store_failure(stored):
    stored.fail_writes = True

    with pytest.raises(WriteFailure):
        RecordHistoryService(stored).amend_status(record_id=2, new_status=RecordStatus.LATE, actor="t01", now=at(12, 0), confirm=True)


def test_delete_requires_confirmation(stored):
    history = RecordHistoryService(stored)

    with pytest.raises(ValidationError):
        history.delete_record(record_id=1, actor="t01")

    history.delete_record(record_id=1, actor="t01", confirm=True)
    assert stored.get_by_id(1) is None


def test_summary_counts_recent_records(stored):
    summary = RecordHistoryService(stored).summary(today=MONDAY, subject_code="CS101")

    assert summary.weekly.present == 1
    assert summary.weekly.absent == 1
    assert summary.monthly.attendance_rate == 0.5
