from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from classroom_attendance.attendance.model import AttendanceRecord
from classroom_attendance.core.exceptions import RosterUnavailable, ScheduleUnavailable
from classroom_attendance.roster.model import StudentIdentity
from classroom_attendance.schedules.model import ScheduleEntry, Session, SessionKey

# 2025-01-06 is a Monday.
MONDAY = date(2025, 1, 6)


def at(hour: int, minute: int = 0, second: int = 0, microsecond: int = 0, day: date = MONDAY) -> datetime:
    return datetime.combine(day, time(hour, minute, second, microsecond))


def make_session(
    *,
    start: time = time(8, 0),
    end: time = time(10, 0),
    day: date = MONDAY,
    subject: str = "CS101",
    section: str = "A",
    room: str = "R101",
) -> Session:
    return Session(
        key=SessionKey(session_date=day, subject_code=subject, section_name=section, room=room),
        day="Monday",
        start_at=datetime.combine(day, start),
        end_at=datetime.combine(day, end),
    )


class InMemorySchedules:
    def __init__(self, entries: Optional[dict[str, list[ScheduleEntry]]] = None):
        self.entries = entries or {}
        self.fail = False

    def get_schedules(self, instructor_id: str):
        if self.fail:
            raise ScheduleUnavailable("timetable offline")
        return list(self.entries.get(instructor_id, []))


class InMemoryRoster:
    def __init__(self, rosters: Optional[dict[tuple[str, str], list[StudentIdentity]]] = None):
        self.rosters = rosters or {}
        self.fail = False

    def get_roster(self, session_key: SessionKey):
        if self.fail:
            raise RosterUnavailable("roster offline")
        return list(self.rosters.get((session_key.subject_code, session_key.section_name), []))


class FakeRecordStore:
    def __init__(self):
        self.rows: dict[int, AttendanceRecord] = {}
        self._id = 0
        self.fail_writes = False
        self.write_calls = 0

    def query_existing(self, session_id, submitted_by, record_date):
        return [
            r
            for r in self.rows.values()
            if r.session_id == session_id and r.submitted_by == submitted_by and r.record_date == record_date
        ]

    def write_records(self, records):
        return self.replace_records([], records)

    def delete_records(self, record_ids):
        return self.replace_records(record_ids, [])

    def replace_records(self, delete_ids, records):
        self.write_calls += 1
        if self.fail_writes:
            return False
        for record_id in delete_ids:
            self.rows.pop(record_id, None)
        for r in records:
            self._id += 1
            self.rows[self._id] = r.with_id(self._id)
        return True

    def get_by_id(self, record_id):
        return self.rows.get(record_id)

    def list_records(self, *, start_date, end_date, subject_code=None, section_name=None, student_id=None):
        return [
            r
            for r in self.rows.values()
            if start_date <= r.record_date <= end_date
            and (subject_code is None or r.subject_code == subject_code)
            and (section_name is None or r.section_name == section_name)
            and (student_id is None or r.student_id == student_id)
        ]
