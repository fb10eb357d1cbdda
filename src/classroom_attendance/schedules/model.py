from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time


@dataclass(frozen=True)
class ScheduleEntry:
    """One weekly slot on an instructor's timetable."""

    day: str
    start_time: time
    end_time: time
    subject_code: str
    section_name: str
    room: str


@dataclass(frozen=True)
class SessionKey:
    """Identity of one class occurrence.

    Two resolutions of the same slot on the same date produce equal keys.
    """

    session_date: date
    subject_code: str
    section_name: str
    room: str

    @property
    def session_id(self) -> str:
        return "|".join(
            [self.session_date.strftime("%Y-%m-%d"), self.subject_code, self.section_name, self.room]
        )

    def __str__(self) -> str:
        return self.session_id


@dataclass(frozen=True)
class Session:
    key: SessionKey
    day: str
    start_at: datetime
    end_at: datetime

    @property
    def session_id(self) -> str:
        return self.key.session_id

    @property
    def session_date(self) -> date:
        return self.key.session_date

    @property
    def subject_code(self) -> str:
        return self.key.subject_code

    @property
    def section_name(self) -> str:
        return self.key.section_name

    @property
    def room(self) -> str:
        return self.key.room
