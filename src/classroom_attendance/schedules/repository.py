from __future__ import annotations

from typing import Protocol, Sequence

from .model import ScheduleEntry


class ScheduleSource(Protocol):
    def get_schedules(self, instructor_id: str) -> Sequence[ScheduleEntry]:
        """Weekly timetable of an instructor.

        Raises ScheduleUnavailable on transport errors.
        """

        raise NotImplementedError
