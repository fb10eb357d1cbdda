from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from ..common.datetime_utils import truncate_to_minute, weekday_name
from .model import ScheduleEntry, Session, SessionKey
from .repository import ScheduleSource


def resolve_session(entries: Iterable[ScheduleEntry], now: datetime) -> Optional[Session]:
    """Pick the session running at ``now`` from a weekly timetable.

    Windows are inclusive at both ends and compared at minute resolution,
    so a 08:00-10:00 slot still matches at 10:00:59. When several slots
    overlap the earliest start wins.
    """

    today = weekday_name(now.date()).lower()
    current = truncate_to_minute(now).time()

    matching = [
        e
        for e in entries
        if (e.day or "").strip().lower() == today
        and e.start_time.replace(second=0) <= current <= e.end_time.replace(second=0)
    ]
    if not matching:
        return None

    entry = min(matching, key=lambda e: e.start_time)
    session_date = now.date()
    return Session(
        key=SessionKey(
            session_date=session_date,
            subject_code=entry.subject_code,
            section_name=entry.section_name,
            room=entry.room,
        ),
        day=weekday_name(session_date),
        start_at=datetime.combine(session_date, entry.start_time),
        end_at=datetime.combine(session_date, entry.end_time),
    )


class SessionContextService:
    def __init__(self, schedules: ScheduleSource):
        self._schedules = schedules

    def current_session(self, instructor_id: str, now: datetime) -> Optional[Session]:
        # ScheduleUnavailable from the source propagates to the caller.
        entries = self._schedules.get_schedules(str(instructor_id))
        return resolve_session(entries, now)
