from __future__ import annotations

from typing import Sequence

import mysql.connector

from ..common.datetime_utils import parse_clock_time
from ..core.exceptions import ScheduleUnavailable
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import ScheduleEntry
from .repository import ScheduleSource


class MySQLScheduleRepository(ScheduleSource):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_schedules(self, instructor_id: str) -> Sequence[ScheduleEntry]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    SELECT day_name, start_time, end_time, subject_code, section_name, room
                    FROM schedules
                    WHERE instructor_id=%s
                    ORDER BY start_time
                    """,
                    (str(instructor_id),),
                )
                rows = fetchall(cur)
        except mysql.connector.Error as e:
            raise ScheduleUnavailable(f"Cannot load schedule for instructor {instructor_id}: {e}") from e

        return [
            ScheduleEntry(
                day=r["day_name"],
                start_time=parse_clock_time(r["start_time"]),
                end_time=parse_clock_time(r["end_time"]),
                subject_code=r["subject_code"],
                section_name=r["section_name"],
                room=r.get("room") or "",
            )
            for r in rows
        ]
