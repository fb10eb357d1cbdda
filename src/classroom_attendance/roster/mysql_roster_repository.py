from __future__ import annotations

from typing import Sequence

import mysql.connector

from ..common.validators import text_or_empty
from ..core.exceptions import RosterUnavailable
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from ..schedules.model import SessionKey
from .model import StudentIdentity
from .repository import RosterSource


class MySQLRosterRepository(RosterSource):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_roster(self, session_key: SessionKey) -> Sequence[StudentIdentity]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    SELECT s.student_id, s.full_name, s.email, s.rfid_uid, s.sensor_id
                    FROM section_students ss
                    JOIN students s ON s.student_id = ss.student_id
                    WHERE ss.subject_code=%s AND ss.section_name=%s
                    ORDER BY ss.enrollment_order ASC, ss.enrolled_at ASC
                    """,
                    (session_key.subject_code, session_key.section_name),
                )
                rows = fetchall(cur)
        except mysql.connector.Error as e:
            raise RosterUnavailable(f"Cannot load roster for {session_key}: {e}") from e

        return [
            StudentIdentity(
                student_id=str(r["student_id"]),
                display_name=text_or_empty(r.get("full_name")),
                contact_info=text_or_empty(r.get("email")),
                rfid_uid=text_or_empty(r.get("rfid_uid")),
                sensor_binding=r.get("sensor_id") or None,
            )
            for r in rows
        ]
