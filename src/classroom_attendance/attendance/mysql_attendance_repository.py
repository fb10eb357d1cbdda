from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import RecordStatus
from ..core.exceptions import WriteFailure
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from .model import AttendanceRecord
from .repository import RecordStore

logger = logging.getLogger(__name__)

_COLUMNS = """
    record_id, student_id, student_name, session_id, subject_code, section_name, room,
    record_date, status, confirmed_by_rfid, confirmed_by_weight, recorded_at, submitted_by,
    amended_by
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        student_id=str(r["student_id"]),
        student_name=r.get("student_name") or "",
        session_id=r["session_id"],
        subject_code=r.get("subject_code") or "",
        section_name=r.get("section_name") or "",
        room=r.get("room") or "",
        record_date=r["record_date"],
        status=RecordStatus(r["status"]),
        confirmed_by_rfid=bool(r["confirmed_by_rfid"]),
        confirmed_by_weight=bool(r["confirmed_by_weight"]),
        timestamp=r["recorded_at"],
        submitted_by=str(r["submitted_by"]),
        amended_by=r.get("amended_by") or "",
    )


class MySQLAttendanceRepository(RecordStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def query_existing(self, session_id: str, submitted_by: str, record_date: date) -> Sequence[AttendanceRecord]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM attendance_records
                    WHERE session_id=%s AND submitted_by=%s AND record_date=%s
                    ORDER BY record_id
                    """,
                    (session_id, str(submitted_by), record_date),
                )
                return [_to_record(r) for r in fetchall(cur)]
        except mysql.connector.Error as e:
            raise WriteFailure(f"Cannot check earlier submissions: {e}") from e

    def write_records(self, records: Sequence[AttendanceRecord]) -> bool:
        return self.replace_records([], records)

    def delete_records(self, record_ids: Sequence[int]) -> bool:
        return self.replace_records(record_ids, [])

    def replace_records(self, delete_ids: Sequence[int], records: Sequence[AttendanceRecord]) -> bool:
        if not delete_ids and not records:
            return True

        try:
            with db_cursor(self._conn_factory) as (_, cur):
                if delete_ids:
                    ids = [int(i) for i in delete_ids]
                    cur.execute(f"DELETE FROM attendance_records WHERE record_id IN ({placeholders(len(ids))})", tuple(ids))
                    if cur.rowcount != len(ids):
                        # Someone else already removed part of the set: abort the whole batch.
                        raise WriteFailure(f"Expected to delete {len(ids)} records, deleted {cur.rowcount}")

                if records:
                    cur.executemany(
                        """
                        INSERT INTO attendance_records(
                            student_id, student_name, session_id, subject_code, section_name, room,
                            record_date, status, confirmed_by_rfid, confirmed_by_weight, recorded_at, submitted_by,
                            amended_by
                        )
                        VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                        """,
                        [
                            (
                                r.student_id,
                                r.student_name,
                                r.session_id,
                                r.subject_code,
                                r.section_name,
                                r.room,
                                r.record_date,
                                r.status.value,
                                int(r.confirmed_by_rfid),
                                int(r.confirmed_by_weight),
                                r.timestamp,
                                r.submitted_by,
                                r.amended_by,
                            )
                            for r in records
                        ],
                    )
        except mysql.connector.Error as e:
            logger.error("attendance batch rolled back: %s", e)
            raise WriteFailure(f"Attendance batch was not stored: {e}") from e
        return True

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE record_id=%s", (int(record_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_records(
        self,
        *,
        start_date: date,
        end_date: date,
        subject_code: Optional[str] = None,
        section_name: Optional[str] = None,
        student_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["record_date BETWEEN %s AND %s"]
        params: list[object] = [start_date, end_date]

        if subject_code:
            clauses.append("subject_code=%s")
            params.append(subject_code)
        if section_name:
            clauses.append("section_name=%s")
            params.append(section_name)
        if student_id:
            clauses.append("student_id=%s")
            params.append(str(student_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {where}
                ORDER BY record_date DESC, session_id ASC, record_id ASC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
