from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

import mysql.connector

from ..core.exceptions import EventChannelDisconnected
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .feed import DeviceFeed
from .model import DeviceEvent, EventKind, TapEvent, WeightEvent


class MySQLDeviceFeed(DeviceFeed):
    """Reads the ``device_events`` log written by the classroom gateways.

    Taps may carry a student id or only the card UID; the UID is mapped to
    the student here.
    """

    def __init__(self, conn_factory: DatabaseConnection, *, batch_size: int = 500):
        self._conn_factory = conn_factory
        self._batch_size = int(batch_size)

    def reconnect(self) -> None:
        # Connections are per-call; verifying the server is reachable is enough.
        try:
            conn = self._conn_factory.connect()
            conn.close()
        except mysql.connector.Error as e:
            raise EventChannelDisconnected(str(e)) from e

    def fetch(
        self, room: str, after_cursor: int, *, not_before: Optional[datetime] = None
    ) -> tuple[Sequence[DeviceEvent], int]:
        clauses = ["de.room=%s", "de.event_id > %s"]
        params: list[object] = [room, int(after_cursor)]
        if not_before is not None:
            clauses.append("de.occurred_at >= %s")
            params.append(not_before)
        where = " AND ".join(clauses)
        params.append(self._batch_size)

        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"""
                    SELECT de.event_id, de.kind, de.sensor_id, de.weight, de.occurred_at,
                           COALESCE(de.student_id, s.student_id) AS student_id
                    FROM device_events de
                    LEFT JOIN students s ON s.rfid_uid = de.rfid_uid AND de.rfid_uid <> ''
                    WHERE {where}
                    ORDER BY de.event_id ASC
                    LIMIT %s
                    """,
                    tuple(params),
                )
                rows = fetchall(cur)
        except mysql.connector.Error as e:
            raise EventChannelDisconnected(f"device feed query failed: {e}") from e

        events: list[DeviceEvent] = []
        cursor = int(after_cursor)
        for r in rows:
            cursor = max(cursor, int(r["event_id"]))
            if r["kind"] == EventKind.TAP.value:
                if not r.get("student_id"):
                    # Unknown card; nothing to attribute it to.
                    continue
                events.append(TapEvent(student_id=str(r["student_id"]), timestamp=r["occurred_at"]))
            elif r["kind"] == EventKind.WEIGHT.value and r.get("sensor_id"):
                events.append(
                    WeightEvent(sensor_id=str(r["sensor_id"]), weight=float(r.get("weight") or 0), timestamp=r["occurred_at"])
                )
        return events, cursor
