from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.validators import require_non_empty
from ..core.exceptions import DuplicateSubmission, NoActiveSession, WriteFailure
from ..schedules.model import Session
from .machine import AttendanceStateMachine
from .model import AttendanceRecord, CommitResult
from .repository import RecordStore
from .state import final_status, state_timestamp, tap_seen, weight_confirmed

logger = logging.getLogger(__name__)


class CommitService:
    """Turns live attendance into stored records, then starts a fresh cycle."""

    def __init__(self, records: RecordStore):
        self._records = records

    def submit(
        self,
        session: Optional[Session],
        machine: Optional[AttendanceStateMachine],
        *,
        submitted_by: str,
        now: datetime,
        overwrite: bool = False,
    ) -> CommitResult:
        if session is None or machine is None:
            raise NoActiveSession("No active class session to submit")
        if machine.session.key != session.key:
            raise NoActiveSession("Live attendance belongs to a different session")

        submitted_by = require_non_empty(submitted_by, "Submitter")
        record_date = session.session_date

        existing = self._records.query_existing(session.session_id, submitted_by, record_date)
        if existing and not overwrite:
            raise DuplicateSubmission(
                f"Attendance for {session.session_id} was already submitted by {submitted_by}",
                existing_count=len(existing),
            )

        # Events applied after the snapshot are not in this batch; reset keeps them.
        states = machine.snapshot()
        records = tuple(
            AttendanceRecord(
                student_id=student.student_id,
                student_name=student.display_name,
                session_id=session.session_id,
                subject_code=session.subject_code,
                section_name=session.section_name,
                room=session.room,
                record_date=record_date,
                status=final_status(states[student.student_id]),
                confirmed_by_rfid=tap_seen(states[student.student_id]),
                confirmed_by_weight=weight_confirmed(states[student.student_id]),
                timestamp=state_timestamp(states[student.student_id]) or now,
                submitted_by=submitted_by,
            )
            for student in machine.roster
        )

        try:
            if existing:
                ok = self._records.replace_records([r.record_id for r in existing if r.record_id is not None], records)
            else:
                ok = self._records.write_records(records)
        except WriteFailure:
            logger.error("submit failed for %s; live attendance kept for retry", session.session_id)
            raise
        if not ok:
            logger.error("record store rejected batch for %s; live attendance kept for retry", session.session_id)
            raise WriteFailure(f"Attendance for {session.session_id} was not stored")

        machine.reset(states)
        cleared = machine.bindings.clear_session_scoped()

        logger.info(
            "submitted %d records for %s by %s (replaced %d, released %d sensor assignments)",
            len(records),
            session.session_id,
            submitted_by,
            len(existing),
            cleared,
        )
        return CommitResult(session_id=session.session_id, record_date=record_date, records=records, replaced=len(existing))
