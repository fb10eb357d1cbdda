from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..common.validators import require_non_empty
from ..core.enums import RecordStatus
from ..core.exceptions import ValidationError, WriteFailure
from ..stats.service import RecordSummary, summarize_records
from .model import AttendanceRecord
from .repository import RecordStore

logger = logging.getLogger(__name__)


class RecordHistoryService:
    """Review and correct submitted attendance.

    Records are never edited in place: a correction stores a new record and
    removes the old one in the same transaction.
    """

    def __init__(self, records: RecordStore):
        self._records = records

    def list_records(
        self,
        *,
        start: date,
        end: date,
        subject_code: Optional[str] = None,
        section_name: Optional[str] = None,
        student_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        if end < start:
            raise ValidationError("End date must not be before start date")
        return self._records.list_records(
            start_date=start,
            end_date=end,
            subject_code=subject_code,
            section_name=section_name,
            student_id=student_id,
        )

    def summary(self, *, today: date, subject_code: Optional[str] = None, section_name: Optional[str] = None) -> RecordSummary:
        records = self._records.list_records(
            start_date=today - timedelta(days=29),
            end_date=today,
            subject_code=subject_code,
            section_name=section_name,
        )
        return summarize_records(records, today=today)

    def amend_status(
        self,
        *,
        record_id: int,
        new_status: RecordStatus,
        actor: str,
        now: datetime,
        confirm: bool = False,
    ) -> AttendanceRecord:
        actor = require_non_empty(actor, "Instructor")
        new_status = RecordStatus(new_status)

        current = self._records.get_by_id(int(record_id))
        if not current:
            raise ValidationError("Attendance record not found")
        if current.status == new_status:
            return current
        if not confirm:
            raise ValidationError("Changing a submitted record needs explicit confirmation")

        # submitted_by stays: it is part of the resubmission key of the session.
        corrected = replace(current, record_id=None, status=new_status, timestamp=now, amended_by=actor)
        if not self._records.replace_records([int(record_id)], [corrected]):
            raise WriteFailure("Correction was not stored")

        logger.info(
            "record %s for %s corrected %s -> %s by %s",
            record_id,
            current.student_id,
            current.status.value,
            new_status.value,
            actor,
        )
        return corrected

    def delete_record(self, *, record_id: int, actor: str, confirm: bool = False) -> None:
        actor = require_non_empty(actor, "Instructor")
        if not confirm:
            raise ValidationError("Deleting a submitted record needs explicit confirmation")
        if not self._records.get_by_id(int(record_id)):
            raise ValidationError("Attendance record not found")
        if not self._records.delete_records([int(record_id)]):
            raise WriteFailure("Record was not deleted")
        logger.info("record %s deleted by %s", record_id, actor)
