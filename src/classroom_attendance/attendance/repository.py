from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class RecordStore(Protocol):
    def query_existing(self, session_id: str, submitted_by: str, record_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def write_records(self, records: Sequence[AttendanceRecord]) -> bool:
        """Write a batch. All rows are stored or none are."""

        raise NotImplementedError

    def delete_records(self, record_ids: Sequence[int]) -> bool:
        raise NotImplementedError

    def replace_records(self, delete_ids: Sequence[int], records: Sequence[AttendanceRecord]) -> bool:
        """Delete then write in one transaction (overwrite/correction)."""

        raise NotImplementedError

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_records(
        self,
        *,
        start_date: date,
        end_date: date,
        subject_code: Optional[str] = None,
        section_name: Optional[str] = None,
        student_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
