from __future__ import annotations

import logging
from typing import Optional

from ..common.validators import text_or_empty
from ..schedules.model import Session
from .model import StudentIdentity
from .repository import RosterSource

logger = logging.getLogger(__name__)


class RosterLoader:
    def __init__(self, roster: RosterSource):
        self._roster = roster

    def load(self, session: Session) -> tuple[StudentIdentity, ...]:
        """Return the session's roster in enrollment order.

        An empty tuple is a valid (empty) class. RosterUnavailable from the
        source is propagated, never turned into an empty roster.
        """

        rows = self._roster.get_roster(session.key)

        seen: set[str] = set()
        out: list[StudentIdentity] = []
        for r in rows:
            student_id = text_or_empty(r.student_id).strip()
            if not student_id:
                logger.warning("roster row without student id in %s: %r", session.session_id, r)
                continue
            if student_id in seen:
                logger.warning("student %s listed twice in %s; keeping first", student_id, session.session_id)
                continue
            seen.add(student_id)
            out.append(
                StudentIdentity(
                    student_id=student_id,
                    display_name=text_or_empty(r.display_name),
                    contact_info=text_or_empty(r.contact_info),
                    rfid_uid=text_or_empty(r.rfid_uid),
                    sensor_binding=_optional_text(r.sensor_binding),
                )
            )

        logger.info("loaded %d students for %s", len(out), session.session_id)
        return tuple(out)


def _optional_text(value: Optional[str]) -> Optional[str]:
    value = text_or_empty(value).strip()
    return value or None
