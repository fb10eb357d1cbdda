from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StudentIdentity:
    """Enrolled student as seen by one session.

    Optional text fields are "" rather than None. ``sensor_binding`` is only
    the seat sensor the roster source had on file; live assignments are kept
    in the sensor binding registry.
    """

    student_id: str
    display_name: str = ""
    contact_info: str = ""
    rfid_uid: str = ""
    sensor_binding: Optional[str] = None
