from __future__ import annotations

from typing import Protocol, Sequence

from ..schedules.model import SessionKey
from .model import StudentIdentity


class RosterSource(Protocol):
    def get_roster(self, session_key: SessionKey) -> Sequence[StudentIdentity]:
        """Students enrolled in the section, in enrollment order.

        Raises RosterUnavailable on transport errors.
        """

        raise NotImplementedError
