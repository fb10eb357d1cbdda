from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import ms
from ..core.enums import UnverifiedTapPolicy
from .strategies.base import ClassificationStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy
from .strategies.unverified_strategy import UnverifiedTapStrategy


@dataclass
class ClassificationStrategyFactory:
    """Factory Pattern: choose the classification strategy for a tap."""

    def for_confirmed_tap(self, *, tap_timestamp: datetime, session_start: datetime, grace_window_ms: int) -> ClassificationStrategy:
        # Inclusive: a tap exactly at start + grace is still on time.
        if tap_timestamp - session_start <= ms(grace_window_ms):
            return OnTimeStrategy()
        return LateStrategy()

    def for_unverified_tap(self, *, policy: UnverifiedTapPolicy) -> Optional[ClassificationStrategy]:
        """Strategy for a tap that timed out without weight, or None for absent."""

        if policy == UnverifiedTapPolicy.LATE:
            return UnverifiedTapStrategy()
        return None
