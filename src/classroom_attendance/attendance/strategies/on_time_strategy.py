from __future__ import annotations

from datetime import datetime

from ...core.enums import Classification
from .base import ClassificationDecision, ClassificationStrategy


class OnTimeStrategy(ClassificationStrategy):
    """Tap within the grace window."""

    def decide(self, *, tap_timestamp: datetime, session_start: datetime, grace_window_ms: int) -> ClassificationDecision:
        return ClassificationDecision(classification=Classification.PRESENT)
