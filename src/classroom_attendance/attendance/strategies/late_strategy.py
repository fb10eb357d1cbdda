from __future__ import annotations

from datetime import datetime

from ...core.enums import Classification
from .base import ClassificationDecision, ClassificationStrategy


class LateStrategy(ClassificationStrategy):
    """Tap after the grace window."""

    def decide(self, *, tap_timestamp: datetime, session_start: datetime, grace_window_ms: int) -> ClassificationDecision:
        minutes_late = int((tap_timestamp - session_start).total_seconds() // 60)
        return ClassificationDecision(classification=Classification.LATE, note=f"{minutes_late} min after start")
