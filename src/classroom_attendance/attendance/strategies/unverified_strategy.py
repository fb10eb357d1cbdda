from __future__ import annotations

from datetime import datetime

from ...core.enums import Classification
from .base import ClassificationDecision, ClassificationStrategy


class UnverifiedTapStrategy(ClassificationStrategy):
    """Tap whose seat never confirmed, kept as late under the lenient policy."""

    def decide(self, *, tap_timestamp: datetime, session_start: datetime, grace_window_ms: int) -> ClassificationDecision:
        return ClassificationDecision(classification=Classification.LATE, note="seat not confirmed")
