from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import Classification


@dataclass(frozen=True)
class ClassificationDecision:
    classification: Classification
    note: Optional[str] = None


class ClassificationStrategy(ABC):
    """Strategy Pattern: encapsulate how a confirmed tap is classified."""

    @abstractmethod
    def decide(self, *, tap_timestamp: datetime, session_start: datetime, grace_window_ms: int) -> ClassificationDecision:
        raise NotImplementedError
