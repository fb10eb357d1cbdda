from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union


class EventKind(str, Enum):
    TAP = "tap"
    WEIGHT = "weight"


@dataclass(frozen=True)
class TapEvent:
    """Proximity card tap, already mapped to a student."""

    student_id: str
    timestamp: datetime

    @property
    def dedup_key(self) -> tuple:
        return (EventKind.TAP, self.student_id, self.timestamp)


@dataclass(frozen=True)
class WeightEvent:
    """Seat sensor reading. The student is found through the sensor binding."""

    sensor_id: str
    weight: float
    timestamp: datetime

    @property
    def dedup_key(self) -> tuple:
        return (EventKind.WEIGHT, self.sensor_id, self.timestamp)


DeviceEvent = Union[TapEvent, WeightEvent]
