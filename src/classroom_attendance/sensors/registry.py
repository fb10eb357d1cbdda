from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Optional

from ..roster.model import StudentIdentity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SensorBinding:
    sensor_id: str
    student_id: str
    session_scoped: bool


class SensorBindingRegistry:
    """Maps seat weight sensors to students.

    Guarded by its own lock: assignments happen from request threads while
    the reconciliation loop resolves bindings. Readers call ``resolve`` when
    a reading is applied, so a reassignment only affects readings applied
    after it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._by_sensor: dict[str, SensorBinding] = {}
        self._on_file: dict[str, str] = {}

    def load_roster(self, roster: Iterable[StudentIdentity]) -> None:
        """Replace all bindings with the ones the roster source has on file."""

        with self._lock:
            self._by_sensor.clear()
            self._on_file = {
                student.sensor_binding: student.student_id for student in roster if student.sensor_binding
            }
            for sensor_id, student_id in self._on_file.items():
                self._bind(sensor_id, student_id, session_scoped=False)

    def assign(self, sensor_id: str, student_id: str, *, session_scoped: bool = True) -> SensorBinding:
        with self._lock:
            return self._bind(sensor_id, student_id, session_scoped=session_scoped)

    def _bind(self, sensor_id: str, student_id: str, *, session_scoped: bool) -> SensorBinding:
        # A student sits on one seat: drop any other sensor pointing at them.
        for other in [s for s, b in self._by_sensor.items() if b.student_id == student_id and s != sensor_id]:
            del self._by_sensor[other]

        binding = SensorBinding(sensor_id=sensor_id, student_id=student_id, session_scoped=session_scoped)
        previous = self._by_sensor.get(sensor_id)
        self._by_sensor[sensor_id] = binding
        if previous and previous.student_id != student_id:
            logger.info("sensor %s reassigned from %s to %s", sensor_id, previous.student_id, student_id)
        return binding

    def release(self, sensor_id: str) -> bool:
        with self._lock:
            return self._by_sensor.pop(sensor_id, None) is not None

    def resolve(self, sensor_id: str) -> Optional[str]:
        with self._lock:
            binding = self._by_sensor.get(sensor_id)
            return binding.student_id if binding else None

    def sensor_for(self, student_id: str) -> Optional[str]:
        with self._lock:
            for binding in self._by_sensor.values():
                if binding.student_id == student_id:
                    return binding.sensor_id
            return None

    def clear_session_scoped(self) -> int:
        """Drop live assignments and fall back to the bindings on file.

        Returns the number of assignments dropped.
        """

        with self._lock:
            scoped = [s for s, b in self._by_sensor.items() if b.session_scoped]
            for sensor_id in scoped:
                del self._by_sensor[sensor_id]

            bound_students = {b.student_id for b in self._by_sensor.values()}
            for sensor_id, student_id in self._on_file.items():
                if sensor_id not in self._by_sensor and student_id not in bound_students:
                    self._bind(sensor_id, student_id, session_scoped=False)
                    bound_students.add(student_id)
            return len(scoped)

    def clear(self) -> None:
        with self._lock:
            self._by_sensor.clear()
            self._on_file.clear()

    def snapshot(self) -> list[SensorBinding]:
        with self._lock:
            return sorted(self._by_sensor.values(), key=lambda b: b.sensor_id)
