from __future__ import annotations

import pytest

from classroom_attendance.attendance.model import GraceConfig
from classroom_attendance.roster.model import StudentIdentity
from classroom_attendance.schedules.model import Session
from classroom_attendance.sensors.registry import SensorBindingRegistry

from support import FakeRecordStore, make_session


@pytest.fixture()
def session() -> Session:
    return make_session()


@pytest.fixture()
def roster() -> tuple[StudentIdentity, ...]:
    return (
        StudentIdentity(student_id="s1", display_name="Alice Tran", contact_info="alice@uni.edu", rfid_uid="UID-1", sensor_binding="Sensor1"),
        StudentIdentity(student_id="s2", display_name="Bao Le", contact_info="bao@uni.edu", rfid_uid="UID-2", sensor_binding="Sensor2"),
        StudentIdentity(student_id="s3", display_name="Chi Pham", rfid_uid="UID-3"),
    )


@pytest.fixture()
def bindings(roster) -> SensorBindingRegistry:
    registry = SensorBindingRegistry()
    registry.load_roster(roster)
    return registry


@pytest.fixture()
def grace() -> GraceConfig:
    return GraceConfig()


@pytest.fixture()
def record_store() -> FakeRecordStore:
    return FakeRecordStore()
