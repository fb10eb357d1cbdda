from classroom_attendance.roster.model import StudentIdentity
from classroom_attendance.sensors.registry import SensorBindingRegistry


def test_roster_bindings_are_loaded(bindings):
    assert bindings.resolve("Sensor1") == "s1"
    assert bindings.resolve("Sensor2") == "s2"
    assert bindings.resolve("Sensor3") is None
    assert bindings.sensor_for("s2") == "Sensor2"


def test_student_keeps_one_sensor(bindings):
    bindings.assign("Sensor3", "s1")

    assert bindings.resolve("Sensor3") == "s1"
    assert bindings.resolve("Sensor1") is None
    assert bindings.sensor_for("s1") == "Sensor3"


def test_clearing_session_assignments_restores_bindings_on_file(bindings):
    bindings.assign("Sensor3", "s1")
    bindings.assign("Sensor2", "s3")

    assert bindings.clear_session_scoped() == 2

    assert bindings.resolve("Sensor1") == "s1"
    assert bindings.resolve("Sensor2") == "s2"
    assert bindings.resolve("Sensor3") is None


def test_release_and_snapshot():
    registry = SensorBindingRegistry()
    registry.load_roster([StudentIdentity(student_id="s1", sensor_binding="Sensor1")])
    registry.assign("Sensor2", "s2")

    assert [b.sensor_id for b in registry.snapshot()] == ["Sensor1", "Sensor2"]
    assert registry.release("Sensor2")
    assert not registry.release("Sensor2")
