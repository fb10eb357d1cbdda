from __future__ import annotations

import threading

import pytest

from classroom_attendance.attendance.loop import ReconciliationLoop
from classroom_attendance.attendance.machine import AttendanceStateMachine
from classroom_attendance.attendance.state import Absent, Confirmed, TapPending
from classroom_attendance.core.enums import Classification
from classroom_attendance.events.channel import EventChannel
from classroom_attendance.events.model import TapEvent, WeightEvent

from support import at


@pytest.fixture()
def channel() -> EventChannel:
    return EventChannel()


@pytest.fixture()
def loop(session, roster, grace, bindings, channel) -> ReconciliationLoop:
    machine = AttendanceStateMachine(session, roster, grace, bindings=bindings)
    return ReconciliationLoop(machine, channel, clock=lambda: at(8, 30))


def test_pump_applies_taps_before_weights(session, loop, channel):
    # Weight published first still confirms the tap from the same batch.
    channel.publish_weight(session.session_id, WeightEvent(sensor_id="Sensor1", weight=60.0, timestamp=at(8, 2)))
    channel.publish_tap(session.session_id, TapEvent(student_id="s1", timestamp=at(8, 1)))

    applied = loop.pump(at(8, 3))

    assert applied == 2
    state = loop.machine.state_of("s1")
    assert isinstance(state, Confirmed)
    assert state.classification == Classification.PRESENT


def test_pump_ticks_with_clock(session, loop, channel):
    channel.publish_tap(session.session_id, TapEvent(student_id="s2", timestamp=at(8, 0)))
    loop.pump(at(8, 1))
    assert isinstance(loop.machine.state_of("s2"), TapPending)

    loop.pump()

    assert isinstance(loop.machine.state_of("s2"), Absent)


def test_reading_from_unbound_sensor_is_skipped(session, loop, channel):
    channel.publish_tap(session.session_id, TapEvent(student_id="s1", timestamp=at(8, 1)))
    channel.publish_weight(session.session_id, WeightEvent(sensor_id="Sensor9", weight=60.0, timestamp=at(8, 2)))
    channel.publish_weight(session.session_id, WeightEvent(sensor_id="Sensor1", weight=60.0, timestamp=at(8, 2)))

    assert loop.pump(at(8, 3)) == 2
    assert isinstance(loop.machine.state_of("s1"), Confirmed)


def test_events_for_other_sessions_are_not_seen(loop, channel):
    channel.publish_tap("2025-01-06|MA201|B|R202", TapEvent(student_id="s1", timestamp=at(8, 1)))

    assert loop.pump(at(8, 2)) == 0


def test_stop_retires_subscriptions_and_drops_queue(session, loop, channel):
    channel.publish_tap(session.session_id, TapEvent(student_id="s1", timestamp=at(8, 1)))

    loop.stop()

    assert loop.stopped
    assert channel.active_subscriptions(session.session_id) == 0
    assert loop.pump(at(8, 2)) == 0
    assert channel.publish_tap(session.session_id, TapEvent(student_id="s1", timestamp=at(8, 3))) == 0


def test_background_thread_starts_and_stops(session, roster, grace, channel):
    machine = AttendanceStateMachine(session, roster, grace)
    loop = ReconciliationLoop(machine, channel, clock=lambda: at(8, 30), tick_seconds=0.01)

    loop.start()
    assert loop.running

    loop.stop()
    assert not loop.running


def test_paused_loop_blocks_other_pumps_until_released(session, loop, channel):
    channel.publish_tap(session.session_id, TapEvent(student_id="s1", timestamp=at(8, 1)))
    results = []
    worker = threading.Thread(target=lambda: results.append(loop.pump(at(8, 2))))

    with loop.paused():
        assert loop.pump(at(8, 1)) == 1
        worker.start()
        worker.join(timeout=0.2)
        assert worker.is_alive()

    worker.join(timeout=2.0)
    assert results == [0]
