from datetime import datetime

from classroom_attendance.attendance.factory import ClassificationStrategyFactory
from classroom_attendance.attendance.strategies.late_strategy import LateStrategy
from classroom_attendance.attendance.strategies.on_time_strategy import OnTimeStrategy
from classroom_attendance.attendance.strategies.unverified_strategy import UnverifiedTapStrategy
from classroom_attendance.core.enums import Classification, UnverifiedTapPolicy

GRACE_MS = 15 * 60_000


def test_factory_on_time_within_grace():
    start = datetime(2025, 1, 6, 8, 0)
    tap = datetime(2025, 1, 6, 8, 14, 59)

    factory = ClassificationStrategyFactory()
    strategy = factory.for_confirmed_tap(tap_timestamp=tap, session_start=start, grace_window_ms=GRACE_MS)

    assert isinstance(strategy, OnTimeStrategy)


def test_factory_grace_boundary_is_inclusive():
    start = datetime(2025, 1, 6, 8, 0)
    tap = datetime(2025, 1, 6, 8, 15, 0)

    strategy = ClassificationStrategyFactory().for_confirmed_tap(tap_timestamp=tap, session_start=start, grace_window_ms=GRACE_MS)

    assert isinstance(strategy, OnTimeStrategy)


def test_factory_late_after_grace():
    start = datetime(2025, 1, 6, 8, 0)
    tap = datetime(2025, 1, 6, 8, 15, 0, 1000)

    strategy = ClassificationStrategyFactory().for_confirmed_tap(tap_timestamp=tap, session_start=start, grace_window_ms=GRACE_MS)

    assert isinstance(strategy, LateStrategy)
    decision = strategy.decide(tap_timestamp=tap, session_start=start, grace_window_ms=GRACE_MS)
    assert decision.classification == Classification.LATE
    assert decision.note == "15 min after start"


def test_factory_tap_before_start_is_on_time():
    start = datetime(2025, 1, 6, 8, 0)
    tap = datetime(2025, 1, 6, 7, 50)

    strategy = ClassificationStrategyFactory().for_confirmed_tap(tap_timestamp=tap, session_start=start, grace_window_ms=0)

    assert isinstance(strategy, OnTimeStrategy)


def test_factory_unverified_tap_policy():
    factory = ClassificationStrategyFactory()

    assert factory.for_unverified_tap(policy=UnverifiedTapPolicy.ABSENT) is None
    assert isinstance(factory.for_unverified_tap(policy=UnverifiedTapPolicy.LATE), UnverifiedTapStrategy)
