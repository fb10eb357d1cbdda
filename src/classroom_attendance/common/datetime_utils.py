from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Callable, Union

from ..core.constants import WEEKDAY_NAMES

Clock = Callable[[], datetime]


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp as sent by devices (naive, local time)."""
    return datetime.fromisoformat(value.strip())


def parse_clock_time(value: Union[str, time, timedelta]) -> time:
    """Parse a schedule time ("08:00", "8:00:30", time or MySQL TIME timedelta)."""

    if isinstance(value, time):
        return value

    if isinstance(value, timedelta):
        total_seconds = int(value.total_seconds()) % 86400
        return time(hour=total_seconds // 3600, minute=(total_seconds % 3600) // 60, second=total_seconds % 60)

    parts = str(value).strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time string: {value!r}")
    hours = int(parts[0])
    minutes = int(parts[1])
    seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
    return time(hour=hours, minute=minutes, second=seconds)


def weekday_name(value: date) -> str:
    return WEEKDAY_NAMES[value.weekday()]


def truncate_to_minute(value: datetime) -> datetime:
    return value.replace(second=0, microsecond=0)


def ms(value: int) -> timedelta:
    return timedelta(milliseconds=int(value))


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/inject a clock easily.
    """
    return datetime.now()
