"""Calendar helpers for the daily reset boundary."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from .seeded_random import DATE_PATTERN

DATE_REGEX = DATE_PATTERN.pattern


@dataclass
class TimeUntilReset:
    """Countdown to the next local midnight."""

    hours: int
    minutes: int
    seconds: int
    total_ms: int


def today_date_string(timezone: str = "UTC", now: Optional[datetime] = None) -> str:
    """Get the current date in the given timezone as YYYY-MM-DD."""
    tz = ZoneInfo(timezone)
    current = now.astimezone(tz) if now else datetime.now(tz)
    return current.strftime("%Y-%m-%d")


def is_valid_date_string(value: str) -> bool:
    """Check the YYYY-MM-DD shape only."""
    return DATE_PATTERN.match(value) is not None


def is_calendar_date(value: str) -> bool:
    """Check the YYYY-MM-DD shape and that the date exists."""
    match = DATE_PATTERN.match(value)
    if match is None:
        return False
    year, month, day = (int(part) for part in match.groups())
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def time_until_reset(timezone: str = "UTC", now: Optional[datetime] = None) -> TimeUntilReset:
    """Time remaining until the next midnight in the given timezone."""
    tz = ZoneInfo(timezone)
    current = now.astimezone(tz) if now else datetime.now(tz)
    next_midnight = datetime.combine(
        current.date() + timedelta(days=1), datetime.min.time(), tzinfo=tz
    )

    total_ms = max(0, int((next_midnight.timestamp() - current.timestamp()) * 1000))
    total_seconds = total_ms // 1000

    return TimeUntilReset(
        hours=total_seconds // 3600,
        minutes=(total_seconds % 3600) // 60,
        seconds=total_seconds % 60,
        total_ms=total_ms,
    )
