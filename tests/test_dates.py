"""Tests for date helpers."""

from datetime import datetime, timezone

import pytest

from chesser_guesser.core.dates import (
    is_calendar_date,
    is_valid_date_string,
    time_until_reset,
    today_date_string,
)

LATE_EVENING_UTC = datetime(2024, 1, 15, 23, 30, tzinfo=timezone.utc)


def test_today_in_utc():
    assert today_date_string("UTC", now=LATE_EVENING_UTC) == "2024-01-15"


def test_today_follows_timezone():
    assert today_date_string("Asia/Tokyo", now=LATE_EVENING_UTC) == "2024-01-16"
    assert today_date_string("America/New_York", now=LATE_EVENING_UTC) == "2024-01-15"


def test_today_default_has_expected_shape():
    assert is_valid_date_string(today_date_string())


@pytest.mark.parametrize(
    "value,shape,calendar",
    [
        ("2024-01-15", True, True),
        ("2024-02-29", True, True),
        ("2023-02-29", True, False),
        ("2024-13-40", True, False),
        ("2024-1-15", False, False),
        ("", False, False),
    ],
)
def test_date_validation(value, shape, calendar):
    assert is_valid_date_string(value) is shape
    assert is_calendar_date(value) is calendar


def test_time_until_reset_utc():
    countdown = time_until_reset("UTC", now=LATE_EVENING_UTC)

    assert (countdown.hours, countdown.minutes, countdown.seconds) == (0, 30, 0)
    assert countdown.total_ms == 30 * 60 * 1000


def test_time_until_reset_other_timezone():
    # 23:30 UTC is 18:30 in New York in January
    countdown = time_until_reset("America/New_York", now=LATE_EVENING_UTC)

    assert (countdown.hours, countdown.minutes) == (5, 30)


def test_time_until_reset_across_dst_change():
    # New York springs forward on 2024-03-10, so that day is 23 hours long
    start_of_day = datetime(2024, 3, 10, 5, 0, tzinfo=timezone.utc)
    countdown = time_until_reset("America/New_York", now=start_of_day)

    assert countdown.hours == 23
