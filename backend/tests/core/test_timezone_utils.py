from datetime import date, datetime, time, timedelta, timezone

import pytest

from app.core.timezone_utils import (
    add_months,
    ensure_utc,
    format_studio_date,
    format_studio_time,
    studio_datetime,
    studio_day_bounds,
    to_studio_time,
)


def test_naive_values_are_studio_local():
    result = ensure_utc(datetime(2030, 3, 4, 10, 0))
    assert result == datetime(2030, 3, 4, 3, 0, tzinfo=timezone.utc)


def test_aware_values_are_converted():
    plus_nine = timezone(timedelta(hours=9))
    result = ensure_utc(datetime(2030, 3, 4, 10, 0, tzinfo=plus_nine))
    assert result == datetime(2030, 3, 4, 1, 0, tzinfo=timezone.utc)
    assert result.tzinfo == timezone.utc


def test_studio_datetime_round_trip():
    start = studio_datetime(date(2030, 3, 4), time(7, 0))
    assert start.hour == 0
    assert to_studio_time(start).hour == 7


def test_day_bounds_span_24_hours():
    start, end = studio_day_bounds(date(2030, 1, 1))
    assert start == datetime(2029, 12, 31, 17, 0, tzinfo=timezone.utc)
    assert end - start == timedelta(days=1)


def test_formatting_uses_studio_time():
    value = datetime(2030, 3, 4, 23, 30, tzinfo=timezone.utc)
    assert format_studio_date(value) == "05/03/2030"
    assert format_studio_time(value) == "06:30"


@pytest.mark.parametrize(
    "start, months, expected",
    [
        (date(2030, 1, 31), 1, date(2030, 2, 28)),
        (date(2028, 1, 31), 1, date(2028, 2, 29)),
        (date(2030, 11, 15), 3, date(2031, 2, 15)),
        (date(2030, 12, 31), 6, date(2031, 6, 30)),
    ],
)
def test_add_months_clamps_day(start, months, expected):
    assert add_months(start, months) == expected
