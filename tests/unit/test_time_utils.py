"""Tests for gigbook.utils.time_utils and gigbook.core.timezone_utils."""
from __future__ import annotations

from datetime import date, datetime, time, timezone

import pytest

from gigbook.core.exceptions import InvalidTimeRangeException, ValidationException
from gigbook.core.timezone_utils import combine_local, ensure_aware
from gigbook.utils.time_utils import (
    duration_minutes,
    parse_calendar_date,
    parse_time_of_day,
    time_to_minutes,
    validate_time_range,
)


class TestParseTimeOfDay:
    def test_accepts_hh_mm(self) -> None:
        assert parse_time_of_day("10:30") == time(10, 30)

    def test_accepts_hh_mm_ss(self) -> None:
        assert parse_time_of_day("07:05:09") == time(7, 5, 9)

    def test_end_of_day_sentinel_maps_to_midnight(self) -> None:
        assert parse_time_of_day("24:00") == time(0, 0)

    def test_passes_time_objects_through(self) -> None:
        assert parse_time_of_day(time(9, 0)) == time(9, 0)

    @pytest.mark.parametrize("value", ["25:00", "ten", "", 930])
    def test_rejects_garbage(self, value) -> None:
        with pytest.raises(ValidationException) as exc_info:
            parse_time_of_day(value)
        assert exc_info.value.code == "INVALID_TIME"


def test_parse_calendar_date() -> None:
    assert parse_calendar_date("2030-06-15") == date(2030, 6, 15)
    assert parse_calendar_date(datetime(2030, 6, 15, 12, 0)) == date(2030, 6, 15)
    with pytest.raises(ValidationException):
        parse_calendar_date("15/06/2030")


def test_midnight_end_counts_as_end_of_day() -> None:
    assert time_to_minutes(time(0, 0)) == 0
    assert time_to_minutes(time(0, 0), is_end_time=True) == 1440


def test_validate_time_range_rejects_inverted_and_empty_windows() -> None:
    with pytest.raises(InvalidTimeRangeException):
        validate_time_range("10:00", "09:00")
    with pytest.raises(InvalidTimeRangeException):
        validate_time_range("10:00", "10:00")
    assert validate_time_range("22:00", "24:00") == (time(22, 0), time(0, 0))


def test_duration_minutes() -> None:
    assert duration_minutes("10:00", "12:30") == 150
    assert duration_minutes("23:00", "00:00") == 60


def test_combine_local_uses_platform_timezone() -> None:
    # Santo Domingo is UTC-4 all year
    start = combine_local(date(2030, 6, 15), time(20, 0), tz_name="America/Santo_Domingo")
    assert start == datetime(2030, 6, 16, 0, 0, tzinfo=timezone.utc)


def test_combine_local_midnight_end_rolls_to_next_day() -> None:
    end = combine_local(
        date(2030, 6, 15), time(0, 0), is_end_time=True, tz_name="America/Santo_Domingo"
    )
    assert end == datetime(2030, 6, 16, 4, 0, tzinfo=timezone.utc)


def test_ensure_aware_treats_naive_as_utc() -> None:
    naive = datetime(2030, 1, 1, 12, 0)
    assert ensure_aware(naive) == datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
