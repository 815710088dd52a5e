"""Tests for shared utility functions."""

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from roomslots.utils import (
    format_minutes,
    local_day_bounds,
    parse_hhmm,
    parse_iso_date,
    to_local,
)


class TestParseHhmm:
    def test_valid_time(self):
        assert parse_hhmm("09:30") == time(9, 30)

    def test_strips_whitespace(self):
        assert parse_hhmm(" 17:00 ") == time(17, 0)

    @pytest.mark.parametrize("value", ["9:30", "24:00", "12:60", "noon", "", None])
    def test_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            parse_hhmm(value)


class TestFormatMinutes:
    def test_pads_hours_and_minutes(self):
        assert format_minutes(9 * 60 + 5) == "09:05"

    def test_end_of_day(self):
        assert format_minutes(1440) == "24:00"


class TestParseIsoDate:
    def test_valid_date(self):
        assert parse_iso_date("2026-10-19") == date(2026, 10, 19)

    @pytest.mark.parametrize("value", ["2026-1-9", "2026-02-30", "20261019", "", None])
    def test_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            parse_iso_date(value)


class TestTimezones:
    def test_naive_is_taken_as_local(self):
        tz = ZoneInfo("Europe/Berlin")
        local = to_local(datetime(2026, 10, 19, 10, 0), tz)
        assert local.tzinfo is tz
        assert local.hour == 10

    def test_aware_is_converted(self):
        tz = ZoneInfo("Europe/Berlin")
        local = to_local(datetime(2026, 7, 1, 8, 0, tzinfo=timezone.utc), tz)
        assert local.hour == 10

    def test_day_bounds(self):
        tz = ZoneInfo("UTC")
        start, end = local_day_bounds(date(2026, 12, 31), tz)
        assert start == datetime(2026, 12, 31, tzinfo=tz)
        assert end == datetime(2027, 1, 1, tzinfo=tz)
