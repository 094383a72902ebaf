"""
Tests for calendar-day resolution
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from app.exceptions import InvalidDate, InvalidTarget
from app.time_utils import (calendar_date_to_utc_midnight, find_preset_for_offset, format_calendar_date,
                            format_utc_offset, get_timezone_preset, iter_days, parse_calendar_date,
                            storage_key, sunday_based_weekday, to_calendar_date, today, validate_offset)


class TestCalendarDate:
    def test_utc_plus_seven_rolls_over_to_next_day(self):
        instant = datetime(2024, 3, 9, 18, 30, tzinfo=timezone.utc)
        assert to_calendar_date(instant, 420) == date(2024, 3, 10)

    def test_negative_offset_stays_on_previous_day(self):
        instant = datetime(2024, 3, 10, 3, 0, tzinfo=timezone.utc)
        assert to_calendar_date(instant, -480) == date(2024, 3, 9)

    def test_naive_datetime_is_treated_as_utc(self):
        assert to_calendar_date(datetime(2024, 3, 10, 23, 0), 0) == date(2024, 3, 10)

    def test_today_uses_given_now(self):
        now = datetime(2024, 12, 31, 20, 0, tzinfo=timezone.utc)
        assert today(420, now=now) == date(2025, 1, 1)
        assert today(-300, now=now) == date(2024, 12, 31)

    def test_utc_midnight_round_trip(self):
        day = date(2024, 2, 29)
        midnight = calendar_date_to_utc_midnight(day)
        assert midnight == datetime(2024, 2, 29, tzinfo=timezone.utc)
        assert to_calendar_date(midnight, 0) == day

    def test_utc_midnight_drops_time_of_day(self):
        midnight = calendar_date_to_utc_midnight(datetime(2024, 2, 29, 15, 45))
        assert midnight == datetime(2024, 2, 29, tzinfo=timezone.utc)

    def test_storage_key_is_naive(self):
        assert storage_key(date(2024, 1, 5)) == datetime(2024, 1, 5)


OFFSETS = [-720, -300, 0, 420, 840]
INSTANTS = [
    datetime(2024, 3, 10, 0, 0, tzinfo=timezone.utc),
    datetime(2024, 3, 10, 11, 59, tzinfo=timezone.utc),
    datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
]


class TestCanonicalKey:
    @pytest.mark.parametrize("tz_offset", OFFSETS)
    @pytest.mark.parametrize("instant", INSTANTS)
    def test_round_trip_is_stable(self, instant, tz_offset):
        day = to_calendar_date(instant, tz_offset)
        once = calendar_date_to_utc_midnight(day)
        twice = calendar_date_to_utc_midnight(once)
        assert once == twice
        assert (once.hour, once.minute, once.second) == (0, 0, 0)
        # the stored key reads back as the same calendar day
        assert to_calendar_date(once, 0) == day
        assert storage_key(once) == storage_key(day)

    @pytest.mark.parametrize("tz_offset", OFFSETS)
    def test_same_local_day_shares_one_key(self, tz_offset):
        local_midnight = datetime(2024, 3, 10, tzinfo=timezone(timedelta(minutes=tz_offset)))
        start = local_midnight.astimezone(timezone.utc)
        end = (local_midnight + timedelta(hours=23, minutes=59)).astimezone(timezone.utc)

        start_key = storage_key(to_calendar_date(start, tz_offset))
        end_key = storage_key(to_calendar_date(end, tz_offset))
        assert start_key == end_key == datetime(2024, 3, 10)

    @pytest.mark.parametrize("tz_offset", OFFSETS)
    def test_next_local_day_gets_next_key(self, tz_offset):
        local_midnight = datetime(2024, 3, 11, tzinfo=timezone(timedelta(minutes=tz_offset)))
        assert storage_key(to_calendar_date(local_midnight, tz_offset)) == datetime(2024, 3, 11)



class TestParsing:
    def test_parse_valid_date(self):
        assert parse_calendar_date("2024-03-10") == date(2024, 3, 10)
        assert format_calendar_date(date(2024, 3, 10)) == "2024-03-10"

    @pytest.mark.parametrize("value", ["2024/03/10", "10-03-2024", "2024-3-10", "", "yesterday", "2024-13-01"])
    def test_parse_rejects_malformed_values(self, value):
        with pytest.raises(InvalidDate):
            parse_calendar_date(value)

    def test_invalid_date_is_an_invalid_target(self):
        with pytest.raises(InvalidTarget):
            parse_calendar_date("2024-02-30")


class TestWeekdaysAndRanges:
    def test_sunday_is_zero(self):
        assert sunday_based_weekday(date(2024, 3, 10)) == 0  # Sunday
        assert sunday_based_weekday(date(2024, 3, 11)) == 1  # Monday
        assert sunday_based_weekday(date(2024, 3, 16)) == 6  # Saturday

    def test_iter_days_is_inclusive_and_ascending(self):
        days = list(iter_days(date(2024, 2, 27), date(2024, 3, 1)))
        assert days == [date(2024, 2, 27), date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]

    def test_iter_days_empty_when_reversed(self):
        assert list(iter_days(date(2024, 3, 2), date(2024, 3, 1))) == []


class TestTimezonePresets:
    def test_default_preset_is_vietnam(self):
        preset = get_timezone_preset("vietnam")
        assert preset.offset == 420
        assert preset.is_default
        assert preset.utc_offset == "+07:00"

    def test_unknown_preset(self):
        with pytest.raises(InvalidTarget):
            get_timezone_preset("mars")

    def test_find_preset_for_offset(self):
        assert find_preset_for_offset(-480).id == "us_pacific"
        assert find_preset_for_offset(330) is None

    def test_format_utc_offset(self):
        assert format_utc_offset(-300) == "-05:00"
        assert format_utc_offset(330) == "+05:30"
        assert format_utc_offset(0) == "+00:00"

    def test_validate_offset_bounds(self):
        assert validate_offset(840) == 840
        assert validate_offset(-720) == -720
        with pytest.raises(InvalidTarget):
            validate_offset(900)
