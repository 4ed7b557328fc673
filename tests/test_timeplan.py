"""Tests for time and calendar primitives."""

from datetime import date, datetime

import pandas as pd
import pytest

from shiftplanner.services.timeplan import (
    Weekday,
    clamp,
    day_date,
    day_index,
    from_storage,
    local_timestamp,
    minutes_from_midnight,
    month_bounds,
    snap,
    snap_and_clamp,
    time_label,
    to_storage,
    week_anchor_date,
    week_bounds,
    week_dates,
    week_start,
)


@pytest.mark.parametrize(
    "minutes,expected",
    [(0, 0), (7, 0), (8, 15), (22, 15), (23, 30), (-7, 0), (-8, -15), (1439, 1440)],
)
def test_snap_rounds_to_nearest_step(minutes, expected):
    """Snapping goes to the nearest 15 minutes; exact ties go up."""
    assert snap(minutes) == expected


def test_snap_with_custom_and_invalid_step():
    assert snap(44, step=30) == 30
    assert snap(45, step=30) == 60
    assert snap(44, step=0) == 44


def test_clamp_and_snap_and_clamp():
    assert clamp(5, 10, 20) == 10
    assert clamp(25, 10, 20) == 20
    assert snap_and_clamp(1107, 390, 1080) == 1080
    assert snap_and_clamp(380, 390, 1080) == 390


def test_week_start_is_monday_midnight():
    """Any instant in the week floors to local Monday 00:00."""
    ts = week_start(datetime(2025, 3, 6, 15, 45), "UTC")
    assert ts == pd.Timestamp("2025-03-03 00:00", tz="UTC")
    assert week_anchor_date(date(2025, 3, 9), "UTC") == date(2025, 3, 3)
    assert week_anchor_date(date(2025, 3, 10), "UTC") == date(2025, 3, 10)


def test_week_start_uses_local_calendar_for_aware_values():
    """Sunday 20:00 UTC is already Monday in Sydney."""
    sunday_evening_utc = pd.Timestamp("2025-03-09 20:00", tz="UTC")
    assert week_anchor_date(sunday_evening_utc, "UTC") == date(2025, 3, 3)
    assert week_anchor_date(sunday_evening_utc, "Australia/Sydney") == date(2025, 3, 10)


def test_week_bounds_across_dst_change():
    """The Sydney week containing the April DST end is 169 hours long."""
    start, end = week_bounds(date(2025, 4, 2), "Australia/Sydney")
    assert start.date() == date(2025, 3, 31)
    assert end.date() == date(2025, 4, 7)
    assert (end - start) == pd.Timedelta(hours=169)


def test_week_dates_and_day_date():
    dates = week_dates(date(2025, 3, 5), "UTC")
    assert dates[0] == date(2025, 3, 3)
    assert dates[-1] == date(2025, 3, 9)
    assert day_date(date(2025, 3, 5), Weekday.SUN, "UTC") == date(2025, 3, 9)


def test_local_timestamp_wall_clock_and_end_of_day():
    ts = local_timestamp(date(2025, 3, 3), Weekday.TUE, 9 * 60 + 30, "Australia/Sydney")
    assert ts.tz is not None
    assert (ts.hour, ts.minute) == (9, 30)
    assert ts.date() == date(2025, 3, 4)

    midnight = local_timestamp(date(2025, 3, 3), Weekday.MON, 1440, "UTC")
    assert midnight == pd.Timestamp("2025-03-04 00:00", tz="UTC")


def test_local_timestamp_shifts_forward_in_dst_gap():
    """02:30 does not exist on 5 Oct 2025 in Sydney; it moves to 03:00."""
    ts = local_timestamp(date(2025, 9, 29), Weekday.SUN, 150, "Australia/Sydney")
    assert (ts.hour, ts.minute) == (3, 0)


def test_minutes_and_day_index_round_trip():
    ts = local_timestamp(date(2025, 3, 3), Weekday.FRI, 17 * 60 + 15, "Australia/Sydney")
    assert minutes_from_midnight(ts, "Australia/Sydney") == 17 * 60 + 15
    assert day_index(ts, "Australia/Sydney") == Weekday.FRI


def test_storage_conversion_is_naive_utc():
    aware = pd.Timestamp("2025-03-03 09:00", tz="Australia/Sydney")
    stored = to_storage(aware)
    assert stored.tzinfo is None
    assert stored == datetime(2025, 3, 2, 22, 0)
    assert from_storage(stored) == aware

    with pytest.raises(ValueError):
        to_storage(datetime(2025, 3, 3, 9, 0))


def test_month_bounds_follow_anchor_week():
    """The week of Mon 31 Mar 2025 belongs to March."""
    assert month_bounds(date(2025, 4, 2), "UTC") == (date(2025, 3, 1), date(2025, 4, 1))
    assert month_bounds(date(2025, 12, 10), "UTC") == (date(2025, 12, 1), date(2026, 1, 1))


def test_weekday_conversions():
    assert Weekday.from_date(date(2025, 3, 3)) == Weekday.MON
    assert Weekday.from_calendar_weekday(1) == Weekday.SUN
    assert Weekday.from_calendar_weekday(2) == Weekday.MON
    assert Weekday.SAT.to_calendar_weekday() == 7
    assert Weekday.WED.short_name == "Wed"
    assert Weekday.WED.full_name == "Wednesday"


def test_time_label():
    assert time_label(0) == "12:00 AM"
    assert time_label(9 * 60) == "9:00 AM"
    assert time_label(12 * 60 + 30) == "12:30 PM"
    assert time_label(17 * 60 + 45) == "5:45 PM"
    assert time_label(1440) == "12:00 AM"
