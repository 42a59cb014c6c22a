import datetime

from prayerclock.utils.time_utils import (
    add_minutes_to_str, add_months, days_in_month, prefetch_horizon, strip_timezone_suffix, to_24_hour,
    parse_time_str, format_time_obj,
)


def test_add_minutes_to_str_applies_gap():
    assert add_minutes_to_str("05:30", 20) == "05:50"
    assert add_minutes_to_str("19:45", 10) == "19:55"


def test_add_minutes_to_str_wraps_and_subtracts():
    assert add_minutes_to_str("23:50", 15) == "00:05"
    assert add_minutes_to_str("05:00", -1) == "04:59"


def test_add_minutes_to_str_invalid_input():
    assert add_minutes_to_str(None, 10) is None
    assert add_minutes_to_str("not a time", 10) is None
    assert add_minutes_to_str("05:30", None) is None


def test_parse_and_format_round_trip_seconds_dropped():
    assert format_time_obj(parse_time_str("05:30:45")) == "05:30"
    assert parse_time_str("N/A") is None


def test_strip_timezone_suffix():
    assert strip_timezone_suffix("05:01 (+0530)") == "05:01"
    assert strip_timezone_suffix("18:20") == "18:20"
    assert strip_timezone_suffix(None) is None


def test_to_24_hour_noon_and_midnight():
    assert to_24_hour("12:10", "PM") == "12:10"
    assert to_24_hour("12:10", "AM") == "00:10"
    assert to_24_hour("3:21", "PM") == "15:21"
    assert to_24_hour("4:44", "AM") == "04:44"


def test_days_in_month_leap_year():
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2025, 2) == 28


def test_add_months_rolls_over_year():
    assert add_months(2025, 11, 3) == (2026, 2)
    assert add_months(2025, 1, 0) == (2025, 1)


def test_prefetch_horizon_default_runs_to_march_next_year():
    months = prefetch_horizon(datetime.date(2025, 10, 16))
    assert months == [(2025, 10), (2025, 11), (2025, 12), (2026, 1), (2026, 2), (2026, 3)]


def test_prefetch_horizon_fixed_length():
    months = prefetch_horizon(datetime.date(2025, 11, 2), horizon_months=4)
    assert months == [(2025, 11), (2025, 12), (2026, 1), (2026, 2)]
