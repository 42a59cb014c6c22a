# tests/test_records.py

import datetime

import pytest

from prayerclock.services.helpers.records import PrayerDay, ProviderKind, make_provider_key

DAY = datetime.date(2025, 10, 16)


def test_correctly_ordered_day_has_no_violations(make_day):
    assert make_day(DAY, iqamah={"fajr": "05:10", "isha": "19:35"}).ordering_violations() == []


def test_out_of_order_azan_is_reported(make_day):
    problems = make_day(DAY, dhuhr="12:10", asr="11:45").ordering_violations()

    assert problems == ["asr azan 11:45 is before dhuhr azan 12:10"]


def test_sunrise_takes_part_in_the_ordering(make_day):
    problems = make_day(DAY, fajr="04:50", sunrise="04:30").ordering_violations()
    assert problems == ["sunrise azan 04:30 is before fajr azan 04:50"]


def test_iqamah_before_azan_is_reported(make_day):
    problems = make_day(DAY, maghrib="18:15", iqamah={"maghrib": "18:05"}).ordering_violations()

    assert problems == ["maghrib iqamah 18:05 is before azan 18:15"]


def test_missing_times_are_ignored(make_day):
    day = make_day(DAY, sunrise=None, asr=None)
    assert day.ordering_violations() == []
    assert PrayerDay.empty(DAY, ProviderKind.BACKEND, "1").ordering_violations() == []


def test_empty_day_is_dated_and_keyed():
    day = PrayerDay.empty(DAY, ProviderKind.THIRD_PARTY, "Colombo")
    assert day.is_empty
    assert day.provider_key == "AL_ADHAN_API:Colombo"


@pytest.mark.parametrize("provider, locality, expected", [
    (ProviderKind.MANUAL, "", "MANUAL"),
    (ProviderKind.BACKEND, "3", "MOSQUE_CLOCK_API:3"),
    (ProviderKind.SCRAPE_DIRECT, 3, "ACJU_DIRECT:3"),
])
def test_make_provider_key(provider, locality, expected):
    assert make_provider_key(provider, locality) == expected


def test_prayer_day_dict_round_trip(make_day):
    day = make_day(DAY, iqamah={"asr": "15:45"}, hijri_date="23 Rabee`unith Thaani 1447")
    assert PrayerDay.from_dict(day.to_dict()) == day
