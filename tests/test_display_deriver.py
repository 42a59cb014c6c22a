# tests/test_display_deriver.py

import datetime

from prayerclock.services.helpers.records import ProviderKind
from prayerclock.services.prayer_time.display_deriver import apply_apartment_adjustments, derive_display
from prayerclock.services.settings_source import EngineSettings

THURSDAY = datetime.date(2025, 10, 16)
FRIDAY = datetime.date(2025, 10, 17)


def _at(date_obj, clock):
    hour, minute = map(int, clock.split(":"))
    return datetime.datetime.combine(date_obj, datetime.time(hour, minute))


def _entry(schedule, prayer):
    return next(entry for entry in schedule.entries if entry.prayer == prayer)


def test_six_entries_in_canonical_order(make_day):
    schedule = derive_display(make_day(THURSDAY), EngineSettings(), _at(THURSDAY, "03:00"))

    assert [entry.prayer for entry in schedule.entries] == ["fajr", "sunrise", "dhuhr", "asr", "maghrib", "isha"]
    sunrise = _entry(schedule, "sunrise")
    assert sunrise.azan == "06:05"
    assert sunrise.iqamah is None
    assert not sunrise.is_next


def test_iqamah_prefers_explicit_value_then_configured_gap(make_day):
    day = make_day(THURSDAY, fajr="05:30", iqamah={"dhuhr": "12:30"})
    settings = EngineSettings(iqamah_gaps={"fajr": 20, "dhuhr": 10, "asr": 15, "maghrib": 5, "isha": 10})

    schedule = derive_display(day, settings, _at(THURSDAY, "03:00"))

    assert _entry(schedule, "fajr").iqamah == "05:50"
    assert _entry(schedule, "dhuhr").iqamah == "12:30"
    assert _entry(schedule, "asr").iqamah == "15:45"
    assert _entry(schedule, "maghrib").iqamah == "18:20"


def test_night_gathering_delays_thursday_isha(make_day):
    settings = EngineSettings(night_gathering_enabled=True, night_gathering_minutes=45)

    thursday = derive_display(make_day(THURSDAY, isha="19:25"), settings, _at(THURSDAY, "12:00"))
    friday = derive_display(make_day(FRIDAY, isha="19:25"), settings, _at(FRIDAY, "12:00"))

    assert _entry(thursday, "isha").iqamah == "20:10"
    assert _entry(friday, "isha").iqamah == "19:35"


def test_night_gathering_disabled_keeps_gap(make_day):
    schedule = derive_display(make_day(THURSDAY, isha="19:25"), EngineSettings(), _at(THURSDAY, "12:00"))
    assert _entry(schedule, "isha").iqamah == "19:35"


def test_friday_dhuhr_is_jummah(make_day):
    friday = derive_display(make_day(FRIDAY), EngineSettings(), _at(FRIDAY, "09:00"))
    thursday = derive_display(make_day(THURSDAY), EngineSettings(), _at(THURSDAY, "09:00"))

    dhuhr = _entry(friday, "dhuhr")
    assert dhuhr.is_jummah
    assert dhuhr.name == "Jummah"
    assert dhuhr.localized_name == "ஜும்ஆ"
    assert _entry(thursday, "dhuhr").name == "Dhuhr"


def test_next_prayer_skips_sunrise(make_day):
    schedule = derive_display(make_day(THURSDAY), EngineSettings(), _at(THURSDAY, "05:00"))

    assert schedule.next_prayer == "dhuhr"
    assert [entry.prayer for entry in schedule.entries if entry.is_next] == ["dhuhr"]


def test_prayer_at_exactly_now_is_next(make_day):
    schedule = derive_display(make_day(THURSDAY), EngineSettings(), _at(THURSDAY, "15:30"))
    assert schedule.next_prayer == "asr"


def test_no_next_prayer_after_isha(make_day):
    schedule = derive_display(make_day(THURSDAY), EngineSettings(), _at(THURSDAY, "21:00"))

    assert schedule.next_prayer is None
    assert not any(entry.is_next for entry in schedule.entries)


def test_empty_day_still_yields_entries(make_day):
    day = make_day(THURSDAY, fajr=None, sunrise=None, dhuhr=None, asr=None, maghrib=None, isha=None)

    schedule = derive_display(day, EngineSettings(), _at(THURSDAY, "10:00"))

    assert len(schedule.entries) == 6
    assert schedule.next_prayer is None
    assert all(entry.iqamah is None for entry in schedule.entries)


def test_apartment_mode_only_shifts_acju_times(make_day):
    settings = EngineSettings(apartment_mode=True)
    acju_day = make_day(THURSDAY, provider=ProviderKind.SCRAPE_DIRECT)

    acju = derive_display(acju_day, settings, _at(THURSDAY, "03:00"))
    backend = derive_display(make_day(THURSDAY), settings, _at(THURSDAY, "03:00"))

    assert _entry(acju, "fajr").azan == "04:49"
    assert _entry(acju, "sunrise").azan == "06:04"
    assert _entry(acju, "dhuhr").azan == "12:10"
    assert _entry(acju, "maghrib").azan == "18:16"
    assert _entry(acju, "isha").azan == "19:26"
    assert _entry(backend, "fajr").azan == "04:50"
    # The resolved day itself is never modified.
    assert acju_day.fajr.azan == "04:50"


def test_apply_apartment_adjustments_keeps_iqamah(make_day):
    adjusted = apply_apartment_adjustments(make_day(THURSDAY, provider=ProviderKind.SCRAPE_DIRECT, iqamah={"fajr": "05:10"}))
    assert adjusted.fajr.azan == "04:49"
    assert adjusted.fajr.iqamah == "05:10"
