# prayerclock/services/prayer_time/display_deriver.py
"""
Pure display layer: turns a resolved PrayerDay plus user configuration into
ordered display entries and the "next prayer" pointer. No I/O, nothing here
is ever written back into a PrayerDay.
"""
import dataclasses
import datetime
from typing import Optional

from ..helpers.constants import (
    PRAYER_ORDER, PRAYER_NAMES, JUMMAH_NAMES, DEFAULT_IQAMAH_GAPS, APARTMENT_ADJUSTMENTS, FRIDAY,
)
from ..helpers.records import DisplayEntry, DisplaySchedule, PrayerDay, PrayerTime, ProviderKind
from ...utils.time_utils import add_minutes_to_str, parse_time_str


def apply_apartment_adjustments(prayer_day: PrayerDay) -> PrayerDay:
    """
    Shifts published ACJU times for high-rise residents (Fajr and Sunrise one
    minute earlier, Maghrib and Isha one minute later).
    """
    changes = {}
    for name, minutes in APARTMENT_ADJUSTMENTS.items():
        if name == "sunrise":
            changes["sunrise"] = add_minutes_to_str(prayer_day.sunrise, minutes)
            continue
        pair = prayer_day.prayer(name)
        changes[name] = PrayerTime(azan=add_minutes_to_str(pair.azan, minutes), iqamah=pair.iqamah)
    return dataclasses.replace(prayer_day, **changes)


def _is_night_gathering(config, now: datetime.datetime) -> bool:
    return bool(config.night_gathering_enabled) and now.weekday() == config.night_gathering_weekday


def derive_display(prayer_day: PrayerDay, config, now: datetime.datetime) -> DisplaySchedule:
    """
    Builds the six display entries (Fajr, Sunrise, Dhuhr, Asr, Maghrib, Isha).

    - Iqamah is the provider's explicit value, else Azan + the configured gap.
    - On the configured weekly night (Thursday by default), with the
      night-gathering delay enabled, Isha Iqamah becomes Isha Azan + delay.
    - The next prayer is the first of the five prayers whose Azan is at or
      after `now`; Sunrise is never next. None once every Azan has passed.
    """
    if getattr(config, "apartment_mode", False) and prayer_day.provider_id == ProviderKind.SCRAPE_DIRECT.value:
        prayer_day = apply_apartment_adjustments(prayer_day)

    gaps = dict(DEFAULT_IQAMAH_GAPS)
    gaps.update(getattr(config, "iqamah_gaps", None) or {})
    now_time = now.time()
    is_friday = prayer_day.date.weekday() == FRIDAY

    entries = []
    next_prayer: Optional[str] = None
    for name in PRAYER_ORDER:
        english, localized = PRAYER_NAMES[name]
        if name == "sunrise":
            entries.append(DisplayEntry(prayer=name, name=english, localized_name=localized, azan=prayer_day.sunrise, iqamah=None))
            continue

        pair = prayer_day.prayer(name)
        iqamah = pair.iqamah or add_minutes_to_str(pair.azan, gaps.get(name))
        if name == "isha" and pair.azan and _is_night_gathering(config, now):
            iqamah = add_minutes_to_str(pair.azan, config.night_gathering_minutes)

        is_jummah = name == "dhuhr" and is_friday
        if is_jummah:
            english, localized = JUMMAH_NAMES

        azan_time = parse_time_str(pair.azan)
        is_next = next_prayer is None and azan_time is not None and azan_time >= now_time
        if is_next:
            next_prayer = name
        entries.append(DisplayEntry(
            prayer=name,
            name=english,
            localized_name=localized,
            azan=pair.azan,
            iqamah=iqamah,
            is_next=is_next,
            is_jummah=is_jummah,
        ))

    return DisplaySchedule(entries=entries, next_prayer=next_prayer)
