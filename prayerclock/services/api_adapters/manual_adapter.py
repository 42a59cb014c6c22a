# prayerclock/services/api_adapters/manual_adapter.py

import datetime

from ..helpers.constants import IQAMAH_PRAYERS
from ..helpers.records import PrayerDay, PrayerTime, ProviderKind
from ...utils.time_utils import parse_time_str, format_time_obj


def _clock(value):
    return format_time_obj(parse_time_str(value))


def build_manual_prayer_day(settings, date_obj: datetime.date) -> PrayerDay:
    """
    Builds a PrayerDay straight from the user's manual times. No network and
    no cache: manual data is always available and always current.
    """
    times = {
        name: PrayerTime(
            azan=_clock(settings.manual_azan.get(name)),
            iqamah=_clock(settings.manual_iqamah.get(name)),
        )
        for name in IQAMAH_PRAYERS
    }
    return PrayerDay(
        date=date_obj,
        provider_id=ProviderKind.MANUAL.value,
        zone_or_region="",
        sunrise=_clock(settings.manual_sunrise),
        location="Manual",
        **times,
    )
