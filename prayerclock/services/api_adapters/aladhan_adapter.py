# prayerclock/services/api_adapters/aladhan_adapter.py

import datetime
from typing import Dict, Any, List

from flask import current_app

from .base_adapter import BaseProviderClient
from ..errors import NotFoundError
from ..helpers.constants import CITY_COUNTRY_MAP, DEFAULT_COUNTRY
from ..helpers.records import PrayerDay, PrayerTime, ProviderKind
from ...utils.time_utils import strip_timezone_suffix


def country_for_city(city: str) -> str:
    return CITY_COUNTRY_MAP.get((city or "").strip().lower(), DEFAULT_COUNTRY)


class AlAdhanAdapter(BaseProviderClient):
    """
    API Adapter for AlAdhan.com Prayer Times API, queried by city name.
    AlAdhan publishes Azan times only; Iqamah is left empty for the display
    layer to fill from the configured gaps.
    """

    kind = ProviderKind.THIRD_PARTY

    def __init__(self, base_url, timeout=10, api_key=None, session=None, method_id=2, school_id=0):
        super().__init__(base_url, timeout=timeout, api_key=api_key, session=session)
        self.method_id = method_id
        self.school_id = school_id

    def _params(self, city: str) -> Dict[str, Any]:
        return {
            "city": city,
            "country": country_for_city(city),
            "method": self.method_id,
            "school": self.school_id,
        }

    def _to_prayer_day(self, day_data: Dict[str, Any], city: str, fallback_date: datetime.date = None) -> PrayerDay:
        timings = day_data.get("timings") or {}
        if not timings:
            raise NotFoundError("AlAdhan day without timings")

        gregorian_str = ((day_data.get("date") or {}).get("gregorian") or {}).get("date")
        try:
            day_date = datetime.datetime.strptime(gregorian_str, "%d-%m-%Y").date() if gregorian_str else fallback_date
        except ValueError as e:
            raise NotFoundError(f"AlAdhan returned an unreadable date: {gregorian_str}") from e
        if day_date is None:
            raise NotFoundError("AlAdhan day without a Gregorian date")

        hijri = (day_data.get("date") or {}).get("hijri") or {}
        hijri_date = None
        if hijri.get("day") and (hijri.get("month") or {}).get("en") and hijri.get("year"):
            hijri_date = f"{int(hijri['day'])} {hijri['month']['en']} {hijri['year']}"

        def azan(key):
            return PrayerTime(azan=strip_timezone_suffix(timings.get(key)))

        return PrayerDay(
            date=day_date,
            provider_id=self.kind.value,
            zone_or_region=city,
            fajr=azan("Fajr"),
            dhuhr=azan("Dhuhr"),
            asr=azan("Asr"),
            maghrib=azan("Maghrib"),
            isha=azan("Isha"),
            sunrise=strip_timezone_suffix(timings.get("Sunrise")),
            hijri_date=hijri_date,
            location=f"{city}, {country_for_city(city)}",
        )

    def fetch_day(self, date_obj: datetime.date, zone_or_region) -> PrayerDay:
        """
        Fetches prayer times for a single day from the AlAdhan.com API.
        """
        city = str(zone_or_region)
        date_str = date_obj.strftime("%d-%m-%Y")
        current_app.logger.info(f"AlAdhanAdapter: Fetching daily timings for {date_str} in {city}")

        params = self._params(city)
        params["date"] = date_str
        current_app.logger.debug(f"AlAdhanAdapter: Fetching daily with params: {params}")

        response = self._request("GET", f"{self.base_url}/timingsByCity", "timings_by_city", params=params)
        data = self._json(response, date_str)
        if not isinstance(data, dict):
            data = {}
        if response.ok and data.get("code") == 200 and isinstance(data.get("data"), dict):
            current_app.logger.info(f"AlAdhanAdapter: Successfully fetched daily timings for {date_str}.")
            return self._to_prayer_day(data["data"], city, fallback_date=date_obj)

        current_app.logger.error(f"AlAdhanAdapter: API error for daily timings {date_str}. Code: {data.get('code')}, Status: {data.get('status')}")
        raise NotFoundError(f"AlAdhan has no timings for {city} on {date_str}")

    def fetch_month(self, year: int, month: int, zone_or_region) -> List[PrayerDay]:
        """
        Fetches a month's calendar from the AlAdhan.com API.
        """
        city = str(zone_or_region)
        context = f"{year}-{month:02d}"
        current_app.logger.info(f"AlAdhanAdapter: Fetching monthly calendar for {context} in {city}")

        endpoint = f"{self.base_url}/calendarByCity/{year}/{month}"
        response = self._request("GET", endpoint, "calendar_by_city", params=self._params(city))
        data = self._json(response, context)
        if not isinstance(data, dict):
            data = {}
        if not (response.ok and data.get("code") == 200 and isinstance(data.get("data"), list)):
            current_app.logger.error(f"AlAdhanAdapter: API error for month {context}. Code: {data.get('code')}, Status: {data.get('status')}")
            raise NotFoundError(f"AlAdhan has no calendar for {city} in {context}")

        days = []
        for day_data in data["data"]:
            try:
                days.append(self._to_prayer_day(day_data, city))
            except NotFoundError as e:
                current_app.logger.warning(f"AlAdhanAdapter: Skipping day in {context}: {e}")

        if not days:
            current_app.logger.error(f"AlAdhanAdapter: API returned empty data for {context}.")
            raise NotFoundError(f"AlAdhan returned no usable days for {context}")

        current_app.logger.info(f"AlAdhanAdapter: Successfully fetched {len(days)} days for {context}.")
        return days
