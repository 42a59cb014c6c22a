# prayerclock/services/api_adapters/mosque_clock_adapter.py

import calendar
import datetime
from typing import Dict, Any, List

from flask import current_app

from .base_adapter import BaseProviderClient
from ..errors import NotFoundError, UnavailableError
from ..helpers.records import PrayerDay, PrayerTime, ProviderKind
from ...utils.time_utils import parse_time_str, format_time_obj


def _clock(value):
    return format_time_obj(parse_time_str(value))


class MosqueClockAdapter(BaseProviderClient):
    """
    API Adapter for the first-party MosqueClock backend. Its records already
    carry Iqamah times and a Hijri date string, so the mapping is 1:1.
    """

    kind = ProviderKind.BACKEND

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    def _to_prayer_day(self, item: Dict[str, Any], zone) -> PrayerDay:
        try:
            day_date = datetime.date.fromisoformat(str(item["date"]))
        except (KeyError, ValueError) as e:
            raise NotFoundError(f"Backend record without a valid date: {item!r}") from e

        def pair(name):
            return PrayerTime(azan=_clock(item.get(f"{name}_azan")), iqamah=_clock(item.get(f"{name}_iqamah")))

        return PrayerDay(
            date=day_date,
            provider_id=self.kind.value,
            zone_or_region=str(item.get("zone") or zone),
            fajr=pair("fajr"),
            dhuhr=pair("dhuhr"),
            asr=pair("asr"),
            maghrib=pair("maghrib"),
            isha=pair("isha"),
            sunrise=_clock(item.get("sunrise")),
            hijri_date=item.get("hijri_date"),
            location=item.get("location"),
        )

    def _records(self, payload, context: str) -> List[Dict[str, Any]]:
        if not isinstance(payload, dict) or not payload.get("success"):
            message = payload.get("message") if isinstance(payload, dict) else None
            current_app.logger.warning(f"{self.name}: API reported no data for {context}. Message: {message}")
            raise NotFoundError(f"Backend reported no data for {context}")
        data = payload.get("data")
        if isinstance(data, dict):
            data = [data]
        if not data:
            raise NotFoundError(f"Backend returned an empty list for {context}")
        return data

    def fetch_day(self, date_obj: datetime.date, zone_or_region) -> PrayerDay:
        date_str = date_obj.isoformat()
        current_app.logger.info(f"{self.name}: Fetching prayer times for zone {zone_or_region} on {date_str}")

        endpoint = f"{self.base_url}/api/v1/prayer-times/{zone_or_region}/"
        response = self._request("GET", endpoint, "prayer_times_day", params={"date": date_str}, headers=self._headers())
        if response.status_code == 404:
            raise NotFoundError(f"No backend record for zone {zone_or_region} on {date_str}")
        if not response.ok:
            current_app.logger.error(f"{self.name}: Unexpected status {response.status_code} for {date_str}.")
            raise NotFoundError(f"Backend answered {response.status_code} for {date_str}")

        records = self._records(self._json(response, date_str), date_str)
        for item in records:
            if str(item.get("date")) == date_str:
                return self._to_prayer_day(item, zone_or_region)
        raise NotFoundError(f"Backend response holds no record for {date_str}")

    def fetch_month(self, year: int, month: int, zone_or_region) -> List[PrayerDay]:
        month_name = calendar.month_name[month]
        context = f"{year}-{month:02d}"
        current_app.logger.info(f"{self.name}: Fetching month {context} for zone {zone_or_region}")

        endpoint = f"{self.base_url}/api/v1/prayer-times/{zone_or_region}/{year}/{month_name}/"
        response = self._request("GET", endpoint, "prayer_times_month", headers=self._headers())
        if response.status_code == 404:
            current_app.logger.info(f"{self.name}: Month {context} is not published yet for zone {zone_or_region}.")
            raise UnavailableError(f"Backend has not published {context} for zone {zone_or_region}")
        if not response.ok:
            current_app.logger.error(f"{self.name}: Unexpected status {response.status_code} for {context}.")
            raise NotFoundError(f"Backend answered {response.status_code} for {context}")

        days = []
        for item in self._records(self._json(response, context), context):
            try:
                days.append(self._to_prayer_day(item, zone_or_region))
            except NotFoundError as e:
                current_app.logger.warning(f"{self.name}: Skipping malformed record in {context}: {e}")
        if not days:
            raise NotFoundError(f"No usable backend records for {context}")
        current_app.logger.info(f"{self.name}: Fetched {len(days)} days for {context}.")
        return days
