# prayerclock/services/api_adapters/acju_adapter.py

import datetime
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from flask import current_app

from .base_adapter import BaseProviderClient
from .acju_timetable_parser import extract_pdf_text, parse_timetable, TimetableRow
from ..errors import NotFoundError, UnavailableError
from ..helpers.constants import ACJU_ZONES
from ..helpers.records import PrayerDay, PrayerTime, ProviderKind
from ..hijri.calendar_scraper import HijriCalendarScraper

USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36"


class ACJUAdapter(BaseProviderClient):
    """
    Scrape-direct client for the All Ceylon Jamiyyathul Ulama prayer-times page.

    The page holds one accordion per zone with twelve monthly PDF links. The
    month's PDF is downloaded, its text parsed into rows, and each day is
    enriched with a Hijri date from the calendar scraper when one is known.
    """

    kind = ProviderKind.SCRAPE_DIRECT
    # Timetables come a month at a time, so a single-day miss caches the whole month.
    monthly_source = True

    def __init__(self, base_url, timeout=10, pdf_timeout=30, session=None,
                 hijri_scraper: Optional[HijriCalendarScraper] = None):
        super().__init__(base_url, timeout=timeout, session=session)
        self.pdf_timeout = pdf_timeout
        self.hijri_scraper = hijri_scraper

    @property
    def page_url(self) -> str:
        return f"{self.base_url}/prayer-times/"

    def find_pdf_url(self, zone: int, month: int) -> str:
        """
        Locates the PDF link for a zone and month.

        Raises:
            NotFoundError: unknown zone or the zone section is missing.
            UnavailableError: the zone lists fewer PDFs than the month index.
        """
        zone_text = ACJU_ZONES.get(int(zone))
        if zone_text is None:
            raise NotFoundError(f"Unknown ACJU zone {zone}")

        response = self._request("GET", self.page_url, "prayer_times_page", headers={"User-Agent": USER_AGENT})
        if not response.ok:
            current_app.logger.error(f"ACJUAdapter: Prayer times page answered {response.status_code}.")
            raise NotFoundError(f"ACJU page answered {response.status_code}")

        soup = BeautifulSoup(response.text, "html.parser")
        title = next(
            (node for node in soup.select("div.e-n-accordion-item-title-text") if zone_text in node.get_text(" ", strip=True)),
            None,
        )
        if title is None:
            current_app.logger.error(f"ACJUAdapter: Zone section not found for: {zone_text}")
            raise NotFoundError(f"No section for zone {zone}")

        details = title.find_parent("details")
        if details is None:
            current_app.logger.error("ACJUAdapter: Could not find details parent element.")
            raise NotFoundError(f"Zone {zone} section has no details container")

        links = [a for a in details.select("a[href]") if a["href"].lower().endswith(".pdf")]
        if len(links) < month:
            current_app.logger.info(f"ACJUAdapter: Zone {zone} lists {len(links)} PDFs, month {month} not published yet.")
            raise UnavailableError(f"Month {month} not published for zone {zone}")
        return urljoin(self.page_url, links[month - 1]["href"])

    def download_pdf(self, url: str) -> bytes:
        current_app.logger.debug(f"ACJUAdapter: Downloading PDF from: {url}")
        response = self._request("GET", url, "timetable_pdf", timeout=self.pdf_timeout, headers={"User-Agent": USER_AGENT})
        if not response.ok or not response.content:
            current_app.logger.error(f"ACJUAdapter: Failed to download PDF ({response.status_code}) from {url}")
            raise NotFoundError(f"PDF download failed with {response.status_code}")
        return response.content

    def _to_prayer_day(self, row: TimetableRow, zone, hijri_lookup) -> PrayerDay:
        hijri = hijri_lookup.get(row.date)
        return PrayerDay(
            date=row.date,
            provider_id=self.kind.value,
            zone_or_region=str(zone),
            fajr=PrayerTime(azan=row.fajr),
            dhuhr=PrayerTime(azan=row.dhuhr),
            asr=PrayerTime(azan=row.asr),
            maghrib=PrayerTime(azan=row.maghrib),
            isha=PrayerTime(azan=row.isha),
            sunrise=row.sunrise,
            hijri_date=hijri.display() if hijri else None,
            location=f"Zone {zone} - {ACJU_ZONES.get(int(zone), '')}".rstrip(" -"),
        )

    def fetch_month(self, year: int, month: int, zone_or_region) -> List[PrayerDay]:
        context = f"{year}-{month:02d}"
        current_app.logger.info(f"ACJUAdapter: Starting ACJU scrape for zone {zone_or_region}, {context}")

        pdf_url = self.find_pdf_url(int(zone_or_region), month)
        timetable = parse_timetable(extract_pdf_text(self.download_pdf(pdf_url)), fallback_year=year)

        # The page only carries the current year's PDFs, so a later year means not published yet.
        if timetable.year is not None and timetable.year < year:
            current_app.logger.info(f"ACJUAdapter: PDF for month {month} is for {timetable.year}, {context} not published yet.")
            raise UnavailableError(f"ACJU has not published {context}")
        if timetable.year is not None and timetable.year != year:
            raise NotFoundError(f"ACJU timetable for month {month} is for {timetable.year}, not {year}")

        rows = [row for row in timetable.rows if row.date.year == year and row.date.month == month]
        if not rows:
            current_app.logger.error(f"ACJUAdapter: No prayer times extracted from PDF for zone {zone_or_region}, {context}")
            raise NotFoundError(f"No rows for {context} in ACJU timetable")

        hijri_lookup = self.hijri_scraper.fetch_hijri_for_month(year, month) if self.hijri_scraper else {}
        days = [self._to_prayer_day(row, zone_or_region, hijri_lookup) for row in rows]
        current_app.logger.info(f"ACJUAdapter: Parsed {len(days)} days for zone {zone_or_region}, {context}")
        return days

    def fetch_day(self, date_obj: datetime.date, zone_or_region) -> PrayerDay:
        for day in self.fetch_month(date_obj.year, date_obj.month, zone_or_region):
            if day.date == date_obj:
                return day
        raise NotFoundError(f"ACJU timetable has no row for {date_obj}")
