# prayerclock/services/hijri/calendar_scraper.py
"""
Resolves Hijri dates from the ACJU public calendar.

The site exposes the data in two unrelated places:

1. The calendar page embeds ``var hijriCalendarData = {...};`` holding the
   Gregorian start and end dates of the *current* Hijri month.
2. An admin-ajax endpoint returns an HTML fragment listing uploads, each with
   a ``YYYY-MM`` title and a ``"<Hijri month> - <Hijri year>"`` description.

A Hijri date is the join of the two. Every parsing assumption fails soft with
NotFoundError; nothing in this module raises anything else.
"""
import datetime
import json
import re
import time
from typing import Dict, Optional, Tuple

import requests
from bs4 import BeautifulSoup
from flask import current_app

from ..errors import NotFoundError, DataInconsistencyError
from ..helpers.records import HijriDay, ProviderKind
from ...metrics import PROVIDER_REQUESTS_TOTAL, PROVIDER_REQUEST_DURATION_SECONDS
from ...utils.time_utils import days_in_month

ADAPTER_NAME = "HijriCalendarScraper"
AJAX_ACTION = "hijri_calendar_get_uploads_paged"
CALENDAR_DATA_PATTERN = re.compile(r"var\s+hijriCalendarData\s*=\s*(\{[^}]*\})\s*;")
MONTH_KEY_PATTERN = re.compile(r"^\s*(\d{4})-(\d{1,2})\s*$")
DESCRIPTION_SEPARATOR = " - "
USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64; rv:128.0) Gecko/20100101 Firefox/128.0"


def extract_calendar_range(html: str) -> Tuple[datetime.date, datetime.date]:
    """Pulls (startDate, endDate) out of the embedded hijriCalendarData object."""
    match = CALENDAR_DATA_PATTERN.search(html or "")
    if not match:
        raise NotFoundError("hijriCalendarData not found in calendar page")
    raw = match.group(1).replace("\\/", "/")
    try:
        data = json.loads(raw)
        start = datetime.date.fromisoformat(str(data["startDate"]).strip())
        end = datetime.date.fromisoformat(str(data["endDate"]).strip())
    except (ValueError, KeyError, TypeError) as e:
        raise NotFoundError(f"hijriCalendarData could not be parsed: {e}") from e
    if end < start:
        raise NotFoundError(f"hijriCalendarData range is inverted: {start} > {end}")
    return start, end


def extract_month_entries(fragment_html: str) -> Dict[str, str]:
    """
    Maps normalized "YYYY-MM" titles to their descriptions. Titles and
    descriptions are paired positionally, as the site renders them.
    """
    soup = BeautifulSoup(fragment_html or "", "html.parser")
    titles = [node.get_text(strip=True) for node in soup.find_all("h3", class_="upload_section_media_title")]
    descriptions = [node.get_text(strip=True) for node in soup.find_all("p", class_="upload_section_media_description")]

    entries = {}
    for title, description in zip(titles, descriptions):
        key_match = MONTH_KEY_PATTERN.match(title)
        if not key_match:
            continue
        key = f"{int(key_match.group(1)):04d}-{int(key_match.group(2)):02d}"
        entries.setdefault(key, description)
    return entries


def parse_month_description(description: str) -> Tuple[str, int]:
    """
    "Rabee`unith Thaani - 1447" -> ("Rabee`unith Thaani", 1447).
    Anything without exactly one separator or with a non-numeric year is NotFound.
    """
    parts = (description or "").split(DESCRIPTION_SEPARATOR)
    if len(parts) != 2:
        raise NotFoundError(f"Unexpected Hijri month description: {description!r}")
    month_name, year_text = parts[0].strip(), parts[1].strip()
    if not month_name:
        raise NotFoundError(f"Empty Hijri month name in description: {description!r}")
    try:
        year = int(year_text)
    except ValueError as e:
        raise NotFoundError(f"Non-numeric Hijri year in description: {description!r}") from e
    return month_name, year


def calculate_hijri_date(target: datetime.date, month_start: datetime.date, month_end: datetime.date) -> int:
    """Day of the Hijri month for `target`, counting `month_start` as day 1."""
    if target < month_start or target > month_end:
        raise DataInconsistencyError(
            f"{target} is outside the published Hijri month range {month_start}..{month_end}"
        )
    return (target - month_start).days + 1


class HijriCalendarScraper:
    """Fetches both calendar fragments and joins them into HijriDay records."""

    def __init__(self, base_url: str, timeout: int = 10, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def calendar_url(self) -> str:
        return f"{self.base_url}/calenders-en/"

    @property
    def ajax_url(self) -> str:
        return f"{self.base_url}/wp-admin/admin-ajax.php"

    def _send(self, method: str, url: str, endpoint: str, **kwargs) -> requests.Response:
        started = time.monotonic()
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            PROVIDER_REQUESTS_TOTAL.labels(adapter_name=ADAPTER_NAME, endpoint=endpoint, status='timeout').inc()
            current_app.logger.error(f"{ADAPTER_NAME}: Timeout fetching {url}.")
            raise NotFoundError(f"Timeout fetching {url}") from e
        except requests.exceptions.RequestException as e:
            PROVIDER_REQUESTS_TOTAL.labels(adapter_name=ADAPTER_NAME, endpoint=endpoint, status='error').inc()
            current_app.logger.error(f"{ADAPTER_NAME}: RequestException fetching {url}: {e}")
            raise NotFoundError(f"Request to {url} failed: {e}") from e
        finally:
            PROVIDER_REQUEST_DURATION_SECONDS.labels(adapter_name=ADAPTER_NAME, endpoint=endpoint).observe(time.monotonic() - started)
        PROVIDER_REQUESTS_TOTAL.labels(adapter_name=ADAPTER_NAME, endpoint=endpoint, status='success').inc()
        return response

    def fetch_month_range(self) -> Tuple[datetime.date, datetime.date]:
        current_app.logger.debug(f"{ADAPTER_NAME}: Fetching calendar page {self.calendar_url}")
        response = self._send("GET", self.calendar_url, "calendar_page", headers={"User-Agent": USER_AGENT})
        start, end = extract_calendar_range(response.text)
        current_app.logger.debug(f"{ADAPTER_NAME}: Current Hijri month runs {start} to {end}")
        return start, end

    def fetch_month_entries(self) -> Dict[str, str]:
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/json, text/javascript, */*; q=0.01",
            "X-Requested-With": "XMLHttpRequest",
            "Origin": self.base_url,
            "Referer": self.calendar_url,
        }
        form = {"action": AJAX_ACTION, "page": "1"}
        response = self._send("POST", self.ajax_url, "calendar_uploads", data=form, headers=headers)
        try:
            payload = response.json()
        except ValueError as e:
            current_app.logger.warning(f"{ADAPTER_NAME}: Uploads endpoint did not return JSON.")
            raise NotFoundError("Uploads endpoint did not return JSON") from e
        if not isinstance(payload, dict) or not payload.get("success"):
            raise NotFoundError("Uploads endpoint reported failure")
        fragment = (payload.get("data") or {}).get("html") if isinstance(payload.get("data"), dict) else None
        if not fragment:
            raise NotFoundError("Uploads endpoint returned no HTML fragment")
        entries = extract_month_entries(fragment)
        current_app.logger.debug(f"{ADAPTER_NAME}: Found {len(entries)} month entries")
        return entries

    def _join(self, target: datetime.date, month_range, entries) -> HijriDay:
        key = f"{target.year:04d}-{target.month:02d}"
        description = entries.get(key)
        if description is None:
            raise NotFoundError(f"No Hijri month entry for {key}")
        month_name, hijri_year = parse_month_description(description)

        month_start, month_end = month_range
        try:
            hijri_day = calculate_hijri_date(target, month_start, month_end)
        except DataInconsistencyError:
            current_app.logger.warning(
                f"{ADAPTER_NAME}: Data inconsistency, entry {key} ({description}) does not cover {target}; "
                f"published range is {month_start}..{month_end}."
            )
            raise

        return HijriDay(
            day=hijri_day,
            month=month_name,
            year=hijri_year,
            gregorian_date=target,
            month_start_date=month_start,
            month_end_date=month_end,
            provider_id=ProviderKind.SCRAPE_DIRECT.value,
        )

    def fetch_hijri_for_gregorian(self, year: int, month: int, day: int) -> HijriDay:
        """
        Resolves the Hijri date for one Gregorian date.

        Raises:
            NotFoundError: on any fetch or parse failure, or when the date is
                outside the currently published Hijri month.
        """
        try:
            target = datetime.date(year, month, day)
        except ValueError as e:
            raise NotFoundError(f"Invalid Gregorian date {year}-{month}-{day}") from e

        month_range = self.fetch_month_range()
        entries = self.fetch_month_entries()
        hijri = self._join(target, month_range, entries)
        current_app.logger.info(f"{ADAPTER_NAME}: {target} -> {hijri.display()}")
        return hijri

    def fetch_hijri_for_month(self, year: int, month: int) -> Dict[datetime.date, HijriDay]:
        """
        Resolves every date of a Gregorian month that the current Hijri month
        covers, fetching each fragment once. Dates that cannot be resolved are
        left out; an empty dict is a valid answer.
        """
        try:
            month_range = self.fetch_month_range()
            entries = self.fetch_month_entries()
        except NotFoundError as e:
            current_app.logger.warning(f"{ADAPTER_NAME}: Hijri data unavailable for {year}-{month:02d}: {e}")
            return {}

        resolved = {}
        for day in range(1, days_in_month(year, month) + 1):
            target = datetime.date(year, month, day)
            if not (month_range[0] <= target <= month_range[1]):
                continue
            try:
                resolved[target] = self._join(target, month_range, entries)
            except NotFoundError:
                continue
        return resolved
