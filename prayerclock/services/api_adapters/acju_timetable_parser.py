# prayerclock/services/api_adapters/acju_timetable_parser.py
"""
Turns the text of an ACJU monthly timetable PDF into daily rows.

Rows look like ``9-Dec 4:44 AM 6:06 AM 12:00 PM 3:21 PM 5:52 PM 7:06 PM``,
sometimes without the AM/PM markers. Columns are Fajr, Sunrise, Dhuhr, Asr,
Maghrib and Isha.
"""
import datetime
import io
import re
from dataclasses import dataclass
from typing import List, Optional

from flask import current_app
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..errors import NotFoundError
from ..helpers.constants import MONTH_ABBREVIATIONS
from ...utils.time_utils import to_24_hour

_TIME = r"(\d{1,2}:\d{2})\s*(?:AM|PM)?"
ROW_PATTERN = re.compile(r"(\d{1,2})-([A-Za-z]{3})\s+" + r"\s+".join([_TIME] * 6), re.IGNORECASE)
YEAR_PATTERN = re.compile(r"\b(20\d{2})\b")
ZONE_PATTERN = re.compile(r"Zone\s*:?\s*(\d+)", re.IGNORECASE)


@dataclass(frozen=True)
class TimetableRow:
    date: datetime.date
    fajr: str
    sunrise: str
    dhuhr: str
    asr: str
    maghrib: str
    isha: str


@dataclass(frozen=True)
class Timetable:
    year: Optional[int]
    zone: Optional[int]
    rows: List[TimetableRow]


def extract_pdf_text(pdf_bytes: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    except (PdfReadError, ValueError) as e:
        current_app.logger.error(f"ACJUTimetableParser: Could not read PDF: {e}")
        raise NotFoundError(f"Unreadable timetable PDF: {e}") from e


def _dhuhr_to_24_hour(value: str) -> str:
    # Dhuhr straddles noon: 11:xx is morning, everything else afternoon.
    return to_24_hour(value, "AM" if value.startswith("11:") else "PM")


def parse_timetable(text: str, fallback_year: Optional[int] = None) -> Timetable:
    year_match = YEAR_PATTERN.search(text or "")
    zone_match = ZONE_PATTERN.search(text or "")
    year = int(year_match.group(1)) if year_match else None
    zone = int(zone_match.group(1)) if zone_match else None
    row_year = year or fallback_year

    rows = []
    seen = set()
    for match in ROW_PATTERN.finditer(text or ""):
        day_text, month_abbr, fajr, sunrise, dhuhr, asr, maghrib, isha = match.groups()
        month = MONTH_ABBREVIATIONS.get(month_abbr.lower())
        dedupe_key = (int(day_text), month_abbr.lower())
        if month is None or row_year is None or dedupe_key in seen:
            continue
        try:
            row_date = datetime.date(row_year, month, int(day_text))
        except ValueError:
            continue
        seen.add(dedupe_key)
        rows.append(TimetableRow(
            date=row_date,
            fajr=to_24_hour(fajr, "AM"),
            sunrise=to_24_hour(sunrise, "AM"),
            dhuhr=_dhuhr_to_24_hour(dhuhr),
            asr=to_24_hour(asr, "PM"),
            maghrib=to_24_hour(maghrib, "PM"),
            isha=to_24_hour(isha, "PM"),
        ))

    rows.sort(key=lambda row: row.date)
    if not rows:
        current_app.logger.warning("ACJUTimetableParser: No prayer time rows matched in timetable text.")
    return Timetable(year=year, zone=zone, rows=rows)
