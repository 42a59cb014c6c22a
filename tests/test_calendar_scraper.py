# tests/test_calendar_scraper.py

import datetime
from unittest.mock import MagicMock

import pytest
import requests

from prayerclock.services.errors import DataInconsistencyError, NotFoundError
from prayerclock.services.hijri.calendar_scraper import (
    HijriCalendarScraper, calculate_hijri_date, extract_calendar_range, extract_month_entries,
    parse_month_description,
)

CALENDAR_PAGE = """
<html><head><script>
  var hijriCalendarData = {"startDate":"2025-08-25","endDate":"2025-09-22","month":"Rabee`unil Awwal"};
</script></head><body></body></html>
"""

UPLOADS_FRAGMENT = """
<div class="upload_item">
  <h3 class='upload_section_media_title'> 2025-09 </h3>
  <p class="upload_section_media_description">Rabee`unil Awwal - 1447</p>
</div>
<div class="upload_item">
  <h3 class="upload_section_media_title">2025-8</h3>
  <p class='upload_section_media_description'>Safar - 1447</p>
</div>
"""


def _response(text=None, json_data=None, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = json_data
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code}")
    return response


@pytest.fixture
def scraper(app):
    with app.app_context():
        session = MagicMock()
        yield HijriCalendarScraper("http://acju.test", timeout=5, session=session)


def _serve(scraper, page=CALENDAR_PAGE, fragment=UPLOADS_FRAGMENT):
    def request(method, url, **kwargs):
        if method == "GET":
            return _response(text=page)
        return _response(json_data={"success": True, "data": {"html": fragment}})
    scraper.session.request.side_effect = request


def test_calculate_hijri_date_counts_from_month_start():
    start, end = datetime.date(2025, 8, 25), datetime.date(2025, 9, 22)
    assert calculate_hijri_date(datetime.date(2025, 9, 1), start, end) == 8
    assert calculate_hijri_date(start, start, end) == 1
    assert calculate_hijri_date(end, start, end) == 29


def test_calculate_hijri_date_out_of_range_is_not_found():
    start, end = datetime.date(2025, 8, 25), datetime.date(2025, 9, 22)
    with pytest.raises(NotFoundError):
        calculate_hijri_date(datetime.date(2025, 9, 23), start, end)
    with pytest.raises(DataInconsistencyError):
        calculate_hijri_date(datetime.date(2025, 8, 24), start, end)


def test_parse_month_description():
    assert parse_month_description("Rabee`unith Thaani - 1447") == ("Rabee`unith Thaani", 1447)


@pytest.mark.parametrize("description", ["Safar 1447", "Safar - 14x7", "Safar - 1447 - extra", ""])
def test_parse_month_description_rejects_malformed(description):
    with pytest.raises(NotFoundError):
        parse_month_description(description)


def test_extract_calendar_range_unescapes_slashes():
    page = 'var hijriCalendarData = {"startDate":"2025-08-25","endDate":"2025-09-22","url":"https:\\/\\/acju.lk"};'
    assert extract_calendar_range(page) == (datetime.date(2025, 8, 25), datetime.date(2025, 9, 22))


def test_extract_calendar_range_missing_object():
    with pytest.raises(NotFoundError):
        extract_calendar_range("<html>nothing here</html>")


def test_extract_month_entries_normalizes_keys_and_quotes():
    entries = extract_month_entries(UPLOADS_FRAGMENT)
    assert entries == {"2025-09": "Rabee`unil Awwal - 1447", "2025-08": "Safar - 1447"}


def test_fetch_hijri_for_gregorian_joins_both_fragments(app, scraper):
    _serve(scraper)
    with app.app_context():
        hijri = scraper.fetch_hijri_for_gregorian(2025, 9, 1)

    assert hijri.day == 8
    assert hijri.month == "Rabee`unil Awwal"
    assert hijri.year == 1447
    assert hijri.month_start_date == datetime.date(2025, 8, 25)
    assert hijri.display() == "8 Rabee`unil Awwal 1447"

    post_call = [c for c in scraper.session.request.call_args_list if c.args[0] == "POST"][0]
    assert post_call.kwargs["data"] == {"action": "hijri_calendar_get_uploads_paged", "page": "1"}
    assert post_call.kwargs["headers"]["X-Requested-With"] == "XMLHttpRequest"
    assert post_call.kwargs["headers"]["Referer"] == "http://acju.test/calenders-en/"
    assert post_call.kwargs["timeout"] == 5


def test_fetch_hijri_for_gregorian_missing_month_entry(app, scraper):
    _serve(scraper, fragment="<h3 class='upload_section_media_title'>2025-07</h3><p class='upload_section_media_description'>Muharram - 1447</p>")
    with app.app_context(), pytest.raises(NotFoundError):
        scraper.fetch_hijri_for_gregorian(2025, 9, 1)


def test_fetch_hijri_for_gregorian_outside_range_logs_inconsistency(app, scraper, mocker):
    _serve(scraper)
    with app.app_context():
        mock_warning = mocker.patch.object(app.logger, 'warning')
        with pytest.raises(DataInconsistencyError):
            scraper.fetch_hijri_for_gregorian(2025, 9, 28)
    assert "inconsistency" in mock_warning.call_args.args[0].lower()


def test_transport_failure_surfaces_as_not_found(app, scraper):
    scraper.session.request.side_effect = requests.exceptions.Timeout("slow")
    with app.app_context(), pytest.raises(NotFoundError):
        scraper.fetch_hijri_for_gregorian(2025, 9, 1)


def test_http_error_surfaces_as_not_found(app, scraper):
    scraper.session.request.return_value = _response(text="", status_code=503)
    with app.app_context(), pytest.raises(NotFoundError):
        scraper.fetch_hijri_for_gregorian(2025, 9, 1)


def test_fetch_hijri_for_month_covers_only_published_range(app, scraper):
    _serve(scraper)
    with app.app_context():
        resolved = scraper.fetch_hijri_for_month(2025, 9)

    assert min(resolved) == datetime.date(2025, 9, 1)
    assert max(resolved) == datetime.date(2025, 9, 22)
    assert resolved[datetime.date(2025, 9, 22)].day == 29


def test_fetch_hijri_for_month_fails_soft(app, scraper):
    scraper.session.request.side_effect = requests.exceptions.ConnectionError("offline")
    with app.app_context():
        assert scraper.fetch_hijri_for_month(2025, 9) == {}
