# tests/conftest.py

import datetime

import pytest

from prayerclock import create_app, db as _db
from prayerclock.services.engine import get_engine
from prayerclock.services.helpers.records import PrayerDay, PrayerTime, ProviderKind
from prayerclock.services.prayer_time.prefetch_manager import PrefetchState
from prayerclock.services.settings_source import EngineSettings


@pytest.fixture(scope='session')
def app():
    """Session-wide application for testing."""
    app = create_app('testing')
    return app


@pytest.fixture(scope='function')
def db(app):
    """Function-level database setup. Creates and tears down tables for each test function."""
    with app.app_context():
        _db.create_all()

        yield _db

        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def test_client(app, db):
    """A test client for the app, ensuring the DB is initialized."""
    return app.test_client()


@pytest.fixture(scope='function')
def engine(app, db):
    """
    The app's shared PrayerEngine, reset to the configured default settings
    with empty in-memory state.
    """
    engine = get_engine()
    engine.settings_source.replace(EngineSettings.from_config(app.config))
    engine.coordinator.invalidate()
    engine.prefetch_manager._set_state(PrefetchState.IDLE)
    engine.prefetch_manager.last_result = None
    engine.prefetch_manager.last_error = None
    yield engine
    engine.settings_source.replace(EngineSettings.from_config(app.config))
    engine.coordinator.invalidate()


@pytest.fixture
def make_day():
    """Factory for PrayerDay records with sensible, correctly ordered times."""
    def _make_day(date_obj, provider=ProviderKind.BACKEND, zone="1", fajr="04:50", sunrise="06:05",
                  dhuhr="12:10", asr="15:30", maghrib="18:15", isha="19:25", iqamah=None, hijri_date=None):
        iqamah = iqamah or {}
        return PrayerDay(
            date=date_obj,
            provider_id=provider.value,
            zone_or_region=str(zone),
            fajr=PrayerTime(fajr, iqamah.get("fajr")),
            dhuhr=PrayerTime(dhuhr, iqamah.get("dhuhr")),
            asr=PrayerTime(asr, iqamah.get("asr")),
            maghrib=PrayerTime(maghrib, iqamah.get("maghrib")),
            isha=PrayerTime(isha, iqamah.get("isha")),
            sunrise=sunrise,
            hijri_date=hijri_date,
        )
    return _make_day


@pytest.fixture
def make_month(make_day):
    """Factory for a full month of PrayerDay records."""
    def _make_month(year, month, provider=ProviderKind.BACKEND, zone="1"):
        first = datetime.date(year, month, 1)
        days = []
        current = first
        while current.month == month:
            days.append(make_day(current, provider=provider, zone=zone))
            current += datetime.timedelta(days=1)
        return days
    return _make_month
