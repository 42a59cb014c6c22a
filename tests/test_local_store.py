# tests/test_local_store.py

import datetime

import pytest
from sqlalchemy.exc import SQLAlchemyError

from prayerclock.services.helpers.records import HijriDay, ProviderKind
from prayerclock.services.prayer_time.local_store import LocalStore

DAY = datetime.date(2025, 10, 16)


@pytest.fixture
def store(db):
    return LocalStore()


def test_put_then_get_round_trip(store, make_day):
    day = make_day(DAY, iqamah={"fajr": "05:10"}, hijri_date="23 Rabee`unith Thaani 1447")
    assert store.put(day) is True

    entry = store.get(DAY, "MOSQUE_CLOCK_API:1")
    assert entry is not None
    assert entry.payload == day
    assert isinstance(entry.created_at, datetime.datetime)


def test_keys_are_provider_qualified(store, make_day):
    store.put(make_day(DAY, provider=ProviderKind.BACKEND, zone="1", fajr="04:50"))
    store.put(make_day(DAY, provider=ProviderKind.SCRAPE_DIRECT, zone="1", fajr="04:49"))

    assert store.get(DAY, "MOSQUE_CLOCK_API:1").payload.fajr.azan == "04:50"
    assert store.get(DAY, "ACJU_DIRECT:1").payload.fajr.azan == "04:49"
    assert store.get(DAY, "ACJU_DIRECT:2") is None


def test_put_replaces_existing_row(store, make_day):
    store.put(make_day(DAY, fajr="04:50"))
    store.put(make_day(DAY, fajr="04:51"))

    assert store.get(DAY, "MOSQUE_CLOCK_API:1").payload.fajr.azan == "04:51"
    assert store.count(ProviderKind.BACKEND.value) == 1


def test_old_rows_are_still_served(store, make_day):
    store.put(make_day(DAY), created_at=datetime.datetime(2020, 1, 1))
    assert store.get(DAY, "MOSQUE_CLOCK_API:1") is not None


def test_put_many_and_count_in_range(store, make_month):
    written = store.put_many(make_month(2025, 11))
    assert written == 30
    assert store.count_in_range("MOSQUE_CLOCK_API:1", datetime.date(2025, 11, 1), datetime.date(2025, 11, 30)) == 30
    assert store.count_in_range("MOSQUE_CLOCK_API:1", datetime.date(2025, 11, 1), datetime.date(2025, 11, 10)) == 10
    assert store.count_in_range("MOSQUE_CLOCK_API:2", datetime.date(2025, 11, 1), datetime.date(2025, 11, 30)) == 0


def test_count_by_region(store, make_day):
    store.put(make_day(DAY, zone="1"))
    store.put(make_day(DAY, zone="2"))
    assert store.count(ProviderKind.BACKEND.value) == 2
    assert store.count(ProviderKind.BACKEND.value, region=2) == 1
    assert store.count(ProviderKind.SCRAPE_DIRECT.value) == 0
    assert store.count() == 2


def test_put_many_rolls_back_on_failure(store, make_day, db, mocker):
    mocker.patch.object(db.session, 'commit', side_effect=SQLAlchemyError("disk full"))
    rollback = mocker.spy(db.session, 'rollback')

    assert store.put_many([make_day(DAY)]) == 0
    assert rollback.call_count == 1


def _hijri(date_obj, day, calculated=False):
    return HijriDay(day=day, month="Rabee`unith Thaani", year=1447, gregorian_date=date_obj,
                    month_start_date=datetime.date(2025, 9, 24), month_end_date=datetime.date(2025, 10, 22),
                    is_calculated=calculated)


def test_hijri_round_trip_and_latest_before(store):
    store.put_hijri(_hijri(datetime.date(2025, 10, 10), 17))
    store.put_hijri(_hijri(datetime.date(2025, 10, 12), 19))

    assert store.get_hijri(datetime.date(2025, 10, 10), "ACJU_DIRECT").payload.day == 17
    assert store.get_hijri(datetime.date(2025, 10, 11), "ACJU_DIRECT") is None

    latest = store.latest_hijri_before(datetime.date(2025, 10, 15), "ACJU_DIRECT", "")
    assert latest.payload.gregorian_date == datetime.date(2025, 10, 12)
    assert store.latest_hijri_before(datetime.date(2025, 10, 12), "ACJU_DIRECT").payload.day == 19
    assert store.latest_hijri_before(datetime.date(2025, 10, 9), "ACJU_DIRECT") is None
    assert store.count_hijri("ACJU_DIRECT") == 2
    assert store.count_hijri() == 2
    assert store.count_hijri("ACJU_DIRECT", region="1") == 0


def test_delete_older_than_sweeps_both_tables(store, make_day):
    store.put(make_day(DAY), created_at=datetime.datetime(2025, 1, 1))
    store.put(make_day(DAY + datetime.timedelta(days=1)))
    store.put_hijri(_hijri(DAY, 23), created_at=datetime.datetime(2025, 1, 1))

    deleted = store.delete_older_than(datetime.datetime(2025, 6, 1))

    assert deleted == {"prayerTimes": 1, "hijriDates": 1}
    assert store.stats() == {"prayerTimesCount": 1, "hijriDatesCount": 0}


def test_delete_before_is_scoped_to_provider_and_region(store, make_day):
    store.put(make_day(datetime.date(2025, 10, 1), zone="1"))
    store.put(make_day(datetime.date(2025, 10, 1), zone="2"))
    store.put(make_day(datetime.date(2025, 10, 20), zone="1"))

    deleted = store.delete_before(datetime.date(2025, 10, 15), ProviderKind.BACKEND.value, region="1")

    assert deleted["prayerTimes"] == 1
    assert store.get(datetime.date(2025, 10, 1), "MOSQUE_CLOCK_API:2") is not None
    assert store.get(datetime.date(2025, 10, 20), "MOSQUE_CLOCK_API:1") is not None


def test_delete_all(store, make_day):
    store.put(make_day(DAY))
    store.put_hijri(_hijri(DAY, 23))

    assert store.delete_all() == {"prayerTimes": 1, "hijriDates": 1}
    assert store.stats() == {"prayerTimesCount": 0, "hijriDatesCount": 0}


def test_redis_tier_serves_hits_without_the_database(app, store, make_day, mocker):
    day = make_day(DAY)
    cached = {"day": day.to_dict(), "created_at": "2025-10-16T04:00:00"}
    mocker.patch.dict(app.config, {'LOCAL_STORE_REDIS_ENABLED': True})
    mocker.patch('prayerclock.services.prayer_time.local_store._cache_get_json', return_value=cached)

    entry = store.get(DAY, "MOSQUE_CLOCK_API:1")

    assert entry.payload == day
    assert entry.created_at == datetime.datetime(2025, 10, 16, 4, 0)


def test_redis_tier_is_filled_on_write(app, store, make_day, mocker):
    mocker.patch.dict(app.config, {'LOCAL_STORE_REDIS_ENABLED': True})
    cache_set = mocker.patch('prayerclock.services.prayer_time.local_store._cache_set_json')

    store.put(make_day(DAY))

    key = cache_set.call_args.args[0]
    assert key == "prayer_day:v1:MOSQUE_CLOCK_API:1:2025-10-16"
