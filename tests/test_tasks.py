# tests/test_tasks.py

import datetime

from freezegun import freeze_time

from prayerclock.services.errors import PrefetchAlreadyRunningError
from prayerclock.services.helpers.records import PrefetchResult
from prayerclock.tasks import prefetch_offline_months, sweep_expired_cache


def test_prefetch_task_returns_result_dict(app, engine, mocker):
    result = PrefetchResult(total_months=6, successful_months=6, cached_days=184)
    prefetch = mocker.patch.object(engine.prefetch_manager, 'prefetch', return_value=result)

    outcome = prefetch_offline_months.run(zone="7")

    assert outcome["successfulMonths"] == 6
    assert outcome["cachedDays"] == 184
    prefetch.assert_called_once_with("7")


def test_prefetch_task_skips_when_already_running(app, engine, mocker):
    mocker.patch.object(engine.prefetch_manager, 'prefetch', side_effect=PrefetchAlreadyRunningError("busy"))

    assert prefetch_offline_months.run() == {"message": "busy"}


@freeze_time("2025-10-16 12:00:00")
def test_sweep_expired_cache(app, engine, make_day):
    engine.store.put(make_day(datetime.date(2025, 8, 1)), created_at=datetime.datetime(2025, 8, 1))
    engine.store.put(make_day(datetime.date(2025, 10, 16)), created_at=datetime.datetime(2025, 10, 15))

    deleted = sweep_expired_cache.run()

    assert deleted == {"prayerTimes": 1, "hijriDates": 0}
    assert engine.store.stats()["prayerTimesCount"] == 1


@freeze_time("2025-10-16 12:00:00")
def test_sweep_expired_cache_with_explicit_age(app, engine, make_day):
    engine.store.put(make_day(datetime.date(2025, 10, 16)), created_at=datetime.datetime(2025, 10, 13))

    assert sweep_expired_cache.run(max_age_days=2) == {"prayerTimes": 1, "hijriDates": 0}


def test_prefetch_task_applies_the_callers_settings(app, engine, mocker):
    seen = []
    mocker.patch.object(engine.prefetch_manager, 'prefetch',
                        side_effect=lambda zone: seen.append(engine.settings_source.current.provider_key) or PrefetchResult())

    prefetch_offline_months.run(settings={"provider": "BACKEND", "zone": 6, "region": "Colombo"})

    assert seen == ["MOSQUE_CLOCK_API:6"]
    assert engine.settings_source.current.zone == 6
