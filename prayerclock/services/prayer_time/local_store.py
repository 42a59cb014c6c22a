# This module holds the durable cache of prayer days and Hijri dates.
"""
Local Store: SQLAlchemy tables behind a lock, with an optional Redis hot
tier in front of the prayer day table.

Keys are provider qualified. A PrayerDay is addressed by (date, provider
key), a HijriDay by (gregorian date, provider, region), so switching
provider can never surface another provider's row. Writes replace any row
with the same key.
"""
import datetime
import json
import threading
from typing import Any, Dict, Iterable, List, Optional

from flask import current_app
from redis import exceptions as redis_exceptions
from sqlalchemy.exc import SQLAlchemyError

from ... import db
from ...extensions import redis_client
from ...metrics import CACHE_HITS, CACHE_MISSES
from ...models import PrayerDayRecord, HijriDayRecord
from ..helpers.records import CacheEntry, HijriDay, PrayerDay
from .key_utils import generate_prayer_day_redis_key, prayer_day_redis_pattern


def _redis_enabled() -> bool:
    return bool(current_app.config.get('LOCAL_STORE_REDIS_ENABLED'))


def _cache_get_json(key: str) -> Optional[Dict[str, Any]]:
    """Helper function to safely get and deserialize a JSON object from Redis."""
    try:
        cached_data = redis_client.get(key)
        if cached_data:
            return json.loads(cached_data)
        return None
    except (redis_exceptions.RedisError, json.JSONDecodeError) as e:
        current_app.logger.error(f"Redis GET or JSON load failed for key {key}: {e}", exc_info=True)
        return None


def _cache_set_json(key: str, value: Any, ttl: int) -> None:
    """Helper function to safely serialize and set a JSON object in Redis."""
    try:
        redis_client.set(key, json.dumps(value), ex=ttl)
    except redis_exceptions.RedisError as e:
        current_app.logger.error(f"Redis SET failed for key {key}: {e}", exc_info=True)


def _cache_delete(keys: Iterable[str]) -> None:
    keys = list(keys)
    if not keys:
        return
    try:
        redis_client.delete(*keys)
    except redis_exceptions.RedisError as e:
        current_app.logger.error(f"Redis DELETE failed for {len(keys)} keys: {e}", exc_info=True)


class LocalStore:

    def __init__(self):
        self._write_lock = threading.RLock()

    # --- Prayer days ---

    def get(self, date: datetime.date, provider_key: str) -> Optional[CacheEntry]:
        """Exact-match lookup. Age never causes a miss; eviction is the sweep's job."""
        redis_key = generate_prayer_day_redis_key(date.isoformat(), provider_key)
        if _redis_enabled():
            cached = _cache_get_json(redis_key)
            if cached:
                CACHE_HITS.labels(cache_type='redis', provider=provider_key).inc()
                return CacheEntry(
                    payload=PrayerDay.from_dict(cached["day"]),
                    created_at=datetime.datetime.fromisoformat(cached["created_at"]),
                )
            CACHE_MISSES.labels(cache_type='redis', provider=provider_key).inc()

        record = db.session.get(PrayerDayRecord, PrayerDayRecord.make_id(date, provider_key))
        if record is None:
            CACHE_MISSES.labels(cache_type='db', provider=provider_key).inc()
            return None

        CACHE_HITS.labels(cache_type='db', provider=provider_key).inc()
        entry = record.to_entry()
        if _redis_enabled():
            self._cache_entry(redis_key, entry)
        return entry

    def _cache_entry(self, redis_key: str, entry: CacheEntry) -> None:
        _cache_set_json(
            redis_key,
            {"day": entry.payload.to_dict(), "created_at": entry.created_at.isoformat()},
            ttl=current_app.config.get('REDIS_TTL_PRAYER_DAY', 86400),
        )

    def put(self, day: PrayerDay, created_at: Optional[datetime.datetime] = None) -> bool:
        return self.put_many([day], created_at=created_at) == 1

    def put_many(self, days: List[PrayerDay], created_at: Optional[datetime.datetime] = None) -> int:
        """
        Upserts prayer days. Returns the number of rows written, 0 when the
        transaction failed and was rolled back.
        """
        if not days:
            return 0
        with self._write_lock:
            try:
                records = [PrayerDayRecord.from_prayer_day(day, created_at=created_at) for day in days]
                for record in records:
                    db.session.merge(record)
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"LocalStore: DB upsert failed for {len(days)} prayer days: {e}", exc_info=True)
                return 0

            if _redis_enabled():
                for record in records:
                    self._cache_entry(generate_prayer_day_redis_key(record.date.isoformat(), record.provider_key), record.to_entry())

        current_app.logger.debug(f"LocalStore: Stored {len(days)} prayer days for {days[0].provider_key}.")
        return len(days)

    def count_in_range(self, provider_key: str, start: datetime.date, end: datetime.date) -> int:
        return PrayerDayRecord.query.filter(
            PrayerDayRecord.provider_key == provider_key,
            PrayerDayRecord.date >= start,
            PrayerDayRecord.date <= end,
        ).count()

    def count(self, provider: Optional[str] = None, region: Optional[str] = None) -> int:
        """Counts cached prayer days, optionally for one provider and zone/region."""
        query = PrayerDayRecord.query
        if provider is not None:
            query = query.filter(PrayerDayRecord.provider_id == provider)
        if region is not None:
            query = query.filter(PrayerDayRecord.zone_or_region == str(region))
        return query.count()

    # --- Hijri days ---

    def get_hijri(self, gregorian_date: datetime.date, provider: str, region: str = "") -> Optional[CacheEntry]:
        record = db.session.get(HijriDayRecord, HijriDayRecord.make_id(gregorian_date, provider, region))
        if record is None:
            CACHE_MISSES.labels(cache_type='hijri', provider=provider).inc()
            return None
        CACHE_HITS.labels(cache_type='hijri', provider=provider).inc()
        return record.to_entry()

    def put_hijri(self, hijri: HijriDay, created_at: Optional[datetime.datetime] = None) -> bool:
        with self._write_lock:
            try:
                db.session.merge(HijriDayRecord.from_hijri_day(hijri, created_at=created_at))
                db.session.commit()
                return True
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"LocalStore: DB upsert failed for Hijri date {hijri.gregorian_date}: {e}", exc_info=True)
                return False

    def latest_hijri_before(self, date: datetime.date, provider: str, region: Optional[str] = None) -> Optional[CacheEntry]:
        """Most recent Hijri entry dated on or before `date` for the provider (and region)."""
        query = HijriDayRecord.query.filter(
            HijriDayRecord.provider == provider,
            HijriDayRecord.gregorian_date <= date,
        )
        if region is not None:
            query = query.filter(HijriDayRecord.region == region)
        record = query.order_by(HijriDayRecord.gregorian_date.desc()).first()
        return record.to_entry() if record else None

    def count_hijri(self, provider: Optional[str] = None, region: Optional[str] = None) -> int:
        query = HijriDayRecord.query
        if provider is not None:
            query = query.filter(HijriDayRecord.provider == provider)
        if region is not None:
            query = query.filter(HijriDayRecord.region == region)
        return query.count()

    # --- Housekeeping ---

    def _delete(self, prayer_filters, hijri_filters) -> Dict[str, int]:
        with self._write_lock:
            try:
                redis_keys = []
                if _redis_enabled():
                    redis_keys = [
                        generate_prayer_day_redis_key(date.isoformat(), provider_key)
                        for date, provider_key in db.session.query(PrayerDayRecord.date, PrayerDayRecord.provider_key).filter(*prayer_filters)
                    ]
                prayer_deleted = PrayerDayRecord.query.filter(*prayer_filters).delete(synchronize_session=False)
                hijri_deleted = HijriDayRecord.query.filter(*hijri_filters).delete(synchronize_session=False)
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"LocalStore: Delete failed: {e}", exc_info=True)
                raise
            _cache_delete(redis_keys)
        return {"prayerTimes": prayer_deleted, "hijriDates": hijri_deleted}

    def delete_older_than(self, timestamp: datetime.datetime) -> Dict[str, int]:
        """Removes every row written before `timestamp`."""
        deleted = self._delete(
            [PrayerDayRecord.created_at < timestamp],
            [HijriDayRecord.created_at < timestamp],
        )
        current_app.logger.info(f"LocalStore: Evicted rows written before {timestamp.isoformat()}: {deleted}")
        return deleted

    def delete_before(self, date: datetime.date, provider: str, region: Optional[str] = None) -> Dict[str, int]:
        """Removes rows of one provider (and region) dated strictly before `date`."""
        prayer_filters = [PrayerDayRecord.provider_id == provider, PrayerDayRecord.date < date]
        hijri_filters = [HijriDayRecord.provider == provider, HijriDayRecord.gregorian_date < date]
        if region is not None:
            prayer_filters.append(PrayerDayRecord.zone_or_region == str(region))
            hijri_filters.append(HijriDayRecord.region == str(region))
        return self._delete(prayer_filters, hijri_filters)

    def delete_all(self) -> Dict[str, int]:
        with self._write_lock:
            try:
                prayer_deleted = PrayerDayRecord.query.delete()
                hijri_deleted = HijriDayRecord.query.delete()
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"LocalStore: Failed to clear cached data: {e}", exc_info=True)
                raise
            if _redis_enabled():
                try:
                    _cache_delete(redis_client.scan_iter(match=prayer_day_redis_pattern()))
                except redis_exceptions.RedisError as e:
                    current_app.logger.error(f"LocalStore: Redis scan failed while clearing: {e}", exc_info=True)
        current_app.logger.info(f"LocalStore: Cleared all cached data ({prayer_deleted} prayer days, {hijri_deleted} Hijri dates).")
        return {"prayerTimes": prayer_deleted, "hijriDates": hijri_deleted}

    def stats(self) -> Dict[str, int]:
        return {
            "prayerTimesCount": self.count(),
            "hijriDatesCount": self.count_hijri(),
        }
