# prayerclock/services/prayer_time/resolution_coordinator.py
"""
Resolution Coordinator: the single `resolve(date) -> PrayerDay` entry point.

Manual settings are synthesized on the spot. Everything else is served from
the Local Store when present, otherwise fetched from the active provider and
written back. Unavailable / NotFound degrade to an empty but dated PrayerDay;
TransportError is raised to the caller, who decides whether to retry.
"""
import dataclasses
import datetime
import threading
from concurrent.futures import Future
from typing import Callable, Dict, List, Optional, Tuple

from flask import current_app

from ..errors import NotFoundError, ResolutionError, TransportError
from ..helpers.records import HijriDay, PrayerDay, ProviderKind
from ..api_adapters.manual_adapter import build_manual_prayer_day
from ...metrics import RESOLUTIONS_TOTAL

HIJRI_PROVIDER = ProviderKind.SCRAPE_DIRECT.value
HIJRI_REGION = ""


class ResolutionCoordinator:

    def __init__(self, store, providers: Dict, settings_source, hijri_scraper=None):
        self.store = store
        self.providers = providers
        self.settings_source = settings_source
        self.hijri_scraper = hijri_scraper

        self._memory_cache: Dict[Tuple[datetime.date, str], PrayerDay] = {}
        self._memory_lock = threading.Lock()
        self._in_flight: Dict[Tuple, Future] = {}
        self._in_flight_lock = threading.Lock()

        settings_source.subscribe(self._on_settings_changed)

    # --- Invalidation ---

    def _on_settings_changed(self, old_settings, new_settings):
        self.invalidate()

    def invalidate(self) -> None:
        """Drops everything held in memory. Stored rows stay; they are provider qualified."""
        with self._memory_lock:
            dropped = len(self._memory_cache)
            self._memory_cache.clear()
        current_app.logger.info(f"ResolutionCoordinator: Invalidated in-memory cache ({dropped} entries).")

    # --- Single flight ---

    def _single_flight(self, key: Tuple, work: Callable):
        """Runs `work` once per key at a time; concurrent callers for the same key share its outcome."""
        with self._in_flight_lock:
            future = self._in_flight.get(key)
            is_owner = future is None
            if is_owner:
                future = Future()
                self._in_flight[key] = future

        if not is_owner:
            current_app.logger.debug(f"ResolutionCoordinator: Joining in-flight fetch for {key}.")
            return future.result()

        try:
            result = work()
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._in_flight_lock:
                self._in_flight.pop(key, None)

    # --- Prayer days ---

    def resolve(self, date: datetime.date, settings=None) -> PrayerDay:
        """
        Resolves the canonical PrayerDay for `date` under the given (or current) settings.

        Raises:
            TransportError: the provider could not be reached. Nothing else is raised
                for routine misses.
        """
        settings = settings or self.settings_source.current
        if settings.provider is ProviderKind.MANUAL:
            RESOLUTIONS_TOTAL.labels(provider=ProviderKind.MANUAL.value, outcome='manual').inc()
            return build_manual_prayer_day(settings, date)

        provider_key = settings.provider_key
        memory_key = (date, provider_key)
        with self._memory_lock:
            cached = self._memory_cache.get(memory_key)
        if cached is not None:
            RESOLUTIONS_TOTAL.labels(provider=settings.provider.value, outcome='memory').inc()
            return cached

        entry = self.store.get(date, provider_key)
        if entry is not None:
            RESOLUTIONS_TOTAL.labels(provider=settings.provider.value, outcome='store').inc()
            self._remember(memory_key, entry.payload)
            return entry.payload

        def fetch():
            # A flight that finished while this caller was on its way has already filled memory.
            with self._memory_lock:
                landed = self._memory_cache.get(memory_key)
            if landed is not None:
                return landed
            day = self._fetch_and_store(date, settings)
            if not day.is_empty:
                self._remember(memory_key, day)
            return day

        return self._single_flight(memory_key, fetch)

    def _remember(self, key, day: PrayerDay) -> None:
        limit = current_app.config.get('MEMORY_CACHE_MAX_ENTRIES', 400)
        with self._memory_lock:
            self._memory_cache.pop(key, None)
            self._memory_cache[key] = day
            # Insertion ordered, so the first key is the oldest entry.
            while len(self._memory_cache) > limit:
                del self._memory_cache[next(iter(self._memory_cache))]

    def _fetch_from(self, provider: ProviderKind, date: datetime.date, locality) -> PrayerDay:
        client = self.providers[provider]
        if client.monthly_source:
            days = client.fetch_month(date.year, date.month, locality)
            self._store_days(days)
            for day in days:
                if day.date == date:
                    return day
            raise NotFoundError(f"{client.name} returned {len(days)} days but none for {date}")

        day = client.fetch_day(date, locality)
        self._store_days([day])
        return day

    def _store_days(self, days: List[PrayerDay]) -> int:
        for day in days:
            problems = day.ordering_violations()
            if problems:
                current_app.logger.warning(f"ResolutionCoordinator: {day.provider_key} {day.date} looks inconsistent: {'; '.join(problems)}")
        written = self.store.put_many(days)
        if days and not written:
            current_app.logger.warning(f"ResolutionCoordinator: {len(days)} fetched days could not be cached.")
        return written

    def _fetch_and_store(self, date: datetime.date, settings) -> PrayerDay:
        provider = settings.provider
        locality = settings.zone_or_region
        try:
            day = self._fetch_from(provider, date, locality)
            RESOLUTIONS_TOTAL.labels(provider=provider.value, outcome='fetched').inc()
            current_app.logger.info(f"ResolutionCoordinator: Resolved {date} from {settings.provider_key}.")
            return day
        except ResolutionError as e:
            fallback = self._fallback_to_backend(date, settings, e)
            if fallback is not None:
                return fallback
            if isinstance(e, TransportError):
                RESOLUTIONS_TOTAL.labels(provider=provider.value, outcome='transport_error').inc()
                current_app.logger.error(f"ResolutionCoordinator: Transport failure resolving {date} from {settings.provider_key}: {e}")
                raise
            RESOLUTIONS_TOTAL.labels(provider=provider.value, outcome='degraded').inc()
            current_app.logger.warning(f"ResolutionCoordinator: No data for {date} from {settings.provider_key} ({type(e).__name__}: {e}); returning empty day.")
            return PrayerDay.empty(date, provider, locality)

    def _fallback_to_backend(self, date, settings, error) -> Optional[PrayerDay]:
        """The scrape-direct provider falls back to the backend API for the same zone."""
        if settings.provider is not ProviderKind.SCRAPE_DIRECT:
            return None
        if not current_app.config.get('SCRAPE_FALLBACK_TO_BACKEND', True):
            return None
        if ProviderKind.BACKEND not in self.providers:
            return None

        current_app.logger.warning(f"ResolutionCoordinator: Direct scraping failed ({error}), falling back to backend API for zone {settings.zone}.")
        try:
            day = self._fetch_from(ProviderKind.BACKEND, date, str(settings.zone))
        except ResolutionError as fallback_error:
            current_app.logger.warning(f"ResolutionCoordinator: Backend fallback failed as well: {fallback_error}")
            return None
        RESOLUTIONS_TOTAL.labels(provider=ProviderKind.BACKEND.value, outcome='fallback').inc()
        return day

    def resolve_month(self, year: int, month: int, zone_or_region=None, settings=None) -> int:
        """
        Provider path used by the prefetch manager: fetches one month from the
        active provider and stores it. Returns the number of days written.
        Provider errors propagate unchanged so the caller can classify them.
        """
        settings = settings or self.settings_source.current
        if settings.provider is ProviderKind.MANUAL:
            return 0
        locality = settings.zone_or_region if zone_or_region is None else str(zone_or_region)
        client = self.providers[settings.provider]
        days = client.fetch_month(year, month, locality)
        return self._store_days(days)

    # --- Hijri dates ---

    def resolve_hijri(self, date: datetime.date) -> Optional[HijriDay]:
        """
        Resolves a Hijri date: stored value, then the calendar scraper, then a
        continuity estimate from the latest stored date within a few days.
        """
        entry = self.store.get_hijri(date, HIJRI_PROVIDER, HIJRI_REGION)
        if entry is not None:
            return entry.payload

        if self.hijri_scraper is not None:
            try:
                hijri = self.hijri_scraper.fetch_hijri_for_gregorian(date.year, date.month, date.day)
                self.store.put_hijri(hijri)
                return hijri
            except NotFoundError as e:
                current_app.logger.info(f"ResolutionCoordinator: Hijri scraper has nothing for {date}: {e}")

        return self._hijri_from_continuity(date)

    def _hijri_from_continuity(self, date: datetime.date) -> Optional[HijriDay]:
        latest = self.store.latest_hijri_before(date, HIJRI_PROVIDER, HIJRI_REGION)
        if latest is None:
            return None
        base = latest.payload
        gap = (date - base.gregorian_date).days
        max_gap = current_app.config.get('HIJRI_CONTINUITY_MAX_GAP_DAYS', 7)
        if gap > max_gap or base.day >= 28:
            current_app.logger.debug(f"ResolutionCoordinator: Cannot extend Hijri date, gap={gap}, day={base.day}")
            return None
        if base.month_end_date is not None and date > base.month_end_date:
            return None

        estimated = dataclasses.replace(base, day=base.day + gap, gregorian_date=date, is_calculated=True)
        self.store.put_hijri(estimated)
        current_app.logger.info(f"ResolutionCoordinator: Estimated Hijri date {estimated.display()} for {date} from {base.gregorian_date}.")
        return estimated

    # --- Cache management ---

    def clear_all_cached_data(self) -> Dict[str, int]:
        deleted = self.store.delete_all()
        self.invalidate()
        return deleted

    def get_cache_stats(self) -> Dict[str, int]:
        return self.store.stats()
