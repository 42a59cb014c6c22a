# prayerclock/services/prayer_time/prefetch_manager.py
"""
Offline prefetch: walks the months ahead and fills the Local Store through the
resolution coordinator so the clock keeps working without a network.
"""
import datetime
import enum
import threading
from typing import Optional

from flask import current_app

from ..errors import PrefetchAlreadyRunningError, ResolutionError, UnavailableError
from ..helpers.records import CacheStatus, PrefetchResult, ProviderKind, make_provider_key
from ...metrics import PREFETCH_MONTHS_TOTAL
from ...utils.time_utils import days_in_month, month_bounds, prefetch_horizon


class PrefetchState(enum.Enum):
    IDLE = "Idle"
    LOADING = "Loading"
    SUCCESS = "Success"
    ERROR = "Error"


class PrefetchManager:

    def __init__(self, coordinator, store, settings_source):
        self.coordinator = coordinator
        self.store = store
        self.settings_source = settings_source

        self._run_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._cancel_event = threading.Event()
        self._state = PrefetchState.IDLE
        self.last_result: Optional[PrefetchResult] = None
        self.last_error: Optional[str] = None

    @property
    def state(self) -> PrefetchState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: PrefetchState) -> None:
        with self._state_lock:
            self._state = state

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def cancel(self) -> None:
        """Asks a running prefetch to stop before its next month."""
        self._cancel_event.set()

    def _horizon(self, today=None):
        today = today or datetime.date.today()
        return prefetch_horizon(
            today,
            horizon_months=current_app.config.get('PREFETCH_HORIZON_MONTHS'),
            next_year_months=current_app.config.get('PREFETCH_NEXT_YEAR_MONTHS', 3),
        )

    def _locality(self, settings, zone):
        return settings.zone_or_region if zone is None else str(zone)

    def _is_month_cached(self, provider_key: str, year: int, month: int) -> bool:
        start, end = month_bounds(year, month)
        return self.store.count_in_range(provider_key, start, end) >= days_in_month(year, month)

    def prefetch(self, zone=None) -> PrefetchResult:
        """
        Fetches every uncached month of the horizon for the active provider.

        A month that is already complete is skipped. Transport and not-found
        failures, and months where nothing could be stored, are counted as
        failed and the walk continues. The first unavailable month ends the
        walk; months after it are skipped when complete, unavailable otherwise.

        Raises:
            PrefetchAlreadyRunningError: another prefetch holds the run lock.
        """
        if not self._run_lock.acquire(blocking=False):
            raise PrefetchAlreadyRunningError("An offline prefetch is already running.")
        try:
            self._cancel_event.clear()
            self._set_state(PrefetchState.LOADING)
            result = self._run(zone)
        except Exception as e:
            self.last_error = str(e)
            self._set_state(PrefetchState.ERROR)
            current_app.logger.error(f"PrefetchManager: Prefetch aborted: {e}", exc_info=True)
            raise
        else:
            self.last_result = result
            self.last_error = None
            self._set_state(PrefetchState.SUCCESS)
            return result
        finally:
            self._run_lock.release()

    def _run(self, zone) -> PrefetchResult:
        settings = self.settings_source.current
        if settings.provider is ProviderKind.MANUAL:
            current_app.logger.info("PrefetchManager: Manual provider selected, nothing to prefetch.")
            return PrefetchResult()

        locality = self._locality(settings, zone)
        provider_key = make_provider_key(settings.provider, locality)
        provider = settings.provider.value
        months = self._horizon()
        delay = float(current_app.config.get('PREFETCH_MONTH_DELAY_SECONDS', 0) or 0)
        result = PrefetchResult(total_months=len(months))
        current_app.logger.info(f"PrefetchManager: Prefetching {len(months)} months for {provider_key}.")

        for index, (year, month) in enumerate(months):
            if self._cancel_event.is_set():
                result.cancelled = True
                current_app.logger.info(f"PrefetchManager: Cancelled before {year}-{month:02d}.")
                break

            if self._is_month_cached(provider_key, year, month):
                result.skipped_months += 1
                PREFETCH_MONTHS_TOTAL.labels(provider=provider, outcome='skipped').inc()
                continue

            try:
                written = self.coordinator.resolve_month(year, month, locality, settings=settings)
            except UnavailableError as e:
                # Later months already stored still count as skipped.
                later = months[index + 1:]
                cached_later = sum(1 for later_year, later_month in later if self._is_month_cached(provider_key, later_year, later_month))
                unavailable = 1 + len(later) - cached_later
                result.unavailable_months += unavailable
                result.skipped_months += cached_later
                PREFETCH_MONTHS_TOTAL.labels(provider=provider, outcome='unavailable').inc(unavailable)
                if cached_later:
                    PREFETCH_MONTHS_TOTAL.labels(provider=provider, outcome='skipped').inc(cached_later)
                current_app.logger.info(f"PrefetchManager: {year}-{month:02d} not published yet ({e}); stopping with {unavailable} month(s) unavailable.")
                break
            except ResolutionError as e:
                result.failed_months += 1
                PREFETCH_MONTHS_TOTAL.labels(provider=provider, outcome='failed').inc()
                current_app.logger.warning(f"PrefetchManager: {year}-{month:02d} failed: {type(e).__name__}: {e}")
            else:
                if written:
                    result.successful_months += 1
                    result.cached_days += written
                    PREFETCH_MONTHS_TOTAL.labels(provider=provider, outcome='success').inc()
                    current_app.logger.debug(f"PrefetchManager: Cached {written} days for {year}-{month:02d}.")
                else:
                    result.failed_months += 1
                    PREFETCH_MONTHS_TOTAL.labels(provider=provider, outcome='failed').inc()
                    current_app.logger.warning(f"PrefetchManager: {year}-{month:02d} fetched but nothing was stored.")

            if delay and index < len(months) - 1:
                self._cancel_event.wait(delay)

        current_app.logger.info(f"PrefetchManager: Finished for {provider_key}: {result.to_dict()}")
        return result

    def check_cache_status(self, zone=None) -> CacheStatus:
        """Reports how much of the prefetch horizon is already stored."""
        settings = self.settings_source.current
        months = self._horizon()
        total_days = sum(days_in_month(year, month) for year, month in months)
        if settings.provider is ProviderKind.MANUAL:
            return CacheStatus(total_months=len(months), cached_months=0, total_days=total_days, cached_days=0)

        provider_key = make_provider_key(settings.provider, self._locality(settings, zone))
        cached_months = 0
        cached_days = 0
        for year, month in months:
            start, end = month_bounds(year, month)
            count = self.store.count_in_range(provider_key, start, end)
            cached_days += min(count, days_in_month(year, month))
            if count >= days_in_month(year, month):
                cached_months += 1
        return CacheStatus(
            total_months=len(months),
            cached_months=cached_months,
            total_days=total_days,
            cached_days=cached_days,
        )
