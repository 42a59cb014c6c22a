"""
Celery tasks for the prayer clock engine: the offline prefetch and the
periodic sweep of expired cache rows.
"""
import datetime

from flask import current_app

from .celery_utils import celery
from .metrics import BACKGROUND_TASK_RUNS_TOTAL, BACKGROUND_TASK_DURATION_SECONDS


@celery.task(name='tasks.prefetch_offline_months')
def prefetch_offline_months(zone=None, settings=None):
    """
    Fills the Local Store for the prefetch horizon of the active provider.
    `settings` is the caller's EngineSettings snapshot (as a dict); it is
    applied to this worker's engine first so the run uses the caller's
    provider and zone rather than the configured defaults.
    Returns the PrefetchResult as a dict. A run already in progress is reported,
    not queued behind.
    """
    with BACKGROUND_TASK_DURATION_SECONDS.labels(task_name='prefetch_offline_months').time():
        current_app.logger.info(f"[CELERY TASK] Starting offline prefetch (zone={zone}).")
        from .services.engine import get_engine
        from .services.errors import PrefetchAlreadyRunningError

        engine = get_engine()
        if settings:
            engine.settings_source.update(**settings)
            current_app.logger.info(f"[CELERY TASK] Using settings for {engine.settings_source.current.provider_key}.")

        try:
            result = engine.prefetch_manager.prefetch(zone)
        except PrefetchAlreadyRunningError as e:
            current_app.logger.warning(f"[CELERY TASK] {e}")
            BACKGROUND_TASK_RUNS_TOTAL.labels(task_name='prefetch_offline_months', status='skipped').inc()
            return {"message": str(e)}
        except Exception as e:
            current_app.logger.error(f"[CELERY TASK] Offline prefetch failed: {e}", exc_info=True)
            BACKGROUND_TASK_RUNS_TOTAL.labels(task_name='prefetch_offline_months', status='failure').inc()
            raise

        current_app.logger.info(f"[CELERY TASK] Offline prefetch finished: {result.to_dict()}")
        BACKGROUND_TASK_RUNS_TOTAL.labels(task_name='prefetch_offline_months', status='success').inc()
        return result.to_dict()


@celery.task(name='tasks.sweep_expired_cache')
def sweep_expired_cache(max_age_days=None):
    """Deletes cached prayer days and Hijri dates written more than `max_age_days` ago."""
    with BACKGROUND_TASK_DURATION_SECONDS.labels(task_name='sweep_expired_cache').time():
        from .services.engine import get_engine

        max_age_days = max_age_days or current_app.config.get('CACHE_EVICTION_DAYS', 30)
        cutoff = datetime.datetime.utcnow() - datetime.timedelta(days=max_age_days)
        current_app.logger.info(f"[CELERY TASK] Sweeping cache rows written before {cutoff.isoformat()}.")
        try:
            deleted = get_engine().store.delete_older_than(cutoff)
        except Exception as e:
            current_app.logger.error(f"[CELERY TASK] Cache sweep failed: {e}", exc_info=True)
            BACKGROUND_TASK_RUNS_TOTAL.labels(task_name='sweep_expired_cache', status='failure').inc()
            raise
        get_engine().coordinator.invalidate()
        BACKGROUND_TASK_RUNS_TOTAL.labels(task_name='sweep_expired_cache', status='success').inc()
        return deleted
