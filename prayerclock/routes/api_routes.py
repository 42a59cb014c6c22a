# prayerclock/routes/api_routes.py
import datetime

from flask import current_app, jsonify
from flask_smorest import Blueprint, abort
from prometheus_client import generate_latest

from ..extensions import limiter
from ..schemas import (
    MessageSchema, PrayerDaySchema, HijriDaySchema, DisplaySchema, DisplayArgsSchema,
    PrefetchArgsSchema, PrefetchResultSchema, PrefetchStatusSchema, CacheStatusArgsSchema,
    CacheStatusSchema, CacheStatsSchema, CacheClearedSchema, EngineSettingsSchema,
)
from ..services.engine import get_engine
from ..services.errors import PrefetchAlreadyRunningError, TransportError
from ..services.prayer_time.display_deriver import derive_display

api_bp = Blueprint('API', __name__, url_prefix='/api', description="Prayer times, Hijri dates and the offline cache.")


@api_bp.route('/metrics')
def metrics():
    return generate_latest(), 200, {'Content-Type': 'text/plain; version=0.0.4; charset=utf-8'}


def _parse_date(date_str: str) -> datetime.date:
    try:
        return datetime.date.fromisoformat(date_str)
    except ValueError:
        abort(400, message=f"Invalid date '{date_str}'. Use YYYY-MM-DD.")


def _resolve_or_abort(date_obj: datetime.date):
    try:
        return get_engine().coordinator.resolve(date_obj)
    except TransportError as e:
        current_app.logger.error(f"API: Provider unreachable for {date_obj}: {e}")
        abort(503, message="Could not reach the prayer time provider. Try again later.")


@api_bp.route('/prayer-times/<string:date_str>')
@api_bp.response(200, PrayerDaySchema)
@api_bp.alt_response(400, schema=MessageSchema, description="Malformed date.")
@api_bp.alt_response(503, schema=MessageSchema, description="Service Unavailable - the provider could not be reached.")
def get_prayer_times(date_str):
    """Canonical prayer times for a date under the current settings."""
    return _resolve_or_abort(_parse_date(date_str))


@api_bp.route('/display')
@api_bp.arguments(DisplayArgsSchema, location='query')
@api_bp.response(200, DisplaySchema)
@api_bp.alt_response(503, schema=MessageSchema, description="Service Unavailable - the provider could not be reached.")
def get_display(args):
    """
    Display entries (Azan + Iqamah) and the next prayer for a moment in time.
    Defaults to now.
    """
    at = args.get('at') or datetime.datetime.now()
    if at.tzinfo is not None:
        at = at.replace(tzinfo=None)
    prayer_day = _resolve_or_abort(at.date())
    settings = get_engine().settings_source.current
    schedule = derive_display(prayer_day, settings, at)
    return {
        "date": prayer_day.date,
        "providerKey": prayer_day.provider_key,
        "isEmpty": prayer_day.is_empty,
        "hijriDate": prayer_day.hijri_date,
        "nextPrayer": schedule.next_prayer,
        "entries": schedule.entries,
    }


def _resolve_hijri_or_abort(date_obj: datetime.date):
    hijri = get_engine().coordinator.resolve_hijri(date_obj)
    if hijri is None:
        abort(404, message=f"No Hijri date available for {date_obj.isoformat()}.")
    return hijri


@api_bp.route('/hijri/today')
@api_bp.response(200, HijriDaySchema)
@api_bp.alt_response(404, schema=MessageSchema, description="No Hijri date could be resolved.")
def get_hijri_today():
    """Hijri date for today's local date."""
    return _resolve_hijri_or_abort(datetime.date.today())


@api_bp.route('/hijri/<string:date_str>')
@api_bp.response(200, HijriDaySchema)
@api_bp.alt_response(404, schema=MessageSchema, description="No Hijri date could be resolved.")
def get_hijri(date_str):
    """Hijri date for a Gregorian date, scraped or carried forward from a recent one."""
    return _resolve_hijri_or_abort(_parse_date(date_str))


@api_bp.route('/prefetch', methods=['POST'])
@limiter.limit("10 per hour")
@api_bp.arguments(PrefetchArgsSchema, location='json', required=False)
@api_bp.response(200, PrefetchResultSchema)
@api_bp.alt_response(202, schema=MessageSchema, description="Prefetch queued as a background task.")
@api_bp.alt_response(409, schema=MessageSchema, description="A prefetch is already running.")
def start_prefetch(args):
    """
    Downloads the upcoming months for offline use. With `background: true` the
    work is handed to Celery and the call returns immediately.
    """
    args = args or {}
    zone = args.get('zone')
    if args.get('background'):
        from ..tasks import prefetch_offline_months
        # The worker has its own engine; it runs under this process's settings.
        task = prefetch_offline_months.delay(zone, settings=get_engine().settings_source.current.to_dict())
        response = jsonify({"message": f"Prefetch queued as task {task.id}."})
        response.status_code = 202
        return response

    try:
        return get_engine().prefetch_manager.prefetch(zone)
    except PrefetchAlreadyRunningError as e:
        abort(409, message=str(e))


@api_bp.route('/prefetch/status')
@api_bp.response(200, PrefetchStatusSchema)
def prefetch_status():
    manager = get_engine().prefetch_manager
    return {
        "state": manager.state.value,
        "isRunning": manager.is_running,
        "lastResult": manager.last_result,
        "lastError": manager.last_error,
    }


@api_bp.route('/cache/status')
@api_bp.arguments(CacheStatusArgsSchema, location='query')
@api_bp.response(200, CacheStatusSchema)
def cache_status(args):
    """How much of the prefetch horizon is stored for the active provider."""
    return get_engine().prefetch_manager.check_cache_status(args.get('zone'))


@api_bp.route('/cache/stats')
@api_bp.response(200, CacheStatsSchema)
def cache_stats():
    return get_engine().coordinator.get_cache_stats()


@api_bp.route('/cache', methods=['DELETE'])
@limiter.limit("10 per hour")
@api_bp.response(200, CacheClearedSchema)
def clear_cache():
    """Removes every cached prayer day and Hijri date."""
    deleted = get_engine().coordinator.clear_all_cached_data()
    current_app.logger.info(f"API: Cache cleared on request: {deleted}")
    return deleted


@api_bp.route('/settings', methods=['GET'])
@api_bp.response(200, EngineSettingsSchema)
def get_settings():
    return get_engine().settings_source.current


@api_bp.route('/settings', methods=['PATCH'])
@api_bp.arguments(EngineSettingsSchema(partial=True), location='json')
@api_bp.response(200, EngineSettingsSchema)
def update_settings(changes):
    """Applies a partial settings change. Any change clears the in-memory resolution cache."""
    return get_engine().settings_source.update(**changes)
