# prayerclock/services/prayer_time/key_utils.py

from flask import current_app


def generate_prayer_day_redis_key(date_str: str, provider_key: str) -> str:
    """Generates a consistent Redis key for one cached prayer day."""
    schema_version = current_app.config.get('CACHE_SCHEMA_VERSION', 'v1')
    return f"prayer_day:{schema_version}:{provider_key}:{date_str}"


def prayer_day_redis_pattern() -> str:
    """Pattern matching every prayer day key of the current schema version."""
    schema_version = current_app.config.get('CACHE_SCHEMA_VERSION', 'v1')
    return f"prayer_day:{schema_version}:*"
