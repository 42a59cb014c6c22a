import os
from dotenv import load_dotenv

# Load .env file
dotenv_path = os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)


def _env_int(name, default):
    value = os.environ.get(name)
    return int(value) if value not in (None, "") else default


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'a_default_fallback_secret_key_for_development_only'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', "INFO")

    # Sentry Configuration
    SENTRY_DSN = os.environ.get('SENTRY_DSN')

    # Redis and Caching Configuration
    # Used for the Celery broker, result backend and the Local Store hot tier.
    REDIS_URL = os.environ.get('REDIS_URL') or 'redis://localhost:6379/0'
    LOCAL_STORE_REDIS_ENABLED = os.environ.get('LOCAL_STORE_REDIS_ENABLED', 'false').lower() == 'true'
    REDIS_TTL_PRAYER_DAY = _env_int('REDIS_TTL_PRAYER_DAY', 60 * 60 * 24)
    CACHE_SCHEMA_VERSION = os.environ.get('CACHE_SCHEMA_VERSION', 'v1')

    # Rows older than this are removed by the background sweep.
    CACHE_EVICTION_DAYS = _env_int('CACHE_EVICTION_DAYS', 30)

    # Celery Configuration
    CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL') or REDIS_URL
    CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND') or REDIS_URL

    # Provider endpoints
    MOSQUE_CLOCK_API_BASE_URL = os.environ.get('MOSQUE_CLOCK_API_BASE_URL') or "http://localhost:8000"
    MOSQUE_CLOCK_API_KEY = os.environ.get('MOSQUE_CLOCK_API_KEY')
    ALADHAN_BASE_URL = os.environ.get('ALADHAN_BASE_URL') or "https://api.aladhan.com/v1"
    ALADHAN_METHOD_ID = _env_int('ALADHAN_METHOD_ID', 2)
    ALADHAN_SCHOOL_ID = _env_int('ALADHAN_SCHOOL_ID', 0)
    ACJU_BASE_URL = os.environ.get('ACJU_BASE_URL') or "https://www.acju.lk"

    # Every outbound request is bounded by one of these.
    HTTP_TIMEOUT_SECONDS = _env_int('HTTP_TIMEOUT_SECONDS', 10)
    PDF_TIMEOUT_SECONDS = _env_int('PDF_TIMEOUT_SECONDS', 30)

    # Default settings snapshot
    DEFAULT_PROVIDER = os.environ.get('DEFAULT_PROVIDER', 'MANUAL')
    DEFAULT_ZONE = _env_int('DEFAULT_ZONE', 1)
    DEFAULT_REGION = os.environ.get('DEFAULT_REGION', 'Colombo')

    # Offline prefetch
    PREFETCH_MONTH_DELAY_SECONDS = float(os.environ.get('PREFETCH_MONTH_DELAY_SECONDS', 1.0))
    # When unset the horizon runs to March of next year.
    PREFETCH_HORIZON_MONTHS = _env_int('PREFETCH_HORIZON_MONTHS', None)
    PREFETCH_NEXT_YEAR_MONTHS = _env_int('PREFETCH_NEXT_YEAR_MONTHS', 3)

    # Hijri continuity fallback
    HIJRI_CONTINUITY_MAX_GAP_DAYS = _env_int('HIJRI_CONTINUITY_MAX_GAP_DAYS', 7)

    # Resolved days kept in process memory; the oldest are dropped first.
    MEMORY_CACHE_MAX_ENTRIES = _env_int('MEMORY_CACHE_MAX_ENTRIES', 400)

    # Scrape-direct failures retry the backend API for the same zone.
    SCRAPE_FALLBACK_TO_BACKEND = os.environ.get('SCRAPE_FALLBACK_TO_BACKEND', 'true').lower() == 'true'


class DevelopmentConfig(Config):
    FLASK_ENV = 'development'
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///prayerclock.db'
    # Without a migrations directory the local sqlite file gets its tables on startup.
    AUTO_CREATE_TABLES = True
    LOG_LEVEL = "DEBUG"


class ProductionConfig(Config):
    FLASK_ENV = 'production'
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL')


class TestingConfig(Config):
    TESTING = True
    # In-memory SQLite keeps tests isolated from any real database.
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    RATELIMIT_ENABLED = False
    SECRET_KEY = 'test-secret-key'
    LOCAL_STORE_REDIS_ENABLED = False
    PREFETCH_MONTH_DELAY_SECONDS = 0
    MOSQUE_CLOCK_API_BASE_URL = "http://mosque-clock.test"
    ALADHAN_BASE_URL = "http://aladhan.test/v1"
    ACJU_BASE_URL = "http://acju.test"
    SENTRY_DSN = None


config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
