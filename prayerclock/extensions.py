# prayerclock/extensions.py

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from redis import from_url


class FlaskRedis:
    """A wrapper class to provide a Flask-like interface for the Redis client."""
    def __init__(self, app=None):
        self.redis_client = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize the Redis client from the Flask app configuration."""
        self.redis_client = from_url(app.config.get('REDIS_URL'))

    def __getattr__(self, name):
        """Proxy attribute access to the underlying Redis client."""
        return getattr(self.redis_client, name)


# SQLAlchemy extension, backs the Local Store
db = SQLAlchemy()

# Migrate extension (DB migrations)
migrate = Migrate()

# Limiter extension (rate limiting for the public API)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"]
)

# Redis client extension, hot tier in front of the Local Store
redis_client = FlaskRedis()
