# prayerclock/routes/main_routes.py

from flask_smorest import Blueprint

from ..schemas import MessageSchema
from ..services.engine import get_engine

main_bp = Blueprint('Main', __name__, url_prefix='/')


@main_bp.route('/')
@main_bp.response(200, MessageSchema)
def index():
    """
    Main endpoint for the API.
    """
    return {"message": "Welcome to the PrayerClock API!"}


@main_bp.route('/health')
@main_bp.response(200, MessageSchema)
def health():
    """Liveness check that also reports the active provider."""
    return {"message": f"ok ({get_engine().settings_source.current.provider_key})"}
