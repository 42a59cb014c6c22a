# prayerclock/services/engine.py
"""
Wires the resolution engine into a Flask app: one settings source, one Local
Store, the provider clients, the coordinator and the prefetch manager, all
shared by request handlers, Celery tasks and scripts through `get_engine()`.
"""
from flask import current_app

from .settings_source import EngineSettings, SettingsSource
from .prayer_time.api_adapter import get_hijri_scraper, get_provider_clients
from .prayer_time.local_store import LocalStore
from .prayer_time.prefetch_manager import PrefetchManager
from .prayer_time.resolution_coordinator import ResolutionCoordinator

EXTENSION_NAME = 'prayer_engine'


class PrayerEngine:

    def __init__(self, app=None):
        self.settings_source = None
        self.store = None
        self.providers = None
        self.hijri_scraper = None
        self.coordinator = None
        self.prefetch_manager = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.settings_source = SettingsSource(EngineSettings.from_config(app.config))
        self.store = LocalStore()
        self.hijri_scraper = get_hijri_scraper(app.config)
        self.providers = get_provider_clients(app.config, hijri_scraper=self.hijri_scraper)
        self.coordinator = ResolutionCoordinator(
            store=self.store,
            providers=self.providers,
            settings_source=self.settings_source,
            hijri_scraper=self.hijri_scraper,
        )
        self.prefetch_manager = PrefetchManager(
            coordinator=self.coordinator,
            store=self.store,
            settings_source=self.settings_source,
        )
        app.extensions[EXTENSION_NAME] = self
        app.logger.info(f"PrayerEngine: Initialized with provider {self.settings_source.current.provider_key}.")


def get_engine() -> PrayerEngine:
    return current_app.extensions[EXTENSION_NAME]
