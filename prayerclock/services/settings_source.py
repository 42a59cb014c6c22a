# prayerclock/services/settings_source.py
"""
Read-only settings snapshots and the change notification used to invalidate
the resolution coordinator. How settings are persisted is not this module's
concern; it only holds the current snapshot.
"""
import dataclasses
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List

from flask import current_app

from .helpers.constants import (
    DEFAULT_MANUAL_AZAN, DEFAULT_MANUAL_IQAMAH, DEFAULT_MANUAL_SUNRISE,
    DEFAULT_IQAMAH_GAPS, DEFAULT_NIGHT_GATHERING_MINUTES, DEFAULT_NIGHT_GATHERING_WEEKDAY,
)
from .helpers.records import ProviderKind, make_provider_key


@dataclass(frozen=True)
class EngineSettings:
    provider: ProviderKind = ProviderKind.MANUAL
    zone: int = 1
    region: str = "Colombo"
    apartment_mode: bool = False
    manual_azan: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_MANUAL_AZAN))
    manual_iqamah: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_MANUAL_IQAMAH))
    manual_sunrise: str = DEFAULT_MANUAL_SUNRISE
    iqamah_gaps: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_IQAMAH_GAPS))
    night_gathering_enabled: bool = False
    night_gathering_minutes: int = DEFAULT_NIGHT_GATHERING_MINUTES
    night_gathering_weekday: int = DEFAULT_NIGHT_GATHERING_WEEKDAY

    @property
    def zone_or_region(self) -> str:
        """Zone for the numeric-zone providers, region name for the third-party API."""
        if self.provider is ProviderKind.THIRD_PARTY:
            return self.region
        if self.provider is ProviderKind.MANUAL:
            return ""
        return str(self.zone)

    @property
    def provider_key(self) -> str:
        return make_provider_key(self.provider, self.zone_or_region)

    @classmethod
    def from_config(cls, config) -> "EngineSettings":
        return cls(
            provider=ProviderKind.parse(config.get('DEFAULT_PROVIDER', 'MANUAL')),
            zone=int(config.get('DEFAULT_ZONE', 1)),
            region=config.get('DEFAULT_REGION', 'Colombo'),
        )

    def to_dict(self):
        data = dataclasses.asdict(self)
        data["provider"] = self.provider.name
        return data


class SettingsSource:
    """
    Holds the current EngineSettings snapshot and notifies subscribers
    whenever it is replaced.
    """

    def __init__(self, initial: EngineSettings = None):
        self._settings = initial or EngineSettings()
        self._subscribers: List[Callable[[EngineSettings, EngineSettings], None]] = []
        self._lock = threading.Lock()

    @property
    def current(self) -> EngineSettings:
        return self._settings

    def subscribe(self, callback: Callable[[EngineSettings, EngineSettings], None]) -> None:
        self._subscribers.append(callback)

    def replace(self, new_settings: EngineSettings) -> EngineSettings:
        with self._lock:
            old_settings = self._settings
            self._settings = new_settings
        if new_settings != old_settings:
            current_app.logger.info(
                f"SettingsSource: settings changed ({old_settings.provider_key} -> {new_settings.provider_key}), notifying {len(self._subscribers)} subscriber(s)."
            )
            for callback in self._subscribers:
                callback(old_settings, new_settings)
        return new_settings

    def update(self, **changes) -> EngineSettings:
        """Applies a partial change. Unknown field names raise TypeError."""
        if "provider" in changes:
            changes["provider"] = ProviderKind.parse(changes["provider"])
        for mapping_field in ("manual_azan", "manual_iqamah", "iqamah_gaps"):
            if mapping_field in changes:
                merged = dict(getattr(self._settings, mapping_field))
                merged.update(changes[mapping_field])
                changes[mapping_field] = merged
        return self.replace(dataclasses.replace(self._settings, **changes))
