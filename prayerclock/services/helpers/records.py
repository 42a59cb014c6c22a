# prayerclock/services/helpers/records.py
"""
Plain data records passed between the provider clients, the local store,
the resolution coordinator and the display layer.
"""
import datetime
import enum
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Optional, List

from .constants import IQAMAH_PRAYERS


class ProviderKind(enum.Enum):
    MANUAL = "MANUAL"
    BACKEND = "MOSQUE_CLOCK_API"
    THIRD_PARTY = "AL_ADHAN_API"
    SCRAPE_DIRECT = "ACJU_DIRECT"

    @classmethod
    def parse(cls, value):
        """Accepts either the member name ('BACKEND') or its value ('MOSQUE_CLOCK_API')."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        for member in cls:
            if text in (member.name, member.value):
                return member
        raise ValueError(f"Unknown provider: {value}")


def make_provider_key(provider: ProviderKind, zone_or_region) -> str:
    """Manual data is locality independent; every other provider is qualified by its zone or region."""
    if provider is ProviderKind.MANUAL:
        return ProviderKind.MANUAL.value
    return f"{provider.value}:{zone_or_region}"


@dataclass(frozen=True)
class PrayerTime:
    azan: Optional[str]
    iqamah: Optional[str] = None


@dataclass(frozen=True)
class PrayerDay:
    date: datetime.date
    provider_id: str
    zone_or_region: str
    fajr: PrayerTime
    dhuhr: PrayerTime
    asr: PrayerTime
    maghrib: PrayerTime
    isha: PrayerTime
    sunrise: Optional[str] = None
    hijri_date: Optional[str] = None
    location: Optional[str] = None

    @property
    def provider_key(self) -> str:
        return make_provider_key(ProviderKind.parse(self.provider_id), self.zone_or_region)

    @property
    def is_empty(self) -> bool:
        return all(self.prayer(name).azan is None for name in IQAMAH_PRAYERS)

    def prayer(self, name: str) -> PrayerTime:
        return getattr(self, name)

    @classmethod
    def empty(cls, date: datetime.date, provider: ProviderKind, zone_or_region) -> "PrayerDay":
        """A dated record with no times, returned when a provider has nothing for the date."""
        blank = PrayerTime(azan=None)
        return cls(
            date=date,
            provider_id=provider.value,
            zone_or_region=str(zone_or_region),
            fajr=blank, dhuhr=blank, asr=blank, maghrib=blank, isha=blank,
        )

    def ordering_violations(self) -> List[str]:
        """Lists azan/iqamah pairs that break the within-day ordering."""
        problems = []
        previous_name, previous_azan = None, None
        for name in ("fajr", "sunrise", "dhuhr", "asr", "maghrib", "isha"):
            azan = self.sunrise if name == "sunrise" else self.prayer(name).azan
            if azan is None:
                continue
            if previous_azan is not None and azan < previous_azan:
                problems.append(f"{name} azan {azan} is before {previous_name} azan {previous_azan}")
            previous_name, previous_azan = name, azan
        for name in IQAMAH_PRAYERS:
            pair = self.prayer(name)
            if pair.azan and pair.iqamah and pair.iqamah < pair.azan:
                problems.append(f"{name} iqamah {pair.iqamah} is before azan {pair.azan}")
        return problems

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrayerDay":
        times = {name: PrayerTime(**data[name]) for name in IQAMAH_PRAYERS}
        return cls(
            date=datetime.date.fromisoformat(data["date"]),
            provider_id=data["provider_id"],
            zone_or_region=str(data["zone_or_region"]),
            sunrise=data.get("sunrise"),
            hijri_date=data.get("hijri_date"),
            location=data.get("location"),
            **times,
        )


@dataclass(frozen=True)
class HijriDay:
    day: int
    month: str
    year: int
    gregorian_date: datetime.date
    month_start_date: Optional[datetime.date] = None
    month_end_date: Optional[datetime.date] = None
    provider_id: str = ProviderKind.SCRAPE_DIRECT.value
    region: str = ""
    is_calculated: bool = False

    def display(self) -> str:
        return f"{self.day} {self.month} {self.year}"


@dataclass(frozen=True)
class CacheEntry:
    """A stored payload (PrayerDay or HijriDay) with the time it was written."""
    payload: Any
    created_at: datetime.datetime


@dataclass
class PrefetchResult:
    total_months: int = 0
    successful_months: int = 0
    skipped_months: int = 0
    failed_months: int = 0
    unavailable_months: int = 0
    cached_days: int = 0
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalMonths": self.total_months,
            "successfulMonths": self.successful_months,
            "skippedMonths": self.skipped_months,
            "failedMonths": self.failed_months,
            "unavailableMonths": self.unavailable_months,
            "cachedDays": self.cached_days,
            "cancelled": self.cancelled,
        }


@dataclass(frozen=True)
class CacheStatus:
    total_months: int
    cached_months: int
    total_days: int
    cached_days: int

    @property
    def is_fully_cached(self) -> bool:
        return self.total_days > 0 and self.cached_days >= self.total_days

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalMonths": self.total_months,
            "cachedMonths": self.cached_months,
            "totalDays": self.total_days,
            "cachedDays": self.cached_days,
            "isFullyCached": self.is_fully_cached,
        }


@dataclass(frozen=True)
class DisplayEntry:
    prayer: str
    name: str
    localized_name: str
    azan: Optional[str]
    iqamah: Optional[str]
    is_next: bool = False
    is_jummah: bool = False


@dataclass(frozen=True)
class DisplaySchedule:
    entries: List[DisplayEntry] = field(default_factory=list)
    next_prayer: Optional[str] = None
