# prayerclock/models.py

from datetime import datetime
from . import db
from .services.helpers.records import PrayerDay, PrayerTime, HijriDay, CacheEntry

PRAYER_COLUMNS = ("fajr", "dhuhr", "asr", "maghrib", "isha")


class PrayerDayRecord(db.Model):
    """
    One cached PrayerDay. The primary key is "<date>_<provider key>", so the same
    date cached by two providers (or two zones) lives in two separate rows.
    """
    __tablename__ = 'prayer_day_cache'

    id = db.Column(db.String(120), primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    provider_key = db.Column(db.String(80), nullable=False, index=True)
    provider_id = db.Column(db.String(40), nullable=False)
    zone_or_region = db.Column(db.String(80), nullable=False, default="")

    fajr_azan = db.Column(db.String(5), nullable=True)
    fajr_iqamah = db.Column(db.String(5), nullable=True)
    dhuhr_azan = db.Column(db.String(5), nullable=True)
    dhuhr_iqamah = db.Column(db.String(5), nullable=True)
    asr_azan = db.Column(db.String(5), nullable=True)
    asr_iqamah = db.Column(db.String(5), nullable=True)
    maghrib_azan = db.Column(db.String(5), nullable=True)
    maghrib_iqamah = db.Column(db.String(5), nullable=True)
    isha_azan = db.Column(db.String(5), nullable=True)
    isha_iqamah = db.Column(db.String(5), nullable=True)
    sunrise = db.Column(db.String(5), nullable=True)

    hijri_date = db.Column(db.String(80), nullable=True)
    location = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (db.Index('ix_prayer_day_provider_date', 'provider_key', 'date'),)

    @staticmethod
    def make_id(date, provider_key):
        return f"{date.isoformat()}_{provider_key}"

    @classmethod
    def from_prayer_day(cls, day: PrayerDay, created_at=None):
        record = cls(
            id=cls.make_id(day.date, day.provider_key),
            date=day.date,
            provider_key=day.provider_key,
            provider_id=day.provider_id,
            zone_or_region=day.zone_or_region,
            sunrise=day.sunrise,
            hijri_date=day.hijri_date,
            location=day.location,
            created_at=created_at or datetime.utcnow(),
        )
        for name in PRAYER_COLUMNS:
            pair = day.prayer(name)
            setattr(record, f"{name}_azan", pair.azan)
            setattr(record, f"{name}_iqamah", pair.iqamah)
        return record

    def to_entry(self) -> CacheEntry:
        times = {
            name: PrayerTime(azan=getattr(self, f"{name}_azan"), iqamah=getattr(self, f"{name}_iqamah"))
            for name in PRAYER_COLUMNS
        }
        day = PrayerDay(
            date=self.date,
            provider_id=self.provider_id,
            zone_or_region=self.zone_or_region,
            sunrise=self.sunrise,
            hijri_date=self.hijri_date,
            location=self.location,
            **times,
        )
        return CacheEntry(payload=day, created_at=self.created_at)

    def __repr__(self):
        return f'<PrayerDayRecord {self.id}>'


class HijriDayRecord(db.Model):
    """A resolved Hijri date, keyed by (gregorian date, provider, region)."""
    __tablename__ = 'hijri_day_cache'

    id = db.Column(db.String(120), primary_key=True)
    gregorian_date = db.Column(db.Date, nullable=False, index=True)
    hijri_day = db.Column(db.Integer, nullable=False)
    hijri_month = db.Column(db.String(60), nullable=False)
    hijri_year = db.Column(db.Integer, nullable=False)
    month_start_date = db.Column(db.Date, nullable=True)
    month_end_date = db.Column(db.Date, nullable=True)
    provider = db.Column(db.String(40), nullable=False, index=True)
    region = db.Column(db.String(80), nullable=False, default="")
    is_calculated = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    @staticmethod
    def make_id(gregorian_date, provider, region):
        return f"{gregorian_date.isoformat()}_{provider}_{region or ''}"

    @classmethod
    def from_hijri_day(cls, hijri: HijriDay, created_at=None):
        return cls(
            id=cls.make_id(hijri.gregorian_date, hijri.provider_id, hijri.region),
            gregorian_date=hijri.gregorian_date,
            hijri_day=hijri.day,
            hijri_month=hijri.month,
            hijri_year=hijri.year,
            month_start_date=hijri.month_start_date,
            month_end_date=hijri.month_end_date,
            provider=hijri.provider_id,
            region=hijri.region or "",
            is_calculated=hijri.is_calculated,
            created_at=created_at or datetime.utcnow(),
        )

    def to_entry(self) -> CacheEntry:
        hijri = HijriDay(
            day=self.hijri_day,
            month=self.hijri_month,
            year=self.hijri_year,
            gregorian_date=self.gregorian_date,
            month_start_date=self.month_start_date,
            month_end_date=self.month_end_date,
            provider_id=self.provider,
            region=self.region,
            is_calculated=self.is_calculated,
        )
        return CacheEntry(payload=hijri, created_at=self.created_at)

    def __repr__(self):
        return f'<HijriDayRecord {self.id}>'
