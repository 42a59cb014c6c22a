# prayerclock/schemas.py

from marshmallow import Schema, ValidationError, fields, validate

from .services.helpers.constants import IQAMAH_PRAYERS
from .services.helpers.records import ProviderKind
from .utils.time_utils import parse_time_str


def validate_clock(value):
    """Accepts only real 24-hour clock times such as "05:30"."""
    if parse_time_str(value) is None:
        raise ValidationError(f"Invalid time '{value}'. Use HH:MM (00:00-23:59).")


class MessageSchema(Schema):
    message = fields.Str(required=True)


class PrayerTimeSchema(Schema):
    azan = fields.Str(allow_none=True)
    iqamah = fields.Str(allow_none=True)


class PrayerDaySchema(Schema):
    date = fields.Date()
    providerId = fields.Str(attribute="provider_id")
    providerKey = fields.Str(attribute="provider_key")
    zoneOrRegion = fields.Str(attribute="zone_or_region")
    fajr = fields.Nested(PrayerTimeSchema)
    sunrise = fields.Str(allow_none=True)
    dhuhr = fields.Nested(PrayerTimeSchema)
    asr = fields.Nested(PrayerTimeSchema)
    maghrib = fields.Nested(PrayerTimeSchema)
    isha = fields.Nested(PrayerTimeSchema)
    hijriDate = fields.Str(attribute="hijri_date", allow_none=True)
    location = fields.Str(allow_none=True)
    isEmpty = fields.Bool(attribute="is_empty")


class HijriDaySchema(Schema):
    day = fields.Int()
    month = fields.Str()
    year = fields.Int()
    display = fields.Function(lambda hijri: hijri.display())
    gregorianDate = fields.Date(attribute="gregorian_date")
    monthStartDate = fields.Date(attribute="month_start_date", allow_none=True)
    monthEndDate = fields.Date(attribute="month_end_date", allow_none=True)
    providerId = fields.Str(attribute="provider_id")
    region = fields.Str()
    isCalculated = fields.Bool(attribute="is_calculated")


class DisplayEntrySchema(Schema):
    prayer = fields.Str()
    name = fields.Str()
    localizedName = fields.Str(attribute="localized_name")
    azan = fields.Str(allow_none=True)
    iqamah = fields.Str(allow_none=True)
    isNext = fields.Bool(attribute="is_next")
    isJummah = fields.Bool(attribute="is_jummah")


class DisplaySchema(Schema):
    date = fields.Date()
    providerKey = fields.Str()
    isEmpty = fields.Bool()
    hijriDate = fields.Str(allow_none=True)
    nextPrayer = fields.Str(allow_none=True)
    entries = fields.List(fields.Nested(DisplayEntrySchema))


class DisplayArgsSchema(Schema):
    """Query parameters for the display endpoint. `at` defaults to the current local time."""
    at = fields.DateTime(load_default=None)


class PrefetchArgsSchema(Schema):
    zone = fields.Str(load_default=None)
    background = fields.Bool(load_default=False)


class PrefetchResultSchema(Schema):
    totalMonths = fields.Int(attribute="total_months")
    successfulMonths = fields.Int(attribute="successful_months")
    skippedMonths = fields.Int(attribute="skipped_months")
    failedMonths = fields.Int(attribute="failed_months")
    unavailableMonths = fields.Int(attribute="unavailable_months")
    cachedDays = fields.Int(attribute="cached_days")
    cancelled = fields.Bool()


class PrefetchStatusSchema(Schema):
    state = fields.Str()
    isRunning = fields.Bool()
    lastResult = fields.Nested(PrefetchResultSchema, allow_none=True)
    lastError = fields.Str(allow_none=True)


class CacheStatusArgsSchema(Schema):
    zone = fields.Str(load_default=None)


class CacheStatusSchema(Schema):
    totalMonths = fields.Int(attribute="total_months")
    cachedMonths = fields.Int(attribute="cached_months")
    totalDays = fields.Int(attribute="total_days")
    cachedDays = fields.Int(attribute="cached_days")
    isFullyCached = fields.Bool(attribute="is_fully_cached")


class CacheStatsSchema(Schema):
    prayerTimesCount = fields.Int()
    hijriDatesCount = fields.Int()


class CacheClearedSchema(Schema):
    prayerTimes = fields.Int()
    hijriDates = fields.Int()


class ProviderField(fields.Field):
    """Dumps a ProviderKind by name; loads either its name or its value."""

    def _serialize(self, value, attr, obj, **kwargs):
        return value.name if value is not None else None

    def _deserialize(self, value, attr, data, **kwargs):
        try:
            return ProviderKind.parse(value)
        except ValueError as e:
            raise ValidationError(str(e)) from e


def _prayer_map(values, attribute):
    return fields.Dict(keys=fields.Str(validate=validate.OneOf(IQAMAH_PRAYERS)), values=values, attribute=attribute)


class EngineSettingsSchema(Schema):
    """Serializes an EngineSettings snapshot and validates partial updates to it."""
    provider = ProviderField()
    providerKey = fields.Str(attribute="provider_key", dump_only=True)
    zone = fields.Int(validate=validate.Range(min=1, max=13))
    region = fields.Str(validate=validate.Length(min=1))
    apartmentMode = fields.Bool(attribute="apartment_mode")
    manualAzan = _prayer_map(fields.Str(validate=validate_clock), "manual_azan")
    manualIqamah = _prayer_map(fields.Str(validate=validate_clock), "manual_iqamah")
    manualSunrise = fields.Str(attribute="manual_sunrise", validate=validate_clock)
    iqamahGaps = _prayer_map(fields.Int(validate=validate.Range(min=0, max=120)), "iqamah_gaps")
    nightGatheringEnabled = fields.Bool(attribute="night_gathering_enabled")
    nightGatheringMinutes = fields.Int(attribute="night_gathering_minutes", validate=validate.Range(min=0, max=180))
    nightGatheringWeekday = fields.Int(attribute="night_gathering_weekday", validate=validate.Range(min=0, max=6))
