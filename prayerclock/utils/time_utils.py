import calendar
import datetime


def parse_time_str(time_str):
    """
    Parses an "HH:MM" (or "HH:MM:SS") string into a datetime.time object.
    Returns None if parsing fails.
    """
    if not time_str or str(time_str).lower() == "n/a":
        return None
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.datetime.strptime(str(time_str).strip(), fmt).time()
        except ValueError:
            continue
    return None


def format_time_obj(time_obj):
    """Formats a datetime.time object as HH:MM. Returns None if time_obj is None."""
    if not time_obj:
        return None
    return time_obj.strftime("%H:%M")


def add_minutes(time_obj, minutes_to_add):
    """
    Adds minutes to a datetime.time object, wrapping past midnight.
    Returns None if inputs are invalid.
    """
    if not time_obj or minutes_to_add is None:
        return None
    dummy_date = datetime.date.min + datetime.timedelta(days=1)
    full_datetime = datetime.datetime.combine(dummy_date, time_obj)
    new_datetime = full_datetime + datetime.timedelta(minutes=int(minutes_to_add))
    return new_datetime.time()


def add_minutes_to_str(time_str, minutes_to_add):
    """String form of add_minutes: add_minutes_to_str("05:30", 20) == "05:50"."""
    return format_time_obj(add_minutes(parse_time_str(time_str), minutes_to_add))


def strip_timezone_suffix(time_str):
    """AlAdhan returns times like "05:01 (+0530)"; only the clock part is kept."""
    if not time_str:
        return None
    return str(time_str).strip().split(" ")[0]


def to_24_hour(time_str, meridiem):
    """
    Converts a 12-hour clock string to HH:MM given its AM/PM marker.
    12 PM stays 12, 12 AM becomes 00.
    """
    parsed = parse_time_str(time_str)
    if parsed is None:
        return None
    hour = parsed.hour
    if meridiem.upper() == "PM" and hour != 12:
        hour += 12
    elif meridiem.upper() == "AM" and hour == 12:
        hour = 0
    return f"{hour:02d}:{parsed.minute:02d}"


def days_in_month(year, month):
    return calendar.monthrange(year, month)[1]


def month_bounds(year, month):
    """Returns the first and last date of a month."""
    return datetime.date(year, month, 1), datetime.date(year, month, days_in_month(year, month))


def add_months(year, month, count):
    index = year * 12 + (month - 1) + count
    return index // 12, index % 12 + 1


def prefetch_horizon(today, horizon_months=None, next_year_months=3):
    """
    Lists (year, month) pairs to prefetch, starting with the current month.

    By default this runs to December plus the first `next_year_months` months
    of the following year. An explicit `horizon_months` overrides that with a
    fixed number of months.
    """
    if horizon_months:
        return [add_months(today.year, today.month, offset) for offset in range(horizon_months)]
    months = [(today.year, month) for month in range(today.month, 13)]
    months.extend((today.year + 1, month) for month in range(1, next_year_months + 1))
    return months
