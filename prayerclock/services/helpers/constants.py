# prayerclock/services/helpers/constants.py

# Canonical display order. Sunrise carries no Iqamah and is never "next".
PRAYER_ORDER = ("fajr", "sunrise", "dhuhr", "asr", "maghrib", "isha")
IQAMAH_PRAYERS = ("fajr", "dhuhr", "asr", "maghrib", "isha")

# (English, Tamil) name pairs used by the display layer.
PRAYER_NAMES = {
    "fajr":    ("Fajr", "சுபஹ்"),
    "sunrise": ("Sunrise", "சூரிய உதயம்"),
    "dhuhr":   ("Dhuhr", "ளுஹர்"),
    "asr":     ("Asr", "அஸர்"),
    "maghrib": ("Maghrib", "மஃரிப்"),
    "isha":    ("Isha", "இஷா"),
}
JUMMAH_NAMES = ("Jummah", "ஜும்ஆ")

DEFAULT_MANUAL_AZAN = {
    "fajr": "05:30",
    "dhuhr": "12:15",
    "asr": "15:30",
    "maghrib": "18:30",
    "isha": "19:45",
}
DEFAULT_MANUAL_IQAMAH = {
    "fajr": "05:50",
    "dhuhr": "12:25",
    "asr": "15:40",
    "maghrib": "18:35",
    "isha": "19:55",
}
DEFAULT_MANUAL_SUNRISE = "06:00"

DEFAULT_IQAMAH_GAPS = {
    "fajr": 20,
    "dhuhr": 10,
    "asr": 10,
    "maghrib": 5,
    "isha": 10,
}

DEFAULT_NIGHT_GATHERING_MINUTES = 30
# Thursday, matching datetime.date.weekday()
DEFAULT_NIGHT_GATHERING_WEEKDAY = 3
FRIDAY = 4

# ACJU publishes one accordion per zone, titled with these district lists.
ACJU_ZONES = {
    1: "COLOMBO DISTRICT, GAMPAHA DISTRICT, KALUTARA DISTRICT",
    2: "JAFFNA DISTRICT, NALLUR",
    3: "MULLAITIVU DISTRICT (EXCEPT NALLUR), KILINOCHCHI DISTRICT, VAVUNIYA DISTRICT",
    4: "MANNAR DISTRICT, PUTTALAM DISTRICT",
    5: "ANURADHAPURA DISTRICT, POLONNARUWA DISTRICT",
    6: "KURUNEGALA DISTRICT",
    7: "KANDY DISTRICT, MATALE DISTRICT, NUWARA ELIYA DISTRICT",
    8: "BATTICALOA DISTRICT, AMPARA DISTRICT",
    9: "TRINCOMALEE DISTRICT",
    10: "BADULLA DISTRICT, MONARAGALA DISTRICT, PADIYATALAWA ,DEHIATHTHAKANDIYA",
    11: "RATNAPURA DISTRICT, KEGALLE DISTRICT",
    12: "GALLE DISTRICT, MATARA DISTRICT",
    13: "HAMBANTOTA DISTRICT",
}

# Minutes added to the published ACJU times for high-rise residents.
APARTMENT_ADJUSTMENTS = {
    "fajr": -1,
    "sunrise": -1,
    "maghrib": 1,
    "isha": 1,
}

# City -> country lookup for the AlAdhan timingsByCity endpoint.
CITY_COUNTRY_MAP = {
    "colombo": "Sri Lanka",
    "kandy": "Sri Lanka",
    "galle": "Sri Lanka",
    "jaffna": "Sri Lanka",
    "kuala lumpur": "Malaysia",
    "penang": "Malaysia",
    "singapore": "Singapore",
    "jakarta": "Indonesia",
    "chennai": "India",
    "mumbai": "India",
    "delhi": "India",
    "dubai": "UAE",
    "riyadh": "Saudi Arabia",
    "doha": "Qatar",
    "london": "UK",
    "new york": "USA",
    "toronto": "Canada",
}
DEFAULT_COUNTRY = "Sri Lanka"

MONTH_ABBREVIATIONS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
