"""
Timezone-safe civil date helpers.

All storage and navigation uses "YYYY-MM-DD" Gregorian keys built from local
calendar fields. Hijri dates are display-only and always recomputed from the
civil key through a calendar authority.
"""
import logging
import re
from datetime import date, datetime, timedelta
from typing import Callable, NamedTuple, Optional, Tuple, Union

from hijri_converter import Gregorian, Hijri

from companion.config import settings

logger = logging.getLogger(__name__)

YMD_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

SUPPORTED_CALENDARS = ("islamic-umalqura",)

ARABIC_DIGITS = "٠١٢٣٤٥٦٧٨٩"

ARABIC_WEEKDAYS = ["الإثنين", "الثلاثاء", "الأربعاء", "الخميس", "الجمعة", "السبت", "الأحد"]


class InvalidDateKeyError(ValueError):
    """Raised when a string is not a valid YYYY-MM-DD civil date key."""


class LunarDateParts(NamedTuple):
    day: int
    month: int
    year: int


# Returned whenever the calendar authority fails: 1 Muharram, AH 1
LUNAR_FALLBACK = LunarDateParts(day=1, month=1, year=1)

CalendarAuthority = Callable[[date], Tuple[int, int, int]]


def pad2(n: int) -> str:
    return str(n).zfill(2)


def is_valid_ymd(key) -> bool:
    """True when `key` is a zero-padded YYYY-MM-DD string naming a real day."""
    if not isinstance(key, str) or not YMD_PATTERN.match(key):
        return False
    try:
        datetime.strptime(key, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def parse_ymd(key: str) -> datetime:
    """Parse "YYYY-MM-DD" into a naive local datetime anchored at noon."""
    if not is_valid_ymd(key):
        raise InvalidDateKeyError(f"Invalid date key: {key!r}")
    year, month, day = (int(part) for part in key.split("-"))
    return datetime(year, month, day, 12, 0, 0)


def format_ymd(value: Union[date, datetime]) -> str:
    """Format a date/datetime using its local calendar fields (never UTC)."""
    return f"{value.year:04d}-{pad2(value.month)}-{pad2(value.day)}"


def add_days(key: str, n: int) -> str:
    """
    Add (or subtract) whole days from a civil date key.

    Raises OverflowError when the result falls outside 0001-01-01..9999-12-31.
    """
    return format_ymd(parse_ymd(key) + timedelta(days=n))


def shift_days(key: str, n: int) -> Optional[str]:
    """Like add_days, but None when the result is not representable."""
    try:
        return add_days(key, n)
    except OverflowError:
        return None


def today_ymd() -> str:
    return format_ymd(datetime.now())


def date_range(start: str, end: str) -> list[str]:
    """Inclusive list of keys from `start` to `end`; empty when end < start."""
    days = []
    current = start
    while current is not None and current <= end:
        days.append(current)
        current = shift_days(current, 1)
    return days


# --- Calendar authority ---


def umm_al_qura(value: date) -> Tuple[int, int, int]:
    """Default calendar authority backed by the Umm al-Qura tables."""
    hijri = Gregorian(value.year, value.month, value.day).to_hijri()
    return hijri.day, hijri.month, hijri.year


def _resolve_authority(authority: Optional[CalendarAuthority]) -> CalendarAuthority:
    if authority is not None:
        return authority
    if settings.HIJRI_CALENDAR not in SUPPORTED_CALENDARS:
        raise LookupError(f"Unsupported calendar standard: {settings.HIJRI_CALENDAR}")
    return umm_al_qura


def _authority_parts(key: str, authority: Optional[CalendarAuthority]) -> LunarDateParts:
    day, month, year = _resolve_authority(authority)(parse_ymd(key).date())
    return LunarDateParts(day=int(day), month=int(month), year=int(year))


def lunar_parts(key: str, authority: Optional[CalendarAuthority] = None) -> LunarDateParts:
    """
    Lunar (day, month, year) for a civil key.

    Never raises: any failure of the key or the authority yields
    LUNAR_FALLBACK so navigation keeps working.
    """
    try:
        return _authority_parts(key, authority)
    except Exception as e:
        logger.debug("Calendar authority failed for %s: %s", key, e)
        return LUNAR_FALLBACK


# --- Display helpers (Arabic, display-only) ---


def to_arabic_numeral(value) -> str:
    """Convert ASCII digits to Arabic-Indic digits: 12 -> "١٢"."""
    return "".join(ARABIC_DIGITS[int(ch)] if "0" <= ch <= "9" else ch for ch in str(value))


def _month_label(parts: LunarDateParts) -> str:
    # Day 1 always exists, whatever length the authority gives the month
    hijri = Hijri(parts.year, parts.month, 1)
    return f"{hijri.month_name('ar')} {to_arabic_numeral(parts.year)} {hijri.notation('ar')}"


def format_hijri(key: str, authority: Optional[CalendarAuthority] = None) -> str:
    """Full Hijri date with weekday: "الثلاثاء، ١٢ رمضان ١٤٤٦ هـ"."""
    try:
        parts = _authority_parts(key, authority)
        weekday = ARABIC_WEEKDAYS[parse_ymd(key).weekday()]
        return f"{weekday}، {to_arabic_numeral(parts.day)} {_month_label(parts)}"
    except Exception as e:
        logger.debug("Could not format Hijri date for %s: %s", key, e)
        return ""


def format_hijri_day(key: str, authority: Optional[CalendarAuthority] = None) -> str:
    """Hijri day number only: "١٢"."""
    try:
        return to_arabic_numeral(_authority_parts(key, authority).day)
    except Exception as e:
        logger.debug("Could not format Hijri day for %s: %s", key, e)
        return ""


def format_hijri_month_year(key: str, authority: Optional[CalendarAuthority] = None) -> str:
    """Hijri month and year: "رمضان ١٤٤٦ هـ"."""
    try:
        return _month_label(_authority_parts(key, authority))
    except Exception as e:
        logger.debug("Could not format Hijri month for %s: %s", key, e)
        return ""
