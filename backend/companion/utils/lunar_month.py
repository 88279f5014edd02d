"""
Lunar (Hijri) month grids expressed as lists of civil date keys.

Month boundaries come from the calendar authority one day at a time, so the
grids follow whatever month lengths the authority reports.
"""
from typing import Optional

from companion.utils.dates import (
    CalendarAuthority,
    format_hijri_day,
    format_hijri_month_year,
    lunar_parts,
    parse_ymd,
    shift_days,
    to_arabic_numeral,
    today_ymd,
)

# A lunar month never exceeds 30 days; guards against a misbehaving authority
MAX_PROBES = 35


def find_lunar_month_start(anchor: str, authority: Optional[CalendarAuthority] = None) -> str:
    """Walk back from `anchor` to the civil date whose lunar day is 1."""
    current = anchor
    for probe in range(MAX_PROBES):
        if lunar_parts(current, authority).day == 1 or probe == MAX_PROBES - 1:
            break
        previous = shift_days(current, -1)
        if previous is None:
            # 0001-01-01 has no predecessor
            break
        current = previous
    return current


def build_lunar_month_days(anchor: str, authority: Optional[CalendarAuthority] = None) -> list[str]:
    """Every civil date key of the lunar month containing `anchor`, in order."""
    start = find_lunar_month_start(anchor, authority)
    first = lunar_parts(start, authority)
    days = []
    current = start
    for _ in range(MAX_PROBES):
        parts = lunar_parts(current, authority)
        if (parts.month, parts.year) != (first.month, first.year):
            break
        days.append(current)
        current = shift_days(current, 1)
        if current is None:
            break
    return days


def previous_lunar_month(anchor: str, authority: Optional[CalendarAuthority] = None) -> list[str]:
    """Days of the month before `anchor`'s; the same month at the start of the calendar range."""
    start = find_lunar_month_start(anchor, authority)
    before = shift_days(start, -1)
    if before is None:
        return build_lunar_month_days(anchor, authority)
    return build_lunar_month_days(before, authority)


def next_lunar_month(anchor: str, authority: Optional[CalendarAuthority] = None) -> list[str]:
    """Days of the month after `anchor`'s; the same month at the end of the calendar range."""
    days = build_lunar_month_days(anchor, authority)
    after = shift_days(days[-1], 1)
    if after is None:
        return days
    return build_lunar_month_days(after, authority)


def lunar_month_view(anchor: str, authority: Optional[CalendarAuthority] = None) -> dict:
    """Month description for the calendar screen: title, day cells, neighbours."""
    days = build_lunar_month_days(anchor, authority)
    today = today_ymd()
    cells = []
    for ymd in days:
        dt = parse_ymd(ymd)
        cells.append({
            "date": ymd,
            "gregorian_day": to_arabic_numeral(dt.day),
            "hijri_day": format_hijri_day(ymd, authority),
            "lunar_day": lunar_parts(ymd, authority).day,
            # Sunday-first column index
            "weekday": (dt.weekday() + 1) % 7,
            "is_today": ymd == today,
        })
    first = lunar_parts(days[0], authority)
    return {
        "title": format_hijri_month_year(days[0], authority),
        "lunar_month": first.month,
        "lunar_year": first.year,
        "days": cells,
        # None at either end of the representable range
        "previous_anchor": shift_days(days[0], -1),
        "next_anchor": shift_days(days[-1], 1),
    }
