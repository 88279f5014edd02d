"""
Streaks and compliance percentages derived from an entry collection.

All functions are pure: they take the date -> entry mapping and return
numbers. Days with no stored entry are "untracked" and are left out of
percentage denominators instead of being counted as failures.
"""
import math
from typing import Iterable, Mapping, Optional, Sequence

from companion.config import settings
from companion.utils.dates import shift_days
from companion.utils.entries import DAILY_HABITS, REPORT_HABITS


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _is_submitted(entries: Mapping[str, dict], key: str) -> bool:
    entry = entries.get(key)
    return bool(entry and entry.get("submitted"))


def streak(entries: Mapping[str, dict], from_key: str, cap: Optional[int] = None) -> int:
    """Consecutive submitted days ending at `from_key`, capped."""
    cap = settings.STREAK_CAP if cap is None else cap
    count = 0
    key = from_key
    while key is not None and count < cap and _is_submitted(entries, key):
        count += 1
        key = shift_days(key, -1)
    return count


def best_streak_in_range(entries: Mapping[str, dict], date_range: Iterable[str]) -> int:
    """Longest run of consecutive submitted days within `date_range`."""
    best = 0
    current = 0
    for key in date_range:
        if _is_submitted(entries, key):
            current += 1
            best = max(best, current)
        else:
            current = 0
    return best


def compliance_stats(
    entries: Mapping[str, dict],
    date_range: Iterable[str],
    habit_keys: Sequence[str] = REPORT_HABITS,
) -> dict:
    """Per-habit {count, percentage} over the tracked days of `date_range`."""
    tracked = [key for key in date_range if entries.get(key)]
    stats = {}
    for habit in habit_keys:
        count = sum(1 for key in tracked if entries[key].get(habit))
        percentage = round_half_up(100 * count / len(tracked)) if tracked else 0
        stats[habit] = {"count": count, "percentage": percentage}
    return stats


def day_score(entry: Optional[dict]) -> int:
    """How many of the five headline habits are done (0-5)."""
    if not entry:
        return 0
    return sum(1 for habit in DAILY_HABITS if entry.get(habit))


def month_report(entries: Mapping[str, dict], days: Sequence[str]) -> dict:
    """Summary shown on the monthly report screen."""
    days = list(days)
    tracked = [key for key in days if entries.get(key)]
    habits = compliance_stats(entries, days, REPORT_HABITS)

    habit_rows = [{"key": key, **values} for key, values in habits.items()]
    # Stable sort keeps the declared habit order among equal percentages
    ranked = sorted(habit_rows, key=lambda row: row["percentage"], reverse=True)
    strongest = ranked[0] if ranked and ranked[0]["percentage"] > 0 else None
    weakest = ranked[-1] if ranked and tracked else None

    return {
        "total_days": len(days),
        "days_tracked": len(tracked),
        "submitted_days": sum(1 for key in days if _is_submitted(entries, key)),
        "best_streak": best_streak_in_range(entries, days),
        "habits": habit_rows,
        "strongest": strongest,
        "weakest": weakest,
        "scores": {key: day_score(entries.get(key)) for key in days},
    }


def engagement_summary(entries: Mapping[str, dict]) -> dict:
    """Per-user totals for the admin overview; the streak ends at the latest submitted day."""
    submitted = sorted(key for key in entries if _is_submitted(entries, key))
    return {
        "total_entries": len(entries),
        "submitted_count": len(submitted),
        "streak": streak(entries, submitted[-1]) if submitted else 0,
    }
