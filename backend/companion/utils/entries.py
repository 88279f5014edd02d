"""
Canonical shape of a day's record and forward migration of older shapes.

Entries are plain dicts using the persisted camelCase keys. The schema
version is implied by which keys are present; `migrate_entry` runs an
ordered list of idempotent upgrade steps so any stored shape, fully legacy
or partially upgraded, comes out canonical.
"""
import copy
import enum

from companion.config import settings

INDIVIDUAL_PRAYERS = ["fajr", "dhuhr", "asr", "maghrib", "isha"]
ADHKAR_KEYS = ["morning", "evening", "duaa"]

# Headline habits shown on the daily card and calendar dots
DAILY_HABITS = ["prayer", "quran", "qiyam", "charity", "dhikr"]
# Habits tracked in the monthly report
REPORT_HABITS = ["prayer", "quran", "fasting", "qiyam", "charity", "dhikr"]

QURAN_PAGES_MIN = 0


class EntryLockedError(Exception):
    """Raised when a submitted (locked) entry is mutated outside an edit session."""

    def __init__(self, date_ymd: str):
        self.date_ymd = date_ymd
        super().__init__(f"Entry for {date_ymd} is submitted and locked")


class EntryState(str, enum.Enum):
    DRAFT = "draft"
    LOCKED = "locked"
    EDITING = "editing"


def _empty_prayer_details() -> dict:
    return {k: {"jamaa": False, "nafila": False} for k in INDIVIDUAL_PRAYERS}


def empty_entry() -> dict:
    return {
        "prayer": False,
        "prayers": {k: False for k in INDIVIDUAL_PRAYERS},
        "prayerDetails": _empty_prayer_details(),
        "quran": False,
        "quranPages": None,
        "qiyam": False,
        "charity": False,
        "dhikr": False,
        "adhkarDetails": {k: False for k in ADHKAR_KEYS},
        "fasting": False,
        "submitted": False,
        "note": "",
    }


def clamp_quran_pages(value):
    """None stays None; anything else becomes an int in [0, QURAN_PAGES_MAX]."""
    if value is None or isinstance(value, bool):
        return None
    try:
        pages = int(value)
    except (TypeError, ValueError):
        return None
    return max(QURAN_PAGES_MIN, min(settings.QURAN_PAGES_MAX, pages))


# --- Migration steps ---
# Each step takes and returns the working dict and is safe to run twice.


def _fan_out_legacy_prayer(entry: dict) -> dict:
    """Pre: `prayers` may be missing. Post: `prayers` has all five keys."""
    prayers = entry.get("prayers")
    if not isinstance(prayers, dict):
        legacy = bool(entry.get("prayer"))
        entry["prayers"] = {k: legacy for k in INDIVIDUAL_PRAYERS}
    else:
        for k in INDIVIDUAL_PRAYERS:
            prayers[k] = bool(prayers.get(k, False))
    return entry


def _upgrade_prayer_details(entry: dict) -> dict:
    """
    Pre: `prayerDetails` may be missing or use the legacy `sunnah` name.
    Post: every prayer has `jamaa` and `nafila`, and `asr.nafila` is False.
    """
    details = entry.get("prayerDetails")
    if not isinstance(details, dict):
        entry["prayerDetails"] = _empty_prayer_details()
        return entry

    for k in INDIVIDUAL_PRAYERS:
        item = details.get(k)
        if not isinstance(item, dict):
            details[k] = {"jamaa": False, "nafila": False}
            continue
        if "nafila" not in item:
            item["nafila"] = bool(item.pop("sunnah", False))
        item["jamaa"] = bool(item.get("jamaa", False))
        item["nafila"] = bool(item["nafila"])

    # No nafila is recognised after asr
    details["asr"]["nafila"] = False
    return entry


def _default_adhkar_details(entry: dict) -> dict:
    """Post: `adhkarDetails` has morning, evening and duaa."""
    adhkar = entry.get("adhkarDetails")
    if not isinstance(adhkar, dict):
        entry["adhkarDetails"] = {k: False for k in ADHKAR_KEYS}
    else:
        for k in ADHKAR_KEYS:
            adhkar[k] = bool(adhkar.get(k, False))
    return entry


def _default_fasting(entry: dict) -> dict:
    if entry.get("fasting") is None:
        entry["fasting"] = False
    return entry


def _default_submitted(entry: dict) -> dict:
    if entry.get("submitted") is None:
        entry["submitted"] = False
    return entry


def _default_scalars(entry: dict) -> dict:
    """Post: remaining canonical scalars present and `quranPages` in range."""
    for key in ("quran", "qiyam", "charity", "dhikr"):
        if entry.get(key) is None:
            entry[key] = False
    if entry.get("note") is None:
        entry["note"] = ""
    entry["quranPages"] = clamp_quran_pages(entry.get("quranPages"))
    return entry


def _sync_prayer_flag(entry: dict) -> dict:
    """Post: `prayer` is True iff all five prayers are done."""
    entry["prayer"] = all(entry["prayers"][k] for k in INDIVIDUAL_PRAYERS)
    return entry


MIGRATION_STEPS = [
    _fan_out_legacy_prayer,
    _upgrade_prayer_details,
    _default_adhkar_details,
    _default_fasting,
    _default_submitted,
    _default_scalars,
    _sync_prayer_flag,
]


def migrate_entry(raw):
    """Upgrade any stored shape to the current one. Returns None for no record."""
    if raw is None or not isinstance(raw, dict):
        return None
    entry = copy.deepcopy(raw)
    for step in MIGRATION_STEPS:
        entry = step(entry)
    return entry


def normalize_entry(raw) -> dict:
    """Migrate, then apply the rules every write must satisfy."""
    entry = migrate_entry(raw) or empty_entry()

    pages = entry["quranPages"]
    if pages is not None and pages > 0:
        entry["quran"] = True
    elif not entry["quran"]:
        entry["quranPages"] = None

    if settings.DHIKR_FOLLOWS_ADHKAR:
        entry["dhikr"] = any(entry["adhkarDetails"][k] for k in ADHKAR_KEYS)

    return entry


def entry_state(entry, editing: bool = False) -> EntryState:
    if not entry or not entry.get("submitted"):
        return EntryState.DRAFT
    return EntryState.EDITING if editing else EntryState.LOCKED
