from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from companion.utils.entries import empty_entry


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Prayers(_CamelModel):
    fajr: bool = False
    dhuhr: bool = False
    asr: bool = False
    maghrib: bool = False
    isha: bool = False


class PrayerDetail(_CamelModel):
    jamaa: bool = False
    nafila: bool = False


class PrayerDetails(_CamelModel):
    fajr: PrayerDetail = Field(default_factory=PrayerDetail)
    dhuhr: PrayerDetail = Field(default_factory=PrayerDetail)
    asr: PrayerDetail = Field(default_factory=PrayerDetail)
    maghrib: PrayerDetail = Field(default_factory=PrayerDetail)
    isha: PrayerDetail = Field(default_factory=PrayerDetail)


class AdhkarDetails(_CamelModel):
    morning: bool = False
    evening: bool = False
    duaa: bool = False


class EntryUpdate(_CamelModel):
    """Full day record sent by the client. Accepts camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    prayer: bool = False
    prayers: Prayers = Field(default_factory=Prayers)
    prayer_details: PrayerDetails = Field(default_factory=PrayerDetails)
    quran: bool = False
    # Out-of-range page counts are clamped on write, not rejected
    quran_pages: Optional[int] = None
    qiyam: bool = False
    charity: bool = False
    dhikr: bool = False
    adhkar_details: AdhkarDetails = Field(default_factory=AdhkarDetails)
    fasting: bool = False
    submitted: bool = False
    note: str = ""

    def to_entry(self) -> dict:
        """Stored dict shape (camelCase keys, unknown extras kept)."""
        return self.model_dump(by_alias=True)


# --- Remote row mapping ---


def entry_to_row(entry: dict, user_id: str, date_ymd: str) -> dict:
    """Flatten an entry into a daily_entries row."""
    return {
        "user_id": user_id,
        "date_ymd": date_ymd,
        "prayer": entry.get("prayer"),
        "prayers": entry.get("prayers"),
        "prayer_details": entry.get("prayerDetails"),
        "quran": entry.get("quran"),
        "quran_pages": entry.get("quranPages"),
        "qiyam": entry.get("qiyam"),
        "charity": entry.get("charity"),
        "dhikr": entry.get("dhikr"),
        "adhkar_details": entry.get("adhkarDetails"),
        "fasting": entry.get("fasting"),
        "submitted": entry.get("submitted"),
        "note": entry.get("note") or "",
    }


def row_to_entry(row: dict) -> dict:
    """Convert a daily_entries row back to the local entry shape."""
    defaults = empty_entry()
    return {
        "prayer": row.get("prayer"),
        "prayers": row.get("prayers") or defaults["prayers"],
        "prayerDetails": row.get("prayer_details") or defaults["prayerDetails"],
        "quran": row.get("quran"),
        "quranPages": row.get("quran_pages"),
        "qiyam": row.get("qiyam"),
        "charity": row.get("charity"),
        "dhikr": row.get("dhikr"),
        "adhkarDetails": row.get("adhkar_details") or defaults["adhkarDetails"],
        "fasting": row.get("fasting") or False,
        "submitted": row.get("submitted"),
        "note": row.get("note") or "",
    }


def entry_to_response(date_ymd: str, entry: dict, stored: bool = True) -> dict:
    """Build entry response dict matching the frontend expected format."""
    return {
        "date": date_ymd,
        "stored": stored,
        "entry": entry,
    }
