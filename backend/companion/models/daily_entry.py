from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, Text, DateTime, JSON, UniqueConstraint
from companion.database import Base


class DailyEntry(Base):
    """Remote row for one identity's record of one civil day."""

    __tablename__ = "daily_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    date_ymd = Column(String(10), nullable=False)

    # Observances
    prayer = Column(Boolean, default=False)
    prayers = Column(JSON, nullable=True)
    prayer_details = Column(JSON, nullable=True)
    quran = Column(Boolean, default=False)
    quran_pages = Column(Integer, nullable=True)
    qiyam = Column(Boolean, default=False)
    charity = Column(Boolean, default=False)
    dhikr = Column(Boolean, default=False)
    adhkar_details = Column(JSON, nullable=True)
    fasting = Column(Boolean, default=False)

    # Day-level lock
    submitted = Column(Boolean, default=False)
    note = Column(Text, default="")

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Upsert conflict target: one row per identity per day
    __table_args__ = (UniqueConstraint("user_id", "date_ymd", name="unique_user_date_ymd"),)

    ROW_FIELDS = [
        "prayer", "prayers", "prayer_details", "quran", "quran_pages",
        "qiyam", "charity", "dhikr", "adhkar_details", "fasting",
        "submitted", "note",
    ]

    def to_row(self) -> dict:
        row = {"user_id": self.user_id, "date_ymd": self.date_ymd}
        for field in self.ROW_FIELDS:
            row[field] = getattr(self, field)
        return row
