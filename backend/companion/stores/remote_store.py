"""
Remote row store for daily entries, backed by SQLAlchemy.

Rows are keyed by (user_id, date_ymd); writes are upserts on that pair.
"""
import logging
from contextlib import contextmanager
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.dialects import postgresql, sqlite

from companion.database import get_session_local
from companion.models.daily_entry import DailyEntry

logger = logging.getLogger(__name__)

CONFLICT_TARGET = ["user_id", "date_ymd"]


class RemoteStoreError(Exception):
    """Any failure talking to the remote store."""


class RemoteEntryStore:
    def __init__(self, session_factory):
        self.session_factory = session_factory

    @classmethod
    def from_settings(cls) -> Optional["RemoteEntryStore"]:
        """Build a store from DATABASE_URL, or None in local-only mode."""
        session_factory = get_session_local()
        if session_factory is None:
            return None
        return cls(session_factory)

    @contextmanager
    def _session(self):
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise RemoteStoreError(str(e)) from e
        finally:
            session.close()

    def fetch_all(self, user_id: str) -> list[dict]:
        """All rows for one identity."""
        with self._session() as db:
            rows = db.query(DailyEntry).filter_by(user_id=user_id).order_by(DailyEntry.date_ymd).all()
            return [row.to_row() for row in rows]

    def upsert(self, rows: Iterable[dict]) -> int:
        """Insert or replace rows on (user_id, date_ymd). Returns the row count."""
        rows = list(rows)
        if not rows:
            return 0
        with self._session() as db:
            dialect = db.get_bind().dialect.name
            if dialect in ("postgresql", "sqlite"):
                insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
                stmt = insert(DailyEntry).values(rows)
                stmt = stmt.on_conflict_do_update(
                    index_elements=CONFLICT_TARGET,
                    set_={field: stmt.excluded[field] for field in DailyEntry.ROW_FIELDS},
                )
                db.execute(stmt)
            else:
                for row in rows:
                    existing = db.query(DailyEntry).filter_by(
                        user_id=row["user_id"], date_ymd=row["date_ymd"]
                    ).first()
                    if existing is None:
                        db.add(DailyEntry(**row))
                    else:
                        for field in DailyEntry.ROW_FIELDS:
                            setattr(existing, field, row.get(field))
        logger.debug("Upserted %d remote row(s)", len(rows))
        return len(rows)

    def delete(self, user_id: str, date_ymd: str) -> None:
        with self._session() as db:
            db.query(DailyEntry).filter_by(user_id=user_id, date_ymd=date_ymd).delete()
