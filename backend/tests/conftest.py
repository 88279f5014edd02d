from datetime import date, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from companion import models  # noqa: F401
from companion.database import Base
from companion.stores.local_store import LocalStore
from companion.stores.remote_store import RemoteEntryStore, RemoteStoreError


class FakeLunarCalendar:
    """
    Deterministic lunar calendar for tests.

    Month 9 of 1446 starts on 2025-03-01 and months alternate between the
    given lengths going forward and backward. Dates outside the generated
    table raise KeyError, like an authority with a limited range.
    """

    def __init__(self, epoch=date(2025, 3, 1), month=9, year=1446, lengths=(29, 30), months=30):
        self.table = {}

        current, m, y = epoch, month, year
        for i in range(months):
            length = lengths[i % len(lengths)]
            for day in range(1, length + 1):
                self.table[current] = (day, m, y)
                current += timedelta(days=1)
            m, y = (1, y + 1) if m == 12 else (m + 1, y)

        current, m, y = epoch, month, year
        for i in range(1, months + 1):
            m, y = (12, y - 1) if m == 1 else (m - 1, y)
            length = lengths[i % len(lengths)]
            start = current - timedelta(days=length)
            for day in range(1, length + 1):
                self.table[start + timedelta(days=day - 1)] = (day, m, y)
            current = start

    def __call__(self, value):
        return self.table[value]


class FailingRemote:
    """Remote store whose every call fails."""

    def __init__(self):
        self.calls = []

    def fetch_all(self, user_id):
        self.calls.append(("fetch_all", user_id))
        raise RemoteStoreError("connection refused")

    def upsert(self, rows):
        self.calls.append(("upsert", list(rows)))
        raise RemoteStoreError("connection refused")

    def delete(self, user_id, date_ymd):
        self.calls.append(("delete", user_id, date_ymd))
        raise RemoteStoreError("connection refused")


@pytest.fixture
def fake_calendar():
    return FakeLunarCalendar()


@pytest.fixture
def make_calendar():
    return FakeLunarCalendar


@pytest.fixture
def local_store(tmp_path):
    return LocalStore(str(tmp_path / "device" / "store.json"))


@pytest.fixture
def remote_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'remote.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def remote_store(remote_engine):
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=remote_engine)
    return RemoteEntryStore(session_factory)


@pytest.fixture
def failing_remote():
    return FailingRemote()
