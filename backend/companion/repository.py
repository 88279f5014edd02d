"""
Persistence layer for the live entry collection.

An EntryRepository holds the authoritative in-memory map of date key ->
entry for one identity. Writes land in memory and in the local store
immediately; the remote store, when configured, is updated through an
injected scheduler and never blocks or fails the caller. Across devices the
last write observed by the remote store wins; there is no conflict check.
"""
import logging
import threading
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional

from companion.schemas.entry import entry_to_row, row_to_entry
from companion.stores.local_store import LocalStore
from companion.stores.remote_store import RemoteEntryStore
from companion.utils.dates import InvalidDateKeyError, is_valid_ymd
from companion.utils.entries import (
    EntryLockedError,
    EntryState,
    empty_entry,
    entry_state,
    migrate_entry,
    normalize_entry,
)

logger = logging.getLogger(__name__)

Scheduler = Callable[..., None]


def run_now(fn: Callable, *args) -> None:
    """Default scheduler: run the remote call inline."""
    fn(*args)


class EntryRepository:
    def __init__(
        self,
        local: LocalStore,
        remote: Optional[RemoteEntryStore] = None,
        user_id: Optional[str] = None,
        schedule: Scheduler = run_now,
    ):
        self.local = local
        self.remote = remote
        self.user_id = user_id
        self.schedule = schedule
        self._entries: Dict[str, dict] = {}
        self.loaded = False

    @property
    def is_online(self) -> bool:
        return self.remote is not None and self.user_id is not None

    @property
    def entries(self) -> Mapping[str, dict]:
        """Read-only view of the live collection."""
        return MappingProxyType(self._entries)

    # --- load ---

    def _load_local(self) -> Dict[str, dict]:
        migrated = {}
        for key, raw in self.local.load_entries().items():
            entry = migrate_entry(raw)
            if entry is not None:
                migrated[key] = entry
        return migrated

    def _bulk_migrate(self) -> None:
        """Upload local-only entries once per device, the first time an identity exists."""
        if self.local.is_migrated():
            return
        local_entries = self._load_local()
        if local_entries:
            rows = [entry_to_row(entry, self.user_id, key) for key, entry in local_entries.items()]
            self.remote.upsert(rows)
            logger.info("Uploaded %d local entries for user %s", len(rows), self.user_id)
        self.local.mark_migrated()

    def load(self) -> Mapping[str, dict]:
        """Populate the live collection. Never raises on store failures."""
        if not self.is_online:
            self._entries = self._load_local()
            self.loaded = True
            return self.entries

        try:
            self._bulk_migrate()
        except Exception as e:
            logger.warning("Bulk migration for user %s failed, will retry on next load: %s", self.user_id, e)

        try:
            rows = self.remote.fetch_all(self.user_id)
        except Exception as e:
            # The local blob is device-scoped and may hold another identity's entries
            logger.warning("Remote fetch for user %s failed, starting empty: %s", self.user_id, e)
            self._entries = {}
        else:
            mapped = {}
            for row in rows:
                entry = migrate_entry(row_to_entry(row))
                if entry is not None:
                    mapped[row["date_ymd"]] = entry
            self._entries = mapped

        self.loaded = True
        return self.entries

    # --- reads ---

    def has_entry(self, key: str) -> bool:
        return key in self._entries

    def get_entry(self, key: str) -> dict:
        """Stored entry for `key` (a copy), or an empty default. Never None."""
        entry = self._entries.get(key)
        if entry is None:
            return empty_entry()
        return migrate_entry(entry)

    def state(self, key: str, editing: bool = False) -> EntryState:
        return entry_state(self._entries.get(key), editing)

    # --- writes ---

    def _check_key(self, key: str) -> None:
        if not is_valid_ymd(key):
            raise InvalidDateKeyError(f"Invalid date key: {key!r}")

    def _check_unlocked(self, key: str, editing: bool) -> None:
        if self.state(key, editing) == EntryState.LOCKED:
            raise EntryLockedError(key)

    def _write(self, key: str, entry: dict, schedule: Optional[Scheduler] = None) -> dict:
        self._entries[key] = entry
        self.local.save_entries(self._entries)
        if self.is_online:
            (schedule or self.schedule)(self._remote_upsert, key, entry_to_row(entry, self.user_id, key))
        return migrate_entry(entry)

    def update_entry(
        self, key: str, entry: dict, editing: bool = False, schedule: Optional[Scheduler] = None
    ) -> dict:
        """
        Replace the record for `key`.

        Rejected with EntryLockedError when the stored record is submitted
        and no edit session is open. Returns the normalized stored entry.
        """
        self._check_key(key)
        self._check_unlocked(key, editing)
        return self._write(key, normalize_entry(entry), schedule)

    def submit(self, key: str, schedule: Optional[Scheduler] = None) -> dict:
        """Lock the day's record (Draft/Editing -> Locked)."""
        self._check_key(key)
        entry = self.get_entry(key)
        entry["submitted"] = True
        return self._write(key, normalize_entry(entry), schedule)

    def unlock(self, key: str, schedule: Optional[Scheduler] = None) -> dict:
        """Explicit un-submit (Locked -> Draft). Always allowed."""
        self._check_key(key)
        entry = self.get_entry(key)
        entry["submitted"] = False
        return self._write(key, normalize_entry(entry), schedule)

    def clear_entry(self, key: str, editing: bool = False, schedule: Optional[Scheduler] = None) -> None:
        """Delete the record for `key` entirely."""
        self._check_key(key)
        self._check_unlocked(key, editing)
        self._entries.pop(key, None)
        self.local.save_entries(self._entries)
        if self.is_online:
            (schedule or self.schedule)(self._remote_delete, key)

    # --- remote side effects ---

    def _remote_upsert(self, key: str, row: dict) -> None:
        try:
            self.remote.upsert([row])
        except Exception as e:
            logger.warning("Remote upsert of %s for user %s failed: %s", key, self.user_id, e)

    def _remote_delete(self, key: str) -> None:
        try:
            self.remote.delete(self.user_id, key)
        except Exception as e:
            logger.warning("Remote delete of %s for user %s failed: %s", key, self.user_id, e)


class RepositoryRegistry:
    """One loaded EntryRepository per identity, owned by the application."""

    def __init__(self, local: LocalStore, remote: Optional[RemoteEntryStore] = None):
        self.local = local
        self.remote = remote
        self._repositories: Dict[Optional[str], EntryRepository] = {}
        self._lock = threading.Lock()

    def get(self, user_id: Optional[str] = None) -> EntryRepository:
        with self._lock:
            repository = self._repositories.get(user_id)
            if repository is None:
                repository = EntryRepository(self.local, self.remote, user_id)
                repository.load()
                self._repositories[user_id] = repository
            return repository

    def discard(self, user_id: Optional[str] = None) -> None:
        with self._lock:
            self._repositories.pop(user_id, None)
