import json

import pytest

from companion.config import settings
from companion.repository import EntryRepository, RepositoryRegistry
from companion.schemas.entry import entry_to_row
from companion.utils.dates import InvalidDateKeyError
from companion.utils.entries import EntryLockedError, EntryState, empty_entry, normalize_entry


def _entry(**fields):
    entry = empty_entry()
    entry.update(fields)
    return entry


# --- Local store ---


def test_local_store_missing_file_reads_empty(local_store):
    assert local_store.load_entries() == {}
    assert not local_store.is_migrated()


def test_local_store_corrupt_file_reads_empty(local_store):
    local_store.path.parent.mkdir(parents=True)
    local_store.path.write_text("{not json", encoding="utf-8")
    assert local_store.load_entries() == {}


def test_local_store_corrupt_entries_blob_reads_empty(local_store):
    local_store.set_item(settings.LOCAL_STORAGE_KEY, "[broken")
    assert local_store.load_entries() == {}


def test_local_store_blob_shape(local_store):
    local_store.save_entries({"2025-03-10": {"prayer": True}})
    data = json.loads(local_store.path.read_text(encoding="utf-8"))
    assert json.loads(data[settings.LOCAL_STORAGE_KEY]) == {"entries": {"2025-03-10": {"prayer": True}}}


def test_local_store_markers_are_independent(local_store):
    local_store.mark_tour_done()
    assert local_store.is_tour_done()
    assert not local_store.is_migrated()
    local_store.mark_migrated()
    assert local_store.is_migrated()


def test_local_store_failed_write_leaves_no_temp_file(local_store):
    local_store.save_entries({"2025-03-10": {"prayer": True}})
    local_store.set_item("unserializable", object())
    assert list(local_store.path.parent.glob(".store-*")) == []
    assert local_store.load_entries() == {"2025-03-10": {"prayer": True}}


# --- Offline repository ---


def test_offline_load_migrates_local_entries(local_store):
    local_store.save_entries({"2025-03-10": {"prayer": True}, "2025-03-11": {"quran": True, "quranPages": 9000}})
    repo = EntryRepository(local_store)
    entries = repo.load()
    assert entries["2025-03-10"]["prayers"]["asr"] is True
    assert entries["2025-03-11"]["quranPages"] == 1000
    assert not repo.is_online


def test_get_entry_defaults_to_empty(local_store):
    repo = EntryRepository(local_store)
    repo.load()
    assert repo.get_entry("2025-03-10") == empty_entry()
    assert not repo.has_entry("2025-03-10")


def test_get_entry_returns_a_copy(local_store):
    repo = EntryRepository(local_store)
    repo.load()
    repo.update_entry("2025-03-10", _entry(charity=True))
    fetched = repo.get_entry("2025-03-10")
    fetched["charity"] = False
    assert repo.get_entry("2025-03-10")["charity"] is True


def test_update_entry_clamps_pages_and_persists_locally(local_store):
    repo = EntryRepository(local_store)
    repo.load()
    stored = repo.update_entry("2025-03-10", _entry(quran=True, quranPages=1500))
    assert stored["quranPages"] == 1000
    assert repo.entries["2025-03-10"]["quranPages"] == 1000

    reloaded = EntryRepository(local_store)
    reloaded.load()
    assert reloaded.get_entry("2025-03-10")["quranPages"] == 1000


def test_update_entry_rejects_bad_key(local_store):
    repo = EntryRepository(local_store)
    with pytest.raises(InvalidDateKeyError):
        repo.update_entry("10/03/2025", empty_entry())


def test_entries_view_is_read_only(local_store):
    repo = EntryRepository(local_store)
    repo.load()
    with pytest.raises(TypeError):
        repo.entries["2025-03-10"] = empty_entry()


def test_clear_entry_removes_record(local_store):
    repo = EntryRepository(local_store)
    repo.load()
    repo.update_entry("2025-03-10", _entry(qiyam=True))
    repo.clear_entry("2025-03-10")
    assert "2025-03-10" not in repo.entries
    assert "2025-03-10" not in local_store.load_entries()
    # Clearing a day that has no record is a no-op
    repo.clear_entry("2025-03-11")


def test_locked_entry_rejects_mutation(local_store):
    repo = EntryRepository(local_store)
    repo.load()
    repo.update_entry("2025-03-10", _entry(fasting=True))
    repo.submit("2025-03-10")
    assert repo.state("2025-03-10") == EntryState.LOCKED

    with pytest.raises(EntryLockedError):
        repo.update_entry("2025-03-10", _entry(fasting=False))
    with pytest.raises(EntryLockedError):
        repo.clear_entry("2025-03-10")
    assert repo.get_entry("2025-03-10")["fasting"] is True


def test_edit_session_rewrites_submitted_entry(local_store):
    repo = EntryRepository(local_store)
    repo.load()
    repo.submit("2025-03-10")
    updated = repo.update_entry("2025-03-10", _entry(charity=True, submitted=True), editing=True)
    assert updated["charity"] is True
    assert repo.state("2025-03-10") == EntryState.LOCKED
    assert repo.state("2025-03-10", editing=True) == EntryState.EDITING


def test_unlock_returns_to_draft(local_store):
    repo = EntryRepository(local_store)
    repo.load()
    repo.submit("2025-03-10")
    repo.unlock("2025-03-10")
    assert repo.state("2025-03-10") == EntryState.DRAFT
    repo.update_entry("2025-03-10", _entry(dhikr=True))
    assert repo.get_entry("2025-03-10")["dhikr"] is True


# --- Online repository ---


def test_bulk_migration_uploads_local_entries_once(local_store, remote_store):
    local_store.save_entries({"2025-03-10": {"prayer": True}, "2025-03-11": {"quran": True}})
    repo = EntryRepository(local_store, remote_store, user_id="7")
    entries = repo.load()

    assert local_store.is_migrated()
    assert set(entries) == {"2025-03-10", "2025-03-11"}
    assert entries["2025-03-10"]["prayers"]["isha"] is True

    # A second identity on the same device does not receive the local data
    other = EntryRepository(local_store, remote_store, user_id="8")
    assert dict(other.load()) == {}


def test_bulk_migration_failure_is_retried_next_load(local_store, failing_remote, remote_store):
    local_store.save_entries({"2025-03-10": {"prayer": True}})
    repo = EntryRepository(local_store, failing_remote, user_id="7")
    entries = repo.load()
    assert not local_store.is_migrated()
    # Remote fetch failed too: the device blob is not shown in its place
    assert dict(entries) == {}
    assert repo.loaded

    retry = EntryRepository(local_store, remote_store, user_id="7")
    retry.load()
    assert local_store.is_migrated()
    assert "2025-03-10" in retry.entries


def test_failed_fetch_never_shows_another_identity_entries(local_store, remote_store, failing_remote):
    local_store.mark_migrated()
    first = EntryRepository(local_store, remote_store, user_id="7")
    first.load()
    first.update_entry("2025-03-10", _entry(note="private to 7"))
    assert "2025-03-10" in local_store.load_entries()

    second = EntryRepository(local_store, failing_remote, user_id="8")
    assert dict(second.load()) == {}
    assert second.get_entry("2025-03-10")["note"] == ""


def test_remote_is_authoritative_once_identity_exists(local_store, remote_store):
    local_store.mark_migrated()
    local_store.save_entries({"2025-03-12": {"charity": True}})
    remote_store.upsert([entry_to_row(normalize_entry({"qiyam": True}), "7", "2025-03-10")])

    repo = EntryRepository(local_store, remote_store, user_id="7")
    entries = repo.load()
    assert set(entries) == {"2025-03-10"}
    assert entries["2025-03-10"]["qiyam"] is True


def test_writes_reach_remote_store(local_store, remote_store):
    local_store.mark_migrated()
    repo = EntryRepository(local_store, remote_store, user_id="7")
    repo.load()
    repo.update_entry("2025-03-10", _entry(charity=True))
    repo.update_entry("2025-03-10", _entry(charity=True, quran=True, quranPages=1500))

    rows = remote_store.fetch_all("7")
    assert len(rows) == 1
    assert rows[0]["quran_pages"] == 1000

    repo.clear_entry("2025-03-10")
    assert remote_store.fetch_all("7") == []


def test_remote_writes_go_through_scheduler(local_store, remote_store):
    local_store.mark_migrated()
    pending = []
    repo = EntryRepository(local_store, remote_store, user_id="7", schedule=lambda fn, *args: pending.append((fn, args)))
    repo.load()
    repo.update_entry("2025-03-10", _entry(fasting=True))

    # Local state is updated before the remote call runs
    assert repo.get_entry("2025-03-10")["fasting"] is True
    assert remote_store.fetch_all("7") == []

    fn, args = pending.pop()
    fn(*args)
    assert remote_store.fetch_all("7")[0]["fasting"] is True


def test_remote_failures_never_surface(local_store, failing_remote):
    local_store.mark_migrated()
    repo = EntryRepository(local_store, failing_remote, user_id="7")
    repo.load()
    stored = repo.update_entry("2025-03-10", _entry(charity=True))
    assert stored["charity"] is True
    repo.clear_entry("2025-03-10")
    assert [call[0] for call in failing_remote.calls] == ["fetch_all", "upsert", "delete"]


def test_last_write_wins_across_devices(tmp_path, remote_store):
    from companion.stores.local_store import LocalStore

    phone = EntryRepository(LocalStore(str(tmp_path / "phone.json")), remote_store, user_id="7")
    laptop = EntryRepository(LocalStore(str(tmp_path / "laptop.json")), remote_store, user_id="7")
    phone.load()
    laptop.load()

    phone.update_entry("2025-03-10", _entry(note="from phone"))
    laptop.update_entry("2025-03-10", _entry(note="from laptop"))

    fresh = EntryRepository(LocalStore(str(tmp_path / "tablet.json")), remote_store, user_id="7")
    fresh.local.mark_migrated()
    fresh.load()
    assert fresh.get_entry("2025-03-10")["note"] == "from laptop"


def test_registry_keeps_one_repository_per_identity(local_store, remote_store):
    registry = RepositoryRegistry(local_store, remote_store)
    device = registry.get(None)
    assert registry.get(None) is device
    assert not device.is_online

    user = registry.get("7")
    assert user.is_online
    assert user.loaded
    registry.discard("7")
    assert registry.get("7") is not user
