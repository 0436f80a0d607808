"""Tests for registry persistence and the notification log."""

import json
import tempfile
import threading
from pathlib import Path

import pytest

from podium.registry.errors import ConflictError, NotFoundError, ValidationError
from podium.registry.events import AchievementAdded, AthleteRegistered, AthleteVerified, EventLog
from podium.registry.store import RegistryStore

ATHLETE_FIELDS = ("Running", 30, "")


def _populated(store: RegistryStore):
    reg = store.create("root")
    reg.register_athlete("alice", "Alice", "Running", 30, "Kenya")
    reg.register_athlete("bob", "Bob", "Swimming", 25, "")
    reg.add_achievement("alice", 1, "5k PB", "sub-15min", now=100)
    reg.add_achievement("alice", 1, "10k PB", now=200)
    reg.verify("root", 1, 2)
    reg.verify("root", 2)
    store.save(reg)
    return reg


def _events(registry_dir):
    return RegistryStore(registry_dir).events.read()


# --- Snapshot ---


def test_create_and_open():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = RegistryStore(Path(tmpdir) / "registry")
        assert not store.exists()

        store.create("root")
        assert store.exists()

        reg = RegistryStore(Path(tmpdir) / "registry").open()
        assert reg.owner == "root"
        assert reg.get_total_athletes() == 0


def test_reopen_preserves_state():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = RegistryStore(tmpdir)
        _populated(store)

        reg = RegistryStore(tmpdir).open()
        assert reg.get_total_athletes() == 2
        assert reg.get_my_athlete_id("alice") == 1
        assert reg.get_my_athlete_id("bob") == 2

        alice = reg.get_athlete_details(1)
        assert alice.achievement_count == 2
        assert not alice.is_verified
        assert reg.get_athlete_details(2).is_verified

        first, second = reg.list_achievements(1)
        assert (first.title, first.created_at, first.is_verified) == ("5k PB", 100, False)
        assert (second.title, second.created_at, second.is_verified) == ("10k PB", 200, True)


def test_reopened_registry_continues_ids():
    with tempfile.TemporaryDirectory() as tmpdir:
        _populated(RegistryStore(tmpdir))

        reg = RegistryStore(tmpdir).open()
        assert reg.register_athlete("carol", "Carol", "Cycling", 40, "") == 3
        assert reg.add_achievement("alice", 1, "Half marathon") == 3
        with pytest.raises(ConflictError):
            reg.register_athlete("alice", "Alice", "Running", 30, "")


def test_create_refuses_existing_registry():
    with tempfile.TemporaryDirectory() as tmpdir:
        RegistryStore(tmpdir).create("root")
        with pytest.raises(ConflictError) as exc_info:
            RegistryStore(tmpdir).create("someone-else")
        assert exc_info.value.kind == "RegistryExists"
        assert RegistryStore(tmpdir).open().owner == "root"


def test_open_missing_registry():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(NotFoundError) as exc_info:
            RegistryStore(tmpdir).open()
        assert exc_info.value.kind == "RegistryNotInitialized"


def test_open_detects_broken_invariants():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = RegistryStore(tmpdir)
        _populated(store)

        data = json.loads(store.snapshot_path.read_text())
        data["athletes"][0]["achievement_count"] = 5
        store.snapshot_path.write_text(json.dumps(data))

        with pytest.raises(ValidationError) as exc_info:
            store.open()
        assert exc_info.value.kind == "CorruptSnapshot"
        assert exc_info.value.details["issues"]


def test_open_detects_invalid_json():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = RegistryStore(tmpdir)
        store.snapshot_path.write_text("{not json")

        with pytest.raises(ValidationError) as exc_info:
            store.open()
        assert exc_info.value.kind == "CorruptSnapshot"


# --- Concurrent writers ---


def test_transactions_from_separate_stores_see_each_other():
    with tempfile.TemporaryDirectory() as tmpdir:
        RegistryStore(tmpdir).create("root")
        first = RegistryStore(tmpdir)
        second = RegistryStore(tmpdir)

        with first.transaction() as reg:
            assert reg.register_athlete("bob", "Bob", *ATHLETE_FIELDS) == 1
        with second.transaction() as reg:
            assert reg.register_athlete("alice", "Alice", *ATHLETE_FIELDS) == 2
        with first.transaction() as reg:
            with pytest.raises(ConflictError):
                reg.register_athlete("alice", "Alice", *ATHLETE_FIELDS)

        reg = RegistryStore(tmpdir).open()
        assert reg.get_total_athletes() == 2
        assert reg.get_my_athlete_id("bob") == 1
        assert reg.get_my_athlete_id("alice") == 2
        assert [e.sequence for e in _events(tmpdir)] == [2, 1]


def test_concurrent_writers_do_not_lose_updates():
    with tempfile.TemporaryDirectory() as tmpdir:
        RegistryStore(tmpdir).create("root")
        callers = [f"caller-{i}" for i in range(8)]
        errors = []

        def register(caller):
            try:
                with RegistryStore(tmpdir).transaction() as reg:
                    reg.register_athlete(caller, caller.title(), *ATHLETE_FIELDS)
            except Exception as exc:  # surfaced by the assertion below
                errors.append(exc)

        threads = [threading.Thread(target=register, args=(c,)) for c in callers]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        reg = RegistryStore(tmpdir).open()
        assert reg.get_total_athletes() == len(callers)
        assert sorted(reg.get_my_athlete_id(c) for c in callers) == list(range(1, len(callers) + 1))
        assert sorted(e.sequence for e in _events(tmpdir)) == list(range(1, len(callers) + 1))


def test_transaction_saves_operations_committed_before_a_failure():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = RegistryStore(tmpdir)
        store.create("root")

        with pytest.raises(ValidationError):
            with store.transaction() as reg:
                reg.register_athlete("alice", "Alice", *ATHLETE_FIELDS)
                reg.register_athlete("bob", "Bob", "Swimming", 100, "")

        assert RegistryStore(tmpdir).open().get_total_athletes() == 1
        assert len(store.events.read()) == 1


# --- Event log ---


def test_store_logs_notifications_in_order():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = RegistryStore(tmpdir)
        _populated(store)

        entries = store.events.read()
        # Newest first; verifying an achievement is not logged.
        assert [e.event for e in reversed(entries)] == [
            AthleteRegistered(athlete_id=1, name="Alice", caller="alice"),
            AthleteRegistered(athlete_id=2, name="Bob", caller="bob"),
            AchievementAdded(athlete_id=1, achievement_id=1, title="5k PB"),
            AchievementAdded(athlete_id=1, achievement_id=2, title="10k PB"),
            AthleteVerified(athlete_id=2, verified=True),
        ]
        assert [e.sequence for e in entries] == [5, 4, 3, 2, 1]


def test_event_log_filters():
    with tempfile.TemporaryDirectory() as tmpdir:
        log = EventLog(Path(tmpdir) / "events.jsonl")
        log.append(AthleteRegistered(athlete_id=1, name="Alice", caller="alice"))
        log.append(AthleteRegistered(athlete_id=2, name="Bob", caller="bob"))
        log.append(AchievementAdded(athlete_id=1, achievement_id=1, title="PB"))

        registered = log.read(event="AthleteRegistered")
        assert [e.event.athlete_id for e in registered] == [2, 1]

        for_alice = log.read(athlete_id=1)
        assert len(for_alice) == 2

        assert len(log.read(limit=1)) == 1


def test_event_log_empty():
    with tempfile.TemporaryDirectory() as tmpdir:
        log = EventLog(Path(tmpdir) / "events.jsonl")
        assert log.read() == []


def test_event_log_sequence_continues_across_instances():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "events.jsonl"
        # Titles long enough that the last entry spans more than one tail chunk.
        for i in range(3):
            EventLog(path).append(AchievementAdded(athlete_id=1, achievement_id=i + 1, title="x" * 5000))
        entry = EventLog(path).append(AthleteVerified(athlete_id=1, verified=True))

        assert entry.sequence == 4
        assert [e.sequence for e in EventLog(path).read()] == [4, 3, 2, 1]
