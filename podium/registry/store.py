"""Local file-based registry storage.

A simple, file-system-backed store for development and single-host use.
Keeps the registry state as one JSON snapshot and the notification stream as
a JSONL log in the same directory. Writers from any process serialize on
``registry.lock``; readers rely on the snapshot being replaced atomically.
"""

from __future__ import annotations

import json
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from filelock import FileLock
from loguru import logger

from podium.registry.errors import ConflictError, NotFoundError, ValidationError
from podium.registry.events import EventLog
from podium.registry.ledger import Registry, unix_now
from podium.registry.models import Achievement, Athlete


class RegistryStore:
    """Directory-backed persistence for a single ``Registry``."""

    SNAPSHOT_FILE = "registry.json"
    EVENTS_FILE = "events.jsonl"
    LOCK_FILE = "registry.lock"

    def __init__(self, registry_dir: str | Path, clock: Callable[[], int] = unix_now):
        self.registry_dir = Path(registry_dir)
        self.registry_dir.mkdir(parents=True, exist_ok=True)
        self.snapshot_path = self.registry_dir / self.SNAPSHOT_FILE
        self.events = EventLog(self.registry_dir / self.EVENTS_FILE)
        self.lock = FileLock(str(self.registry_dir / self.LOCK_FILE))
        self._clock = clock

    def exists(self) -> bool:
        return self.snapshot_path.exists()

    def create(self, owner: str) -> Registry:
        """Initialize a new, empty registry owned by ``owner``."""
        with self.lock:
            if self.exists():
                raise ConflictError(
                    f"A registry already exists in {self.registry_dir}",
                    kind="RegistryExists",
                    details={"registry_dir": str(self.registry_dir)},
                )
            registry = Registry(owner, clock=self._clock)
            self.save(registry)
        registry.subscribe(self.events)
        logger.info("Initialized registry in {} owned by {}", self.registry_dir, owner)
        return registry

    @contextmanager
    def transaction(self) -> Iterator[Registry]:
        """Hold the directory lock, load the latest snapshot, save it on exit.

        Every writer must go through here so that mutations from different
        processes apply to the latest state, one at a time. The snapshot is
        saved even when the body raises, so operations committed before the
        failure stay consistent with the event log.
        """
        with self.lock:
            registry = self.open()
            try:
                yield registry
            finally:
                self.save(registry)

    def open(self) -> Registry:
        """Load the stored registry and attach the event log to it."""
        if not self.exists():
            raise NotFoundError(
                f"No registry found in {self.registry_dir}; run 'podium init' first",
                kind="RegistryNotInitialized",
                details={"registry_dir": str(self.registry_dir)},
            )
        with open(self.snapshot_path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise _corrupt(self.snapshot_path, [f"invalid JSON: {e}"]) from e

        try:
            registry = _snapshot_to_registry(data, self._clock)
        except (KeyError, TypeError, ValueError) as e:
            raise _corrupt(self.snapshot_path, [f"malformed record: {e}"]) from e

        issues = registry.check_invariants()
        if issues:
            raise _corrupt(self.snapshot_path, issues)

        registry.subscribe(self.events)
        return registry

    def save(self, registry: Registry) -> None:
        """Write the registry snapshot, replacing the previous one atomically."""
        tmp_path = self.snapshot_path.with_suffix(".json.tmp")
        with open(tmp_path, "w") as f:
            json.dump(_registry_to_snapshot(registry), f, indent=2)
        os.replace(tmp_path, self.snapshot_path)


def _corrupt(path: Path, issues: list[str]) -> ValidationError:
    return ValidationError(
        f"Registry snapshot {path} is inconsistent",
        kind="CorruptSnapshot",
        details={"issues": issues},
    )


def _registry_to_snapshot(registry: Registry) -> dict:
    athletes = registry.list_athletes()
    achievements = [
        achievement.to_dict()
        for athlete in athletes
        for achievement in registry.list_achievements(athlete.id)
    ]
    return {
        "owner": registry.owner,
        "next_athlete_id": registry.next_athlete_id,
        "athletes": [a.to_dict() for a in athletes],
        "achievements": achievements,
    }


def _snapshot_to_registry(data: dict, clock: Callable[[], int]) -> Registry:
    return Registry.restore(
        owner=data["owner"],
        athletes=[Athlete.from_dict(d) for d in data.get("athletes", [])],
        achievements=[Achievement.from_dict(d) for d in data.get("achievements", [])],
        next_athlete_id=int(data.get("next_athlete_id", 1)),
        clock=clock,
    )
