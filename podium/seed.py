"""Bulk-load athletes and achievements from a YAML roster.

Roster format::

    athletes:
      - caller: alice
        name: Alice
        sport: Running
        age: 30
        country: Kenya
        verified: true
        achievements:
          - title: 5k PB
            description: sub-15min
            verified: true

Every entry goes through the public registry operations, so the usual
validation and authorization rules apply. Athletes whose caller is already
registered are skipped, which makes seeding safe to re-run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml
from loguru import logger

from podium.auth.permissions import require_owner
from podium.registry.errors import ValidationError
from podium.registry.ledger import UNSET_ID, Registry


@dataclass
class SeedReport:
    """Outcome of applying a roster."""

    registered: list[int] = field(default_factory=list)
    achievements_added: int = 0
    verified: int = 0
    skipped_callers: list[str] = field(default_factory=list)


def load_roster(path: str | Path) -> list[dict]:
    """Read a roster file and return its athlete entries."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict) or not isinstance(data.get("athletes", []), list):
        raise ValidationError(
            f"Roster {path} must contain an 'athletes' list",
            kind="InvalidRoster",
        )
    entries = data.get("athletes", []) or []
    _check_entries(entries, path)
    return entries


def _check_entries(entries: list, source: str | Path) -> None:
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict) or not entry.get("caller"):
            raise _invalid_entry(source, i, "needs a 'caller'")
        achievements = entry.get("achievements") or []
        if not isinstance(achievements, list) or not all(isinstance(a, dict) for a in achievements):
            raise _invalid_entry(source, i, "'achievements' must be a list of mappings")


def _invalid_entry(source: str | Path, index: int, problem: str) -> ValidationError:
    return ValidationError(
        f"Roster {source}: entry {index + 1} {problem}",
        kind="InvalidRoster",
        details={"entry": index + 1},
    )


def _requests_verification(entries: list[dict]) -> bool:
    for entry in entries:
        if entry.get("verified"):
            return True
        if any(item.get("verified") for item in entry.get("achievements") or []):
            return True
    return False


def apply_roster(registry: Registry, entries: list[dict], operator: str) -> SeedReport:
    """Register every roster entry; ``operator`` performs the verifications.

    Verification flags in the roster require ``operator`` to be the
    registry owner; that and the shape of every entry are checked before
    anything is registered.
    """
    _check_entries(entries, "entries")
    if _requests_verification(entries):
        require_owner(registry, operator)

    report = SeedReport()

    for entry in entries:
        caller = str(entry["caller"])
        if registry.get_my_athlete_id(caller) != UNSET_ID:
            logger.info("Skipping {}: already registered", caller)
            report.skipped_callers.append(caller)
            continue

        athlete_id = registry.register_athlete(
            caller,
            name=entry.get("name", ""),
            sport=entry.get("sport", ""),
            age=entry.get("age", 0),
            country=entry.get("country", ""),
        )
        report.registered.append(athlete_id)

        for item in entry.get("achievements") or []:
            achievement_id = registry.add_achievement(
                caller,
                athlete_id,
                title=item.get("title", ""),
                description=item.get("description", ""),
            )
            report.achievements_added += 1
            if item.get("verified"):
                registry.verify(operator, athlete_id, achievement_id)
                report.verified += 1

        if entry.get("verified"):
            registry.verify(operator, athlete_id)
            report.verified += 1

    return report
