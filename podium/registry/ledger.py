"""The registry state machine.

``Registry`` owns every athlete and achievement record and is the only thing
that mutates them. Each mutating operation validates all of its preconditions
first, then commits, then emits its notification, all under one lock, so a
rejected call leaves no trace and notifications arrive in commit order.

Caller identity and the current time are supplied by whoever invokes the
registry (the CLI, the HTTP layer, a test); the registry trusts them.
"""

from __future__ import annotations

import threading
import time
from dataclasses import replace
from typing import Callable, Optional

from loguru import logger

from podium.auth.permissions import require_owner, require_owner_or_athlete
from podium.registry.errors import (
    AuthorizationError,
    ConflictError,
    RegistryError,
    ValidationError,
    achievement_not_found,
    athlete_not_found,
)
from podium.registry.events import (
    AchievementAdded,
    AthleteRegistered,
    AthleteVerified,
    RegistryEvent,
)
from podium.registry.models import Achievement, Athlete

MIN_AGE = 1
MAX_AGE = 99

# Returned by get_my_athlete_id for callers without a profile, and accepted by
# verify() as "the athlete itself" instead of one of its achievements.
UNSET_ID = 0
ATHLETE_TARGET = 0

Listener = Callable[[RegistryEvent], None]


def unix_now() -> int:
    return int(time.time())


class Registry:
    """Permissioned registry of athletes and their achievements."""

    def __init__(self, owner: str, clock: Callable[[], int] = unix_now):
        if not owner:
            raise ValidationError("Registry owner is required", kind="EmptyOwner")
        self._owner = owner
        self._clock = clock
        self._lock = threading.RLock()

        self._athletes: dict[int, Athlete] = {}
        self._achievements: dict[tuple[int, int], Achievement] = {}
        self._caller_to_athlete: dict[str, int] = {}
        self._next_athlete_id = 1

        self._listeners: list[Listener] = []

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def next_athlete_id(self) -> int:
        return self._next_athlete_id

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        """Call ``listener`` with every notification, in emission order."""
        with self._lock:
            self._listeners.append(listener)

    def _emit(self, event: RegistryEvent) -> None:
        # Already committed: listener failures are logged, not raised.
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Listener {!r} failed on {}", listener, event.event_name)

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    def register_athlete(
        self,
        caller: str,
        name: str,
        sport: str,
        age: int,
        country: str = "",
    ) -> int:
        """Create the caller's athlete profile and return its id."""
        with self._lock:
            try:
                _require_caller(caller)
                if not name:
                    raise ValidationError("Name must not be empty", kind="EmptyName")
                if not sport:
                    raise ValidationError("Sport must not be empty", kind="EmptySport")
                if isinstance(age, bool) or not isinstance(age, int) or not MIN_AGE <= age <= MAX_AGE:
                    raise ValidationError(
                        f"Age must be between {MIN_AGE} and {MAX_AGE}",
                        kind="InvalidAge",
                        details={"age": age},
                    )
                if self._caller_to_athlete.get(caller, UNSET_ID) != UNSET_ID:
                    raise ConflictError(
                        "Caller already has a registered athlete",
                        kind="CallerAlreadyRegistered",
                        details={
                            "caller": caller,
                            "athlete_id": self._caller_to_athlete[caller],
                        },
                    )
            except RegistryError as exc:
                _log_rejection("register_athlete", caller, exc)
                raise

            athlete_id = self._next_athlete_id
            self._athletes[athlete_id] = Athlete(
                id=athlete_id,
                name=name,
                sport=sport,
                age=age,
                country=country or "",
                owner=caller,
            )
            self._caller_to_athlete[caller] = athlete_id
            self._next_athlete_id += 1

            logger.info("Registered athlete {} ({}) for {}", athlete_id, name, caller)
            self._emit(AthleteRegistered(athlete_id=athlete_id, name=name, caller=caller))
            return athlete_id

    def add_achievement(
        self,
        caller: str,
        athlete_id: int,
        title: str,
        description: str = "",
        now: Optional[int] = None,
    ) -> int:
        """Append an achievement to an athlete and return its per-athlete id."""
        with self._lock:
            try:
                _require_caller(caller)
                athlete = self._get(athlete_id)
                require_owner_or_athlete(self, caller, athlete)
                if not athlete.is_active:
                    raise ValidationError(
                        f"Athlete {athlete_id} is not active",
                        kind="AthleteInactive",
                        details={"athlete_id": athlete_id},
                    )
                if not title:
                    raise ValidationError("Title must not be empty", kind="EmptyTitle")
            except RegistryError as exc:
                _log_rejection("add_achievement", caller, exc)
                raise

            achievement_id = athlete.achievement_count + 1
            created_at = self._clock() if now is None else now
            self._achievements[(athlete_id, achievement_id)] = Achievement(
                athlete_id=athlete_id,
                id=achievement_id,
                title=title,
                description=description or "",
                created_at=created_at,
            )
            athlete.achievement_count = achievement_id

            logger.info("Added achievement {}/{} ({})", athlete_id, achievement_id, title)
            self._emit(
                AchievementAdded(
                    athlete_id=athlete_id, achievement_id=achievement_id, title=title
                )
            )
            return achievement_id

    def verify(self, caller: str, athlete_id: int, achievement_id: int = ATHLETE_TARGET) -> None:
        """Mark an athlete (``achievement_id == 0``) or one achievement as verified.

        Re-verifying is allowed and changes nothing. Only the athlete branch
        emits a notification.
        """
        with self._lock:
            try:
                _require_caller(caller)
                require_owner(self, caller)
                athlete = self._get(athlete_id)
                if isinstance(achievement_id, bool) or (
                    achievement_id != ATHLETE_TARGET
                    and not 0 < achievement_id <= athlete.achievement_count
                ):
                    raise achievement_not_found(athlete_id, achievement_id)
            except RegistryError as exc:
                _log_rejection("verify", caller, exc)
                raise

            if achievement_id == ATHLETE_TARGET:
                athlete.is_verified = True
                logger.info("Verified athlete {}", athlete_id)
                self._emit(AthleteVerified(athlete_id=athlete_id, verified=True))
                return

            self._achievements[(athlete_id, achievement_id)].is_verified = True
            logger.info("Verified achievement {}/{}", athlete_id, achievement_id)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_athlete_details(self, athlete_id: int) -> Athlete:
        """Return a snapshot of an athlete profile."""
        with self._lock:
            return replace(self._get(athlete_id))

    def get_achievement(self, athlete_id: int, achievement_id: int) -> Achievement:
        """Return a snapshot of one achievement."""
        with self._lock:
            self._get(athlete_id)
            achievement = self._achievements.get((athlete_id, achievement_id))
            if achievement is None or isinstance(achievement_id, bool):
                raise achievement_not_found(athlete_id, achievement_id)
            return replace(achievement)

    def list_achievements(self, athlete_id: int) -> list[Achievement]:
        """Return snapshots of every achievement of an athlete, oldest first."""
        with self._lock:
            athlete = self._get(athlete_id)
            return [
                replace(self._achievements[(athlete_id, i)])
                for i in range(1, athlete.achievement_count + 1)
            ]

    def list_athletes(self) -> list[Athlete]:
        """Return snapshots of every athlete, in id order."""
        with self._lock:
            return [replace(self._athletes[i]) for i in range(1, self._next_athlete_id)]

    def get_total_athletes(self) -> int:
        with self._lock:
            return self._next_athlete_id - 1

    def get_my_athlete_id(self, caller: str) -> int:
        """Return the caller's athlete id, or 0 if the caller never registered."""
        with self._lock:
            return self._caller_to_athlete.get(caller, UNSET_ID)

    # ------------------------------------------------------------------
    # Snapshot support
    # ------------------------------------------------------------------

    @classmethod
    def restore(
        cls,
        owner: str,
        athletes: list[Athlete],
        achievements: list[Achievement],
        next_athlete_id: Optional[int] = None,
        clock: Callable[[], int] = unix_now,
    ) -> Registry:
        """Rebuild a registry from stored records without emitting notifications.

        The caller should run ``check_invariants`` on the result before use.
        """
        registry = cls(owner, clock=clock)
        for athlete in athletes:
            registry._athletes[athlete.id] = replace(athlete)
            registry._caller_to_athlete.setdefault(athlete.owner, athlete.id)
        for achievement in achievements:
            registry._achievements[achievement.key] = replace(achievement)
        if next_athlete_id is None:
            next_athlete_id = max(registry._athletes, default=0) + 1
        registry._next_athlete_id = next_athlete_id
        return registry

    def check_invariants(self) -> list[str]:
        """Return a list of invariant violations (empty when consistent)."""
        issues: list[str] = []
        with self._lock:
            expected_ids = set(range(1, self._next_athlete_id))
            if set(self._athletes) != expected_ids:
                issues.append("athlete ids are not dense from 1")

            owners: dict[str, int] = {}
            for athlete in self._athletes.values():
                if athlete.owner in owners:
                    issues.append(
                        f"caller {athlete.owner!r} owns athletes "
                        f"{owners[athlete.owner]} and {athlete.id}"
                    )
                owners[athlete.owner] = athlete.id

                stored = {
                    key[1] for key in self._achievements if key[0] == athlete.id
                }
                if stored != set(range(1, athlete.achievement_count + 1)):
                    issues.append(
                        f"athlete {athlete.id} achievement ids do not match "
                        f"achievement_count={athlete.achievement_count}"
                    )

            orphans = {key[0] for key in self._achievements} - set(self._athletes)
            for athlete_id in sorted(orphans):
                issues.append(f"achievements stored for unknown athlete {athlete_id}")
        return issues

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get(self, athlete_id: int) -> Athlete:
        if isinstance(athlete_id, bool):
            raise athlete_not_found(athlete_id)
        athlete = self._athletes.get(athlete_id)
        if athlete is None:
            raise athlete_not_found(athlete_id)
        return athlete


def _require_caller(caller: str) -> None:
    if not caller:
        raise AuthorizationError("Caller identity is required", kind="Unauthorized")


def _log_rejection(operation: str, caller: str, exc: RegistryError) -> None:
    logger.warning("{} rejected for {!r}: {} ({})", operation, caller, exc.kind, exc.message)
