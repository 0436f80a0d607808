"""Registry error taxonomy.

Every rejected operation raises one of the four ``RegistryError`` subclasses
before any state is touched. The ``kind`` names the precise rule that failed
(``EmptyName``, ``AthleteNotFound``, ...); the class names the category.
"""

from __future__ import annotations

from typing import Any, Optional


class RegistryError(Exception):
    """Base class for all registry rejections."""

    error_code = "REGISTRY_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str,
        kind: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.kind = kind
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error_code,
            "kind": self.kind,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(RegistryError):
    """An input field is empty, out of range, or the target is not writable."""

    error_code = "VALIDATION_ERROR"
    status_code = 422


class NotFoundError(RegistryError):
    """A referenced athlete or achievement does not exist."""

    error_code = "NOT_FOUND"
    status_code = 404


class AuthorizationError(RegistryError):
    """The caller lacks the privilege the operation requires."""

    error_code = "UNAUTHORIZED"
    status_code = 403


class ConflictError(RegistryError):
    """The caller already owns an athlete profile."""

    error_code = "CONFLICT"
    status_code = 409


def athlete_not_found(athlete_id: int) -> NotFoundError:
    return NotFoundError(
        f"Athlete {athlete_id} does not exist",
        kind="AthleteNotFound",
        details={"athlete_id": athlete_id},
    )


def achievement_not_found(athlete_id: int, achievement_id: int) -> NotFoundError:
    return NotFoundError(
        f"Achievement {achievement_id} does not exist for athlete {athlete_id}",
        kind="AchievementNotFound",
        details={"athlete_id": athlete_id, "achievement_id": achievement_id},
    )
