"""Caller authorization rules.

Two privileges exist: the registry owner may do everything, and an
athlete's owner may append achievements to that athlete.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from podium.registry.errors import AuthorizationError

if TYPE_CHECKING:
    from podium.registry.ledger import Registry
    from podium.registry.models import Athlete


def is_owner(registry: Registry, caller: str) -> bool:
    """Check if the caller is the registry owner.

    Parameters
    ----------
    registry:
        The registry whose owner is checked.
    caller:
        The authenticated caller identity.

    Returns
    -------
    bool
        True if the caller initialized the registry.
    """
    return bool(caller) and caller == registry.owner


def is_owner_or_athlete(registry: Registry, caller: str, athlete: Athlete) -> bool:
    """Check if the caller is the registry owner or the athlete's owner."""
    return is_owner(registry, caller) or (bool(caller) and caller == athlete.owner)


def require_owner(registry: Registry, caller: str) -> None:
    """Validate that the caller is the registry owner.

    Raises ``AuthorizationError`` if not.
    """
    if not is_owner(registry, caller):
        raise AuthorizationError(
            "Only the registry owner may perform this operation",
            kind="Unauthorized",
            details={"caller": caller},
        )


def require_owner_or_athlete(registry: Registry, caller: str, athlete: Athlete) -> None:
    """Validate that the caller may write to the given athlete.

    Raises ``AuthorizationError`` if the caller is neither the registry owner
    nor the owner of ``athlete``.
    """
    if not is_owner_or_athlete(registry, caller, athlete):
        raise AuthorizationError(
            f"Caller may not modify athlete {athlete.id}",
            kind="Unauthorized",
            details={"caller": caller, "athlete_id": athlete.id},
        )
