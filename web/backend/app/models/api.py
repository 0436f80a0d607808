"""Pydantic models for API request/response serialization.

These models mirror the podium dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Athletes
# ---------------------------------------------------------------------------


class RegisterAthleteRequest(BaseModel):
    """Body for registering the caller's athlete profile."""

    name: str
    sport: str
    age: int
    country: str = ""


class AthleteResponse(BaseModel):
    """Mirrors podium.registry.models.Athlete."""

    id: int
    name: str
    sport: str
    age: int
    country: str = ""
    owner: str = ""
    achievement_count: int = 0
    is_verified: bool = False
    is_active: bool = True


class AthleteIdResponse(BaseModel):
    athlete_id: int


class TotalAthletesResponse(BaseModel):
    total: int


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


class AddAchievementRequest(BaseModel):
    title: str
    description: str = ""


class AchievementResponse(BaseModel):
    """Mirrors podium.registry.models.Achievement."""

    athlete_id: int
    id: int
    title: str
    description: str = ""
    created_at: int = 0
    is_verified: bool = False


class AchievementIdResponse(BaseModel):
    athlete_id: int
    achievement_id: int


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


class VerifyRequest(BaseModel):
    """``achievement_id`` 0 targets the athlete profile itself."""

    achievement_id: int = 0


class VerifyResponse(BaseModel):
    athlete_id: int
    achievement_id: int = 0
    verified: bool = True


# ---------------------------------------------------------------------------
# Events and errors
# ---------------------------------------------------------------------------


class EventResponse(BaseModel):
    """One entry of the notification log."""

    sequence: int
    timestamp: str
    event: str
    payload: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Mirrors podium.registry.errors.RegistryError.to_dict()."""

    error: str
    kind: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
