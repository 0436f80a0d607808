"""Athletes router -- registration, achievements, and verification."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from web.backend.app.middleware.auth import get_caller
from web.backend.app.models.api import (
    AchievementIdResponse,
    AchievementResponse,
    AddAchievementRequest,
    AthleteIdResponse,
    AthleteResponse,
    ErrorResponse,
    RegisterAthleteRequest,
    TotalAthletesResponse,
    VerifyRequest,
    VerifyResponse,
)
from web.backend.app.service import RegistryService, get_service

router = APIRouter(
    prefix="/api/athletes",
    tags=["athletes"],
    responses={
        403: {"model": ErrorResponse, "description": "Unauthorized caller"},
        404: {"model": ErrorResponse, "description": "Unknown athlete or achievement"},
        409: {"model": ErrorResponse, "description": "Caller already registered"},
    },
)


def _athlete_to_response(athlete) -> AthleteResponse:
    """Convert an Athlete dataclass to a Pydantic response model."""
    return AthleteResponse(**athlete.to_dict())


def _achievement_to_response(achievement) -> AchievementResponse:
    """Convert an Achievement dataclass to a Pydantic response model."""
    return AchievementResponse(**achievement.to_dict())


# ---------------------------------------------------------------------------
# Collection-level routes (declared before /{athlete_id})
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=list[AthleteResponse],
    summary="List all athletes",
)
async def list_athletes(service: RegistryService = Depends(get_service)):
    """List every registered athlete in id order."""
    return [_athlete_to_response(a) for a in service.registry.list_athletes()]


@router.post(
    "",
    response_model=AthleteIdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register the caller's athlete profile",
)
async def register_athlete(
    request: RegisterAthleteRequest,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_service),
):
    """Register a new athlete owned by the caller. One profile per caller."""
    athlete_id = service.write(
        lambda reg: reg.register_athlete(
            caller, request.name, request.sport, request.age, request.country
        )
    )
    return AthleteIdResponse(athlete_id=athlete_id)


@router.get(
    "/count",
    response_model=TotalAthletesResponse,
    summary="Count registered athletes",
)
async def total_athletes(service: RegistryService = Depends(get_service)):
    return TotalAthletesResponse(total=service.registry.get_total_athletes())


@router.get(
    "/me",
    response_model=AthleteIdResponse,
    summary="Get the caller's athlete id",
)
async def my_athlete_id(
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_service),
):
    """Return the caller's athlete id, or 0 if the caller has not registered."""
    return AthleteIdResponse(athlete_id=service.registry.get_my_athlete_id(caller))


# ---------------------------------------------------------------------------
# Single athlete
# ---------------------------------------------------------------------------


@router.get(
    "/{athlete_id}",
    response_model=AthleteResponse,
    summary="Get athlete details",
)
async def get_athlete(athlete_id: int, service: RegistryService = Depends(get_service)):
    return _athlete_to_response(service.registry.get_athlete_details(athlete_id))


@router.get(
    "/{athlete_id}/achievements",
    response_model=list[AchievementResponse],
    summary="List an athlete's achievements",
)
async def list_achievements(athlete_id: int, service: RegistryService = Depends(get_service)):
    return [
        _achievement_to_response(a)
        for a in service.registry.list_achievements(athlete_id)
    ]


@router.post(
    "/{athlete_id}/achievements",
    response_model=AchievementIdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add an achievement",
)
async def add_achievement(
    athlete_id: int,
    request: AddAchievementRequest,
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_service),
):
    """Append an achievement. Allowed for the athlete's owner and the registry owner."""
    achievement_id = service.write(
        lambda reg: reg.add_achievement(
            caller, athlete_id, request.title, request.description
        )
    )
    return AchievementIdResponse(athlete_id=athlete_id, achievement_id=achievement_id)


@router.get(
    "/{athlete_id}/achievements/{achievement_id}",
    response_model=AchievementResponse,
    summary="Get one achievement",
)
async def get_achievement(
    athlete_id: int,
    achievement_id: int,
    service: RegistryService = Depends(get_service),
):
    return _achievement_to_response(
        service.registry.get_achievement(athlete_id, achievement_id)
    )


@router.post(
    "/{athlete_id}/verify",
    response_model=VerifyResponse,
    summary="Verify an athlete or one of its achievements",
)
async def verify(
    athlete_id: int,
    request: VerifyRequest = VerifyRequest(),
    caller: str = Depends(get_caller),
    service: RegistryService = Depends(get_service),
):
    """Verify the athlete (``achievement_id`` 0) or a single achievement.

    Registry owner only. Re-verifying succeeds without changes.
    """
    service.write(lambda reg: reg.verify(caller, athlete_id, request.achievement_id))
    return VerifyResponse(athlete_id=athlete_id, achievement_id=request.achievement_id)
