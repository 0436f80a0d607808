"""Events router -- the registry notification log."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from podium.registry.events import event_to_dict
from web.backend.app.models.api import EventResponse
from web.backend.app.service import RegistryService, get_service

router = APIRouter(prefix="/api/events", tags=["events"])


@router.get(
    "",
    response_model=list[EventResponse],
    summary="List notifications, newest first",
)
async def list_events(
    event: Optional[str] = Query(None, description="Notification type"),
    athlete_id: Optional[int] = Query(None, description="Only this athlete"),
    limit: int = Query(200, ge=1, le=1000, description="Maximum entries"),
    service: RegistryService = Depends(get_service),
):
    """Return the persisted notification stream with optional filters."""
    entries = service.store.events.read(event=event, athlete_id=athlete_id, limit=limit)
    responses = []
    for entry in entries:
        payload = event_to_dict(entry.event)
        name = payload.pop("event")
        responses.append(
            EventResponse(
                sequence=entry.sequence,
                timestamp=entry.timestamp,
                event=name,
                payload=payload,
            )
        )
    return responses
