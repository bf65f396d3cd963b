"""Calendar event endpoints scoped to the authenticated user."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Path, Request, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from ..core.db import get_session
from ..core.security import require_claims
from ..models import Event
from ..store import events as event_store
from ..store.events import as_utc

router = APIRouter()

# Event ids are a 32-bit signed integer column.
MAX_EVENT_ID = 2**31 - 1
TITLE_MAX_LENGTH = 255
COLOR_MAX_LENGTH = 32


class EventCreateRequest(BaseModel):
    title: str | None = Field(default=None, max_length=TITLE_MAX_LENGTH)
    start: datetime | None = None
    end: datetime | None = None
    color: str | None = Field(default=None, max_length=COLOR_MAX_LENGTH)


class EventUpdateRequest(BaseModel):
    """Replacement values for an existing event; color is not updatable."""

    id: int = Field(ge=1, le=MAX_EVENT_ID)
    title: str | None = Field(default=None, max_length=TITLE_MAX_LENGTH)
    start: datetime | None = None
    end: datetime | None = None


class EventView(BaseModel):
    """Event as returned to its owner; the owner id is never included."""

    id: int
    title: str
    start: datetime
    end: datetime
    color: str | None = None

    @field_validator("start", "end")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @classmethod
    def from_model(cls, event: Event) -> "EventView":
        return cls(id=event.id, title=event.title, start=event.start, end=event.end, color=event.color)


class EventEnvelope(BaseModel):
    event: EventView


class EventListEnvelope(BaseModel):
    event: list[EventView]


class MessageResponse(BaseModel):
    message: str


@router.post(
    "",
    response_model=EventEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create a calendar event",
)
def create_event(
    payload: EventCreateRequest,
    request: Request,
    session: Session = Depends(get_session),
) -> EventEnvelope:
    claims = require_claims(request)
    event = event_store.create_event(
        session,
        claims.userid,
        title=payload.title,
        start=payload.start,
        end=payload.end,
        color=payload.color,
    )
    return EventEnvelope(event=EventView.from_model(event))


@router.put("", response_model=EventEnvelope, summary="Update a calendar event")
def update_event(
    payload: EventUpdateRequest,
    request: Request,
    session: Session = Depends(get_session),
) -> EventEnvelope:
    """Overwrite title, start and end of one of the caller's events."""

    claims = require_claims(request)
    event = event_store.update_event(
        session,
        claims.userid,
        payload.id,
        title=payload.title,
        start=payload.start,
        end=payload.end,
    )
    return EventEnvelope(event=EventView.from_model(event))


@router.get("", response_model=EventListEnvelope, summary="List the caller's events")
def list_events(request: Request, session: Session = Depends(get_session)) -> EventListEnvelope:
    claims = require_claims(request)
    rows = event_store.list_events(session, claims.userid)
    return EventListEnvelope(event=[EventView.from_model(row) for row in rows])


@router.delete("/{event_id}", response_model=MessageResponse, summary="Delete a calendar event")
def delete_event(
    request: Request,
    event_id: int = Path(ge=1, le=MAX_EVENT_ID),
    session: Session = Depends(get_session),
) -> MessageResponse:
    claims = require_claims(request)
    event_store.delete_event(session, claims.userid, event_id)
    return MessageResponse(message="Event deleted successfully")
