"""Calendar events scoped to their owning user."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, StorageFault, ValidationError
from ..models import Event

logger = logging.getLogger(__name__)

# Fields the update operation overwrites; color and owner are fixed after creation.
EVENT_UPDATABLE_FIELDS = ("title", "start", "end")

EVENT_NOT_FOUND = "Event not found"


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_event_fields(
    title: str | None, start: datetime | None, end: datetime | None
) -> tuple[str, datetime, datetime]:
    """Check the rules shared by create and update.

    Returns the title and the timestamps normalised to UTC.
    """

    if title is None or not title.strip():
        raise ValidationError("Title is required")
    if start is None or end is None:
        raise ValidationError("Start and End times are required")
    start, end = as_utc(start), as_utc(end)
    if start >= end:
        raise ValidationError("Start time must be before End time")
    return title, start, end


def create_event(
    session: Session,
    owner_id: int,
    *,
    title: str | None,
    start: datetime | None,
    end: datetime | None,
    color: str | None = None,
) -> Event:
    title, start, end = validate_event_fields(title, start, end)
    event = Event(user_id=owner_id, title=title, start=start, end=end, color=color)
    session.add(event)
    _flush(session)
    logger.debug("Created event id=%s for user=%s", event.id, owner_id)
    return event


def get_owned_event(session: Session, owner_id: int, event_id: int, *, for_update: bool = False) -> Event:
    """Load ``event_id`` if it belongs to ``owner_id``.

    An event owned by someone else raises the same ``NotFoundError`` as a
    missing one.
    """

    stmt = select(Event).where(Event.id == event_id, Event.user_id == owner_id)
    if for_update:
        stmt = stmt.with_for_update()
    try:
        event = session.execute(stmt).scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise StorageFault() from exc
    if event is None:
        raise NotFoundError(EVENT_NOT_FOUND)
    return event


def update_event(
    session: Session,
    owner_id: int,
    event_id: int,
    *,
    title: str | None,
    start: datetime | None,
    end: datetime | None,
) -> Event:
    """Overwrite the updatable fields of an owned event.

    The row is locked between the read and the write, both of which happen
    in the caller's transaction.
    """

    title, start, end = validate_event_fields(title, start, end)
    event = get_owned_event(session, owner_id, event_id, for_update=True)
    changes = {"title": title, "start": start, "end": end}
    for field in EVENT_UPDATABLE_FIELDS:
        setattr(event, field, changes[field])
    _flush(session)
    return event


def list_events(session: Session, owner_id: int) -> list[Event]:
    stmt = select(Event).where(Event.user_id == owner_id).order_by(Event.id)
    try:
        return list(session.execute(stmt).scalars())
    except SQLAlchemyError as exc:
        raise StorageFault() from exc


def delete_event(session: Session, owner_id: int, event_id: int) -> None:
    event = get_owned_event(session, owner_id, event_id, for_update=True)
    session.delete(event)
    _flush(session)
    logger.debug("Deleted event id=%s for user=%s", event_id, owner_id)


def _flush(session: Session) -> None:
    try:
        session.flush()
    except SQLAlchemyError as exc:
        raise StorageFault() from exc
