"""Seed the development database with a default user and a sample event."""
from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sqlalchemy.orm import Session

from backend.lifesync.core.config import settings
from backend.lifesync.core.db import create_schema, session_scope
from backend.lifesync.models import Event, User
from backend.lifesync.store import credentials, events


def _get_or_create_user(session: Session, email: str, password: str) -> User:
    user = credentials.find_by_email(session, credentials.normalize_email(email))
    if user is None:
        user = credentials.create_user(session, email, password, rounds=settings.BCRYPT_ROUNDS)
    return user


def _ensure_sample_event(session: Session, user: User) -> Event:
    existing = events.list_events(session, user.id)
    if existing:
        return existing[0]
    start = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0) + timedelta(days=1)
    return events.create_event(
        session,
        user.id,
        title="Standup",
        start=start,
        end=start + timedelta(minutes=15),
        color="#3b82f6",
    )


def main() -> None:
    """Entry point for seeding data."""

    create_schema()
    with session_scope() as session:
        user = _get_or_create_user(session, email="dev@example.com", password="devpassword")
        event = _ensure_sample_event(session, user)

        print("Seeded development data:")
        print(f"  User ID: {user.id} ({user.email})")
        print(f"  Event ID: {event.id} ({event.title})")


if __name__ == "__main__":
    main()
