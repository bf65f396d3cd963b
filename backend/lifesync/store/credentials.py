"""User records keyed by email with bcrypt password digests."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import AuthError, AuthFailure, NotFoundError, StorageFault, ValidationError
from ..core.security import hash_password, verify_password
from ..models import User

logger = logging.getLogger(__name__)

# Fields a caller may change on their own account.
USER_UPDATABLE_FIELDS = ("email",)

# Matches the width of the users.email column.
EMAIL_MAX_LENGTH = 255


def normalize_email(email: str | None) -> str:
    """Return the canonical form of ``email`` or raise ``ValidationError``."""

    value = (email or "").strip().lower()
    if not value:
        raise ValidationError("Email is required")
    local, sep, domain = value.partition("@")
    if not sep or not local or not domain or any(ch.isspace() for ch in value):
        raise ValidationError("Email is invalid")
    if len(value) > EMAIL_MAX_LENGTH:
        raise ValidationError(f"Email must be at most {EMAIL_MAX_LENGTH} characters")
    return value


def create_user(session: Session, email: str, password: str, *, rounds: int = 12) -> User:
    """Persist a new user; duplicate emails raise ``ValidationError``."""

    user = User(email=normalize_email(email), password_hash=hash_password(password, rounds=rounds))
    session.add(user)
    _flush(session, duplicate_message="Email is already registered")
    logger.info("Registered user id=%s", user.id)
    return user


def authenticate(session: Session, email: str, password: str, *, rounds: int = 12) -> User:
    """Return the user matching the credentials.

    Unknown email and wrong password raise the same ``AuthError``.
    """

    try:
        canonical = normalize_email(email)
    except ValidationError:
        canonical = None
    user = find_by_email(session, canonical) if canonical else None
    matched = verify_password(password, user.password_hash if user else None, rounds=rounds)
    if user is None or not matched:
        raise AuthError(AuthFailure.INVALID_CREDENTIALS)
    return user


def find_by_email(session: Session, email: str) -> User | None:
    stmt = select(User).where(User.email == email)
    try:
        return session.execute(stmt).scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise StorageFault() from exc


def get_user(session: Session, user_id: int, *, for_update: bool = False) -> User:
    """Load a user by id or raise ``NotFoundError``."""

    stmt = select(User).where(User.id == user_id)
    if for_update:
        stmt = stmt.with_for_update()
    try:
        user = session.execute(stmt).scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise StorageFault() from exc
    if user is None:
        raise NotFoundError("User not found")
    return user


def update_user(session: Session, user_id: int, changes: dict[str, object]) -> User:
    """Apply the allow-listed ``changes`` to the user's own row."""

    user = get_user(session, user_id, for_update=True)
    for field in USER_UPDATABLE_FIELDS:
        if field not in changes:
            continue
        value = changes[field]
        if field == "email":
            value = normalize_email(value if isinstance(value, str) else None)
        setattr(user, field, value)
    _flush(session, duplicate_message="Email is already registered")
    return user


def delete_user(session: Session, user_id: int) -> None:
    """Delete the user and, through the cascade, every event they own."""

    user = get_user(session, user_id, for_update=True)
    session.delete(user)
    _flush(session)
    logger.info("Deleted user id=%s", user_id)


def _flush(session: Session, *, duplicate_message: str | None = None) -> None:
    try:
        session.flush()
    except IntegrityError as exc:
        if duplicate_message is None:
            raise StorageFault() from exc
        raise ValidationError(duplicate_message) from exc
    except SQLAlchemyError as exc:
        raise StorageFault() from exc
