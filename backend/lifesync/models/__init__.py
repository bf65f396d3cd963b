"""SQLAlchemy declarative base for the application models."""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Model modules import ``Base`` from here, so they are registered last.
from .events import Event  # noqa: F401  (re-export for convenience)
from .users import User  # noqa: F401


__all__ = [
    "Base",
    "Event",
    "User",
]
