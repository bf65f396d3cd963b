"""Database utilities for SQLAlchemy and Alembic."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from .config import settings


def _create_engine() -> Engine:
    """Create the SQLAlchemy engine using application settings."""

    return create_engine(settings.DATABASE_URL, pool_pre_ping=True, future=True)


ENGINE: Engine = _create_engine()
SessionLocal = sessionmaker[
    Session
](bind=ENGINE, autoflush=False, autocommit=False, expire_on_commit=False)


def create_schema(engine: Engine | None = None) -> None:
    """Create missing tables without Alembic, for local development."""

    from ..models import Base

    Base.metadata.create_all(engine or ENGINE)


def get_session() -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations.

    Each request runs inside exactly one transaction: it commits when the
    handler returns and rolls back when it raises.
    """

    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """``get_session`` as a context manager for scripts."""

    yield from get_session()
