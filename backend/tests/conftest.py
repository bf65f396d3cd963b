from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.lifesync.core import db as db_module
from backend.lifesync.core.config import Settings
from backend.lifesync.core.tokens import TokenService
from backend.lifesync.main import create_app
from backend.lifesync.models import Base

TEST_SECRET = "test-signing-secret"


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        TOKEN_SECRET=TEST_SECRET,
        TOKEN_TTL_SECONDS=3600,
        BCRYPT_ROUNDS=4,
        SESSION_COOKIE_SECURE=False,
    )


@pytest.fixture()
def token_service(test_settings: Settings) -> TokenService:
    return TokenService.from_settings(test_settings)


@pytest.fixture()
def engine() -> Iterator:
    engine = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, class_=Session)


@pytest.fixture()
def db_session(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def _session_ctx(factory: sessionmaker):
    def _get_session() -> Iterator[Session]:
        session = factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return _get_session


@pytest.fixture()
def fastapi_app(session_factory: sessionmaker, test_settings: Settings) -> FastAPI:
    app = create_app(test_settings)
    app.dependency_overrides[db_module.get_session] = _session_ctx(session_factory)
    return app


@pytest.fixture()
def client_factory(fastapi_app: FastAPI) -> Callable[[], TestClient]:
    """Build independent clients so each one keeps its own session cookie."""

    def _make() -> TestClient:
        return TestClient(fastapi_app)

    return _make


@pytest.fixture()
def app(client_factory: Callable[[], TestClient]) -> TestClient:
    return client_factory()


def register(client: TestClient, email: str, password: str = "secret") -> int:
    response = client.post("/api/users/register", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["id"]


@pytest.fixture()
def register_user() -> Callable[..., int]:
    return register
