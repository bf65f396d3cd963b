"""Account endpoints: registration, login and self-service profile changes."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.db import get_session
from ..core.security import clear_session_cookie, require_claims, set_session_cookie
from ..store import credentials

router = APIRouter()

logger = logging.getLogger(__name__)


class CredentialsRequest(BaseModel):
    """Email and cleartext password sent by register and login."""

    email: str
    password: str


class UserUpdateRequest(BaseModel):
    """Profile update payload; unknown fields are accepted and dropped."""

    model_config = ConfigDict(extra="allow")

    email: str | None = None


class UserProfile(BaseModel):
    id: int
    email: str


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _issue_session(request: Request, response: JSONResponse, user_id: int, email: str) -> None:
    token = request.app.state.token_service.issue(user_id, email)
    set_session_cookie(response, token, _settings(request))


@router.post("/register", summary="Create an account and start a session")
def register(
    payload: CredentialsRequest,
    request: Request,
    session: Session = Depends(get_session),
) -> JSONResponse:
    """Store a new user with a bcrypt digest of the password."""

    user = credentials.create_user(
        session, payload.email, payload.password, rounds=_settings(request).BCRYPT_ROUNDS
    )
    response = JSONResponse({"message": "user registered successfully", "id": user.id})
    _issue_session(request, response, user.id, user.email)
    return response


@router.post("/login", summary="Authenticate with email and password")
def login(
    payload: CredentialsRequest,
    request: Request,
    session: Session = Depends(get_session),
) -> JSONResponse:
    user = credentials.authenticate(
        session, payload.email, payload.password, rounds=_settings(request).BCRYPT_ROUNDS
    )
    response = JSONResponse({"id": user.id})
    _issue_session(request, response, user.id, user.email)
    logger.info("User id=%s logged in", user.id)
    return response


@router.post("/logout", summary="Terminate the current session")
async def logout(request: Request) -> JSONResponse:
    """Clear the session cookie."""

    response = JSONResponse({"message": "Logged out"})
    clear_session_cookie(response, _settings(request))
    return response


@router.get("/me", response_model=UserProfile, summary="Current user profile")
def read_current_user(request: Request, session: Session = Depends(get_session)) -> UserProfile:
    claims = require_claims(request)
    user = credentials.get_user(session, claims.userid)
    return UserProfile(id=user.id, email=user.email)


@router.put("", summary="Update the caller's email")
def update_user(
    payload: UserUpdateRequest,
    request: Request,
    session: Session = Depends(get_session),
) -> dict[str, Any]:
    """Change the caller's own account.

    Only fields in ``USER_UPDATABLE_FIELDS`` are persisted; an ``id`` or any
    other field in the body is ignored.
    """

    claims = require_claims(request)
    changes = payload.model_dump(include=set(credentials.USER_UPDATABLE_FIELDS))
    user = credentials.update_user(session, claims.userid, changes)
    return {"email": user.email}


@router.delete("", summary="Delete the caller's account")
def delete_user(request: Request, session: Session = Depends(get_session)) -> JSONResponse:
    """Remove the caller's account together with all of their events."""

    claims = require_claims(request)
    credentials.delete_user(session, claims.userid)
    response = JSONResponse({"message": "Deleted successfully"})
    clear_session_cookie(response, _settings(request))
    return response
