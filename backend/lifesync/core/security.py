"""Password digests and session credential helpers."""
from __future__ import annotations

from functools import lru_cache

import bcrypt
from fastapi import Response
from starlette.requests import Request

from .config import Settings
from .errors import AuthError, AuthFailure, ValidationError
from .tokens import TokenClaims

# bcrypt only looks at the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


@lru_cache(maxsize=None)
def dummy_hash(rounds: int) -> bytes:
    """Digest checked when there is no real one, at the same work factor."""

    return bcrypt.hashpw(b"lifesync-dummy-password", bcrypt.gensalt(rounds=rounds))


def hash_password(password: str, rounds: int = 12) -> str:
    """Return a salted bcrypt digest of ``password``."""

    encoded = _encode_password(password)
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str | None, rounds: int = 12) -> bool:
    """Return whether ``password`` matches ``password_hash``.

    A missing digest or an over-long password still costs one bcrypt check
    at ``rounds`` so the caller cannot tell the cases apart by timing.
    """

    encoded = password.encode("utf-8")
    if not password_hash or len(encoded) > MAX_PASSWORD_BYTES:
        bcrypt.checkpw(encoded[:MAX_PASSWORD_BYTES], dummy_hash(rounds))
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        return False


def _encode_password(password: str) -> bytes:
    encoded = password.encode("utf-8")
    if not encoded:
        raise ValidationError("Password is required")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return encoded


def extract_token(request: Request, cookie_name: str) -> str | None:
    """Locate the session credential in the cookie or a bearer header."""

    token = request.cookies.get(cookie_name)
    if token:
        return token
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def require_claims(request: Request) -> TokenClaims:
    """Return the verified claims the auth middleware attached to ``request``."""

    claims = getattr(request.state, "claims", None)
    if not isinstance(claims, TokenClaims):
        raise AuthError(AuthFailure.MISSING)
    return claims


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=settings.TOKEN_TTL_SECONDS,
        path=settings.API_PREFIX,
        domain=settings.SESSION_COOKIE_DOMAIN,
        secure=settings.SESSION_COOKIE_SECURE,
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.SESSION_COOKIE_NAME,
        path=settings.API_PREFIX,
        domain=settings.SESSION_COOKIE_DOMAIN,
        secure=settings.SESSION_COOKIE_SECURE,
        httponly=True,
        samesite="lax",
    )
