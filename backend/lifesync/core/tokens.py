"""Signed session tokens carrying the caller's identity."""
from __future__ import annotations

import time
from typing import Any, Callable

from itsdangerous import BadPayload, BadSignature, SignatureExpired, URLSafeTimedSerializer
from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr
from pydantic import ValidationError as PydanticValidationError

from .config import Settings
from .errors import AuthError, AuthFailure


class TokenClaims(BaseModel):
    """Identity carried by a session token."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    userid: StrictInt
    email: StrictStr
    exp: StrictInt


class TokenService:
    """Issue and verify HMAC-signed, time-limited session tokens.

    The secret and lifetime are fixed at construction; one instance is
    shared by every request of an application.
    """

    def __init__(
        self,
        secret_key: str,
        ttl_seconds: int,
        *,
        salt: str = "lifesync.session",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._serializer = URLSafeTimedSerializer(secret_key, salt=salt)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(settings.TOKEN_SECRET, settings.TOKEN_TTL_SECONDS, salt=settings.TOKEN_SALT)

    def issue(self, user_id: int, email: str) -> str:
        """Return a token for ``user_id`` valid for ``ttl_seconds``."""

        claims = TokenClaims(userid=user_id, email=email, exp=int(self._clock()) + self.ttl_seconds)
        return self._serializer.dumps(claims.model_dump())

    def verify(self, token: str | None) -> TokenClaims:
        """Check signature and expiry of ``token`` and return its claims.

        Raises ``AuthError`` whose ``kind`` names the failed check.
        """

        if not token:
            raise AuthError(AuthFailure.MISSING)
        # payload.timestamp.signature, with a leading dot when compressed
        if token.count(".") < 2:
            raise AuthError(AuthFailure.MALFORMED)

        try:
            raw = self._serializer.loads(token, max_age=self.ttl_seconds)
        except SignatureExpired as exc:
            raise AuthError(AuthFailure.EXPIRED) from exc
        except BadPayload as exc:
            raise AuthError(AuthFailure.MALFORMED) from exc
        except BadSignature as exc:
            raise AuthError(AuthFailure.INVALID_SIGNATURE) from exc

        claims = _parse_claims(raw)
        if claims.exp <= int(self._clock()):
            raise AuthError(AuthFailure.EXPIRED)
        return claims


def _parse_claims(raw: Any) -> TokenClaims:
    if not isinstance(raw, dict):
        raise AuthError(AuthFailure.MALFORMED)
    try:
        return TokenClaims.model_validate(raw)
    except PydanticValidationError as exc:
        raise AuthError(AuthFailure.MALFORMED) from exc
