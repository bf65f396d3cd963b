"""Error taxonomy and the JSON handlers that render it."""
from __future__ import annotations

import enum
import logging

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.requests import Request
from starlette.responses import JSONResponse

from .metrics import record_auth_failure

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "Not authenticated"
INVALID_CREDENTIALS = "invalid credentials"


class LifeSyncError(Exception):
    """Base class for failures that terminate a request with a JSON error."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        if message is not None:
            self.public_message = message


class ValidationError(LifeSyncError):
    """Malformed, missing or inconsistent input."""

    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Invalid request"


class AuthFailure(str, enum.Enum):
    MISSING = "missing"
    MALFORMED = "malformed"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    INVALID_CREDENTIALS = "invalid_credentials"


class AuthError(LifeSyncError):
    """Authentication failed.

    ``kind`` tells the checks apart for logs and tests; the message sent to
    the client is the same for every token failure so callers cannot tell
    which check rejected them.
    """

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, kind: AuthFailure) -> None:
        message = INVALID_CREDENTIALS if kind is AuthFailure.INVALID_CREDENTIALS else NOT_AUTHENTICATED
        super().__init__(message)
        self.kind = kind

    def __str__(self) -> str:
        return f"{self.public_message} ({self.kind.value})"


class NotFoundError(LifeSyncError):
    """Target row is absent or belongs to another user."""

    status_code = status.HTTP_404_NOT_FOUND
    public_message = "Not found"


class StorageFault(LifeSyncError):
    """Unexpected persistence failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "Internal server error"


def error_response(exc: LifeSyncError) -> JSONResponse:
    return JSONResponse({"error": exc.public_message}, status_code=exc.status_code)


async def lifesync_error_handler(request: Request, exc: LifeSyncError) -> JSONResponse:
    if isinstance(exc, StorageFault):
        logger.error("Storage fault on %s %s: %s", request.method, request.url.path, exc.__cause__ or exc)
    elif isinstance(exc, AuthError):
        logger.info("Authentication failed on %s: %s", request.url.path, exc.kind.value)
        record_auth_failure(exc.kind.value)
    return error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Collapse FastAPI's 422 payload into the single-message 400 body."""

    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = first.get("msg", message)
        message = f"{location}: {detail}" if location else detail
    return JSONResponse({"error": message}, status_code=status.HTTP_400_BAD_REQUEST)


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Unhandled database error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(StorageFault())


def register_error_handlers(app: FastAPI) -> None:
    """Attach the JSON error handlers to ``app``."""

    app.add_exception_handler(LifeSyncError, lifesync_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)  # type: ignore[arg-type]
