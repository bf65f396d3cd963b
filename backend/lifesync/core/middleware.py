"""Custom ASGI middleware for authentication and request logging."""
from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .errors import AuthError, error_response
from .metrics import record_auth_failure, record_request
from .security import extract_token


class AuthenticatedSessionMiddleware(BaseHTTPMiddleware):
    """Ensure requests hitting API routes carry a valid session token.

    Verified claims are stored on ``request.state.claims``; paths listed in
    ``public_paths`` are let through without a token.
    """

    def __init__(
        self,
        app: Callable,
        api_prefix: str = "/api",
        cookie_name: str = "token",
        public_paths: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self.api_prefix = api_prefix
        self.cookie_name = cookie_name
        self.public_paths = {path.rstrip("/") for path in public_paths}
        self.logger = logging.getLogger("lifesync.auth")

    def _under_prefix(self, path: str) -> bool:
        return path == self.api_prefix or path.startswith(self.api_prefix + "/")

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        path = request.url.path

        if request.method != "OPTIONS" and self._under_prefix(path) and path.rstrip("/") not in self.public_paths:
            token_service = request.app.state.token_service
            try:
                claims = token_service.verify(extract_token(request, self.cookie_name))
            except AuthError as exc:
                self.logger.info("Rejected credential for %s %s: %s", request.method, path, exc.kind.value)
                record_auth_failure(exc.kind.value)
                return error_response(exc)

            request.state.claims = claims
            request.state.user_id = claims.userid

        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log structured request summaries and emit metrics."""

    def __init__(self, app: Callable) -> None:
        super().__init__(app)
        self.logger = logging.getLogger("lifesync.request")

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        method = request.method
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception:
            duration = time.perf_counter() - start
            route_path = _route_path(request)
            record_request(method, route_path, status_code, duration)
            self.logger.exception(
                "HTTP %s %s raised an unhandled exception", method, route_path
            )
            raise
        duration = time.perf_counter() - start
        route_path = _route_path(request)

        user_id = getattr(request.state, "user_id", None)

        self.logger.info(
            "HTTP %s %s status=%s user=%s duration=%.3f",
            method,
            route_path,
            status_code,
            user_id or "anonymous",
            duration,
        )
        record_request(method, route_path, status_code, duration)
        response.headers.setdefault("X-Process-Time", f"{duration:.6f}")
        return response


def _route_path(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)
