"""FastAPI application entry point for the LifeSync API."""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import routes_admin, routes_events, routes_users
from .core.config import DEFAULT_TOKEN_SECRET, Settings, settings as default_settings
from .core.errors import register_error_handlers
from .core.middleware import AuthenticatedSessionMiddleware, RequestLoggingMiddleware
from .core.tokens import TokenService

logger = logging.getLogger(__name__)

PUBLIC_API_PATHS = ("/users/register", "/users/login", "/users/logout")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``settings`` defaults to the environment-derived configuration; the
    token signing secret is read from it once here and never changes for
    the lifetime of the app.
    """
    settings = settings or default_settings
    app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION)

    if settings.TOKEN_SECRET == DEFAULT_TOKEN_SECRET:
        logger.warning("TOKEN_SECRET is the built-in default; set it before serving real traffic")

    app.state.settings = settings
    app.state.token_service = TokenService.from_settings(settings)
    register_error_handlers(app)

    api_prefix = settings.API_PREFIX.rstrip("/")
    app.add_middleware(
        AuthenticatedSessionMiddleware,
        api_prefix=api_prefix,
        cookie_name=settings.SESSION_COOKIE_NAME,
        public_paths=[f"{api_prefix}{path}" for path in PUBLIC_API_PATHS],
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL.rstrip("/")],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Authorization"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(routes_admin.router, prefix="/admin", tags=["admin"])
    app.include_router(routes_users.router, prefix=f"{api_prefix}/users", tags=["users"])
    app.include_router(routes_events.router, prefix=f"{api_prefix}/calendar", tags=["calendar"])

    return app


app = create_app()
