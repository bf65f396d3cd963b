"""Application configuration powered by Pydantic settings."""
from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings


# Placeholder signing secret; deployments must override TOKEN_SECRET.
DEFAULT_TOKEN_SECRET = "change-me"


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    PROJECT_NAME: str = Field(default="LifeSync API")
    VERSION: str = Field(default="0.1.0")
    PORT: int = Field(default=8080)

    DATABASE_URL: str = Field(default="postgresql+psycopg://postgres:postgres@db:5432/lifesync")

    FRONTEND_URL: str = Field(default="http://localhost:5173")
    API_PREFIX: str = Field(default="/api")

    TOKEN_SECRET: str = Field(default=DEFAULT_TOKEN_SECRET)
    TOKEN_SALT: str = Field(default="lifesync.session")
    # Lifetime of both the signed claims and the cookie carrying them.
    TOKEN_TTL_SECONDS: int = Field(default=72 * 60 * 60, gt=0)

    SESSION_COOKIE_NAME: str = Field(default="token")
    SESSION_COOKIE_DOMAIN: str | None = Field(default=None)
    SESSION_COOKIE_SECURE: bool = Field(default=False)

    BCRYPT_ROUNDS: int = Field(default=12, ge=4, le=31)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> Settings:
    """Return cached settings instance to avoid repeated parsing."""

    if overrides:
        return Settings(**overrides)
    return Settings()


settings = get_settings()
