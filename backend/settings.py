"""Application settings via Pydantic Settings."""

from functools import lru_cache
import json
from typing import Annotated
from urllib.parse import urlparse

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

UPSTASH_REDIS_PORT = 6379


def _asyncpg_connect_args(is_production: bool) -> dict[str, object]:
    """
    Compute asyncpg connect_args for the current environment.

    Hosted Postgres (Supabase) requires TLS in production but ships a
    certificate chain we don't pin, so SSL is required without verification.
    """
    if is_production:
        return {"ssl": "require"}
    return {}


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    app_name: str = "Boilerplate API"
    app_version: str = "1.0.0"
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("NODE_ENV", "APP_ENV", "ENVIRONMENT"),
    )
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 5000

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    # Database (PostgreSQL). POSTGRES_URL wins over DATABASE_URL when both are set.
    database_url: str = Field(
        default="",
        validation_alias=AliasChoices("POSTGRES_URL", "DATABASE_URL"),
    )

    @property
    def postgres_configured(self) -> bool:
        return bool(self.database_url.strip())

    @property
    def async_database_url(self) -> str:
        """Get database URL with asyncpg driver.

        Supabase hands out postgres:// or postgresql:// URLs; async SQLAlchemy
        needs postgresql+asyncpg://.
        """
        url = self.database_url
        for prefix in ("postgresql://", "postgres://"):
            if url.startswith(prefix):
                return url.replace(prefix, "postgresql+asyncpg://", 1)
        return url

    @property
    def asyncpg_connect_args(self) -> dict[str, object]:
        """Extra connect args for asyncpg (TLS in production)."""
        if not self.async_database_url.startswith("postgresql+asyncpg://"):
            return {}
        return _asyncpg_connect_args(self.is_production)

    # Document store. Recognised for environment checks only; no handler uses it.
    mongodb_uri: str = ""

    # Fallback cache (plain Redis)
    redis_url: str = ""

    @property
    def redis_configured(self) -> bool:
        return bool(self.redis_url.strip())

    # Primary cache (Upstash)
    upstash_redis_rest_url: str = ""
    upstash_redis_rest_token: str = ""

    @property
    def upstash_configured(self) -> bool:
        return bool(self.upstash_redis_rest_url.strip() and self.upstash_redis_rest_token.strip())

    @property
    def upstash_redis_url(self) -> str:
        """Redis-protocol URL for the Upstash database.

        Upstash publishes an https:// REST endpoint; the same host accepts the
        Redis protocol over TLS on 6379 with the REST token as password.
        """
        raw = self.upstash_redis_rest_url.strip()
        parsed = urlparse(raw if "://" in raw else f"https://{raw}")
        if parsed.scheme in ("redis", "rediss"):
            return raw
        host = parsed.hostname or ""
        port = parsed.port or UPSTASH_REDIS_PORT
        return f"rediss://default@{host}:{port}"

    # CORS
    # NoDecode: the validator below parses JSON or comma-separated values itself.
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        validation_alias=AliasChoices("CORS_ORIGINS", "FRONTEND_URL"),
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v: object) -> list[str]:
        """
        Accept either:
        - JSON array string: '["https://a.com","http://localhost:3000"]'
        - Comma-separated string: "https://a.com,http://localhost:3000"
        - Already-parsed list[str]
        """
        if v is None:
            return []
        if isinstance(v, list):
            return [str(x).strip() for x in v if str(x).strip()]
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("["):
                try:
                    parsed = json.loads(s)
                except json.JSONDecodeError:
                    # Fall back to comma split if env var isn't valid JSON.
                    parsed = s.split(",")
                if isinstance(parsed, list):
                    return [str(x).strip() for x in parsed if str(x).strip()]
                return [str(parsed).strip()]
            return [part.strip() for part in s.split(",") if part.strip()]
        return [str(v).strip()] if str(v).strip() else []


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
