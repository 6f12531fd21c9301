"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Secrets (Stripe keys, database credentials) only ever come from the environment
    - get_settings() is cached: one Settings instance per process
    - database_url always names an async driver
    - stripe_currency is a lowercase ISO 4217 code; client_url has no trailing slash

Design Decisions:
    - pydantic-settings over raw os.environ: typed, validated, .env support for local runs
    - Every non-secret has a default so docker-compose works without an .env file
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # ─── Database ────────────────────────────────────────────────
    database_url: str = "postgresql+asyncpg://bookporter:bookporter@db:5432/bookporter"
    database_pool_size: int = Field(20, ge=1)
    database_max_overflow: int = Field(10, ge=0)

    # ─── Stripe ──────────────────────────────────────────────────
    stripe_secret_key: str = "sk_test_placeholder"
    stripe_webhook_secret: str = "whsec_placeholder"
    stripe_currency: str = "usd"
    # Replay window for signed webhook timestamps
    stripe_webhook_tolerance_seconds: int = Field(300, ge=1)

    # ─── Client / HTTP ───────────────────────────────────────────
    # Base for Checkout success/cancel redirects
    client_url: str = "http://localhost:5173"
    cors_origins: list[str] = ["http://localhost:5173"]

    # ─── Observability ───────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("database_url", mode="before")
    @classmethod
    def use_async_driver(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// URLs; the engine needs asyncpg."""
        if isinstance(v, str):
            for prefix in ("postgres://", "postgresql://"):
                if v.startswith(prefix):
                    return "postgresql+asyncpg://" + v[len(prefix):]
        return v

    @field_validator("stripe_currency")
    @classmethod
    def currency_code(cls, v: str) -> str:
        v = v.strip().lower()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("stripe_currency must be a 3-letter ISO 4217 code")
        return v

    @field_validator("client_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_format")
    @classmethod
    def known_format(cls, v: str) -> str:
        if v not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
