"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (placeholders only for local dev)
    - get_settings() is cached (lru_cache) — single instance per process
    - settlement_policy is a closed set: "reserved" | "optimistic"

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - CROWDCHAIN_ prefix: avoids collisions with platform-provided variables,
      except DATABASE_URL which hosting platforms inject unprefixed
    - Money defaults as Decimal strings: no float rounding in starting balances
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="CROWDCHAIN_", case_sensitive=False,
    )

    # Database
    database_url: str = Field(
        "postgresql+asyncpg://crowdchain:crowdchain@db:5432/crowdchain",
        validation_alias=AliasChoices("CROWDCHAIN_DATABASE_URL", "DATABASE_URL"),
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Auth
    token_secret: str = "crowdchain-dev-secret"
    session_ttl_days: int = 7

    # Investments
    settlement_delay_seconds: float = 2.0
    settlement_policy: Literal["reserved", "optimistic"] = "reserved"

    # New accounts
    starting_balance: Decimal = Decimal("1000.00")
    starting_reward_points: int = 100

    # Seeded admin
    admin_username: str = "admin"
    admin_email: str = "admin@crowdchain.local"
    admin_password: str = "change-me-admin"

    # Notifications
    subscriber_queue_size: int = 100

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
