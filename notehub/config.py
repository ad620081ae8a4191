"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (dev defaults only for local runs)
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://notehub:notehub@db:5432/notehub"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Identity provider
    jwt_secret: str = "notehub-dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    token_ttl_days: int = 7
    password_hash_rounds: int = 12

    # Blob store
    upload_dir: str = "uploads"
    max_reference_files: int = 5

    # Lifecycle
    min_deadline_lead_minutes: int = 60
    # False keeps the permissive ordering (any non-terminal source);
    # True requires the immediate forward predecessor.
    strict_transitions: bool = False

    # Notification fan-out
    event_queue_size: int = 100

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
