"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - The upload ceiling is NOT a setting; only the scratch directory is configurable

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - Content store unset by default: uploads stay in scratch storage until one is configured
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dataroom.core.domain_types import UploadPolicy


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://dataroom:dataroom@db:5432/dataroom"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Temporary upload storage
    temp_storage_path: Path = Path("/usr/src/app/temp-uploads")

    # Content-addressed storage (pinning service)
    content_store_api_url: str | None = None
    content_store_jwt: str | None = None
    content_gateway_url: str = "https://gateway.pinata.cloud"
    content_store_max_retries: int = 3
    content_store_base_delay_ms: int = 1000
    content_store_max_delay_ms: int = 60_000
    content_store_timeout_seconds: int = 120

    # Maintenance (reconciliation, promotion retry, scratch GC)
    maintenance_interval_seconds: int = Field(300, ge=0)
    orphan_grace_seconds: int = Field(3600, ge=0)
    promotion_batch_size: int = Field(50, ge=1)

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def content_store_enabled(self) -> bool:
        return bool(self.content_store_api_url and self.content_store_jwt)

    def upload_policy(self) -> UploadPolicy:
        return UploadPolicy(scratch_dir=self.temp_storage_path)


@lru_cache
def get_settings() -> Settings:
    return Settings()
