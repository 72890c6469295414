"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    storage_bucket: str = "photos"
    jwt_secret: str
    admin_token: str
    retention_hours: int = 48
    visit_threshold: int = 2
    sweep_hour_utc: int = 0
    metadata_expiry_interval_seconds: int = 60
    store_timeout_seconds: int = 10
    store_retry_attempts: int = 3
    store_retry_backoff_seconds: float = 0.5
    jpeg_quality: int = 20
    background_jobs_enabled: bool = True
    cors_allow_origins: str | None = None
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_cors_origins(raw: str | None) -> list[str]:
    """Parse allowed CORS origins from env."""
    if raw is None:
        return ["*"]
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return ["*"]
    origins = [chunk.strip() for chunk in cleaned.split(",") if chunk.strip()]
    return origins or ["*"]
