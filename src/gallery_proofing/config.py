"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    storage_bucket: str = "gallery-photos"
    public_base_url: str = "http://localhost:8000"
    public_links_enabled: bool = True
    photo_page_size: int = 48
    photo_page_size_min: int = 12
    photo_page_size_max: int = 100
    bulk_download_limit: int = 500
    session_idle_days: int = 30
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_caller_role(raw: str | None) -> bool:
    """Return true when a forwarded caller role header denotes studio staff."""
    if raw is None:
        return False
    return raw.strip().lower() in {"staff", "admin", "photographer"}
