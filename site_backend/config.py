"""
Configuration and settings for the contact site backend.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

STATIC_DIR = Path(__file__).resolve().parent / "static"


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)
    log_level: str = Field(default="INFO")

    # Static pages
    public_dir: str = Field(default=str(STATIC_DIR))
    admin_page: str = Field(default=str(STATIC_DIR / "admin.html"))

    # Database (SQLite file by default; any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default="sqlite+pysqlite:///./contact_form.db")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # WhatsApp relay
    whatsapp_enabled: bool = Field(default=True)
    whatsapp_gateway_url: Optional[str] = Field(default=None)
    whatsapp_api_key: Optional[str] = Field(default=None)
    whatsapp_session_name: str = Field(default="default")
    whatsapp_webhook_url: Optional[str] = Field(default=None)
    whatsapp_auth_dir: str = Field(default=".wa_auth")
    whatsapp_retry_delay_seconds: float = Field(default=10.0, gt=0)
    whatsapp_request_timeout_seconds: float = Field(default=10.0, gt=0)
    # Gateway status and pairing-code polling; 0 disables it.
    whatsapp_poll_interval_seconds: float = Field(default=5.0, ge=0)

    # Notification addressing
    admin_phone: Optional[str] = Field(default=None)
    country_code: str = Field(default="972")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
