"""
Configuration and settings for the portfolio site.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    app_name: str = Field(default="Portfolio")
    api_prefix: str = Field(default="/api")
    site_url: str = Field(default="http://localhost:8000")

    # Hosted backend (Supabase-compatible auth REST API + Postgres)
    supabase_url: Optional[str] = Field(default=None)
    supabase_anon_key: Optional[str] = Field(default=None)
    supabase_service_role_key: Optional[str] = Field(default=None)
    database_url: Optional[str] = Field(default=None)
    backend_timeout_seconds: float = Field(default=10.0)

    # LLM / Gemini
    gemini_api_key: Optional[str] = Field(default=None)
    gemini_model: str = Field(default="gemini-1.5-pro")

    # Browser session cookie
    session_secret: str = Field(default="change-me-in-production")
    session_max_age_seconds: int = Field(default=14 * 24 * 3600)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)
    seed_demo_data: bool = Field(default=True)

    # Comma-separated; accounts signing up with these emails become admins.
    admin_emails: str = Field(default="")

    # Connectivity re-check on startup
    health_check_attempts: int = Field(default=3, ge=1)
    health_check_interval_seconds: float = Field(default=2.0, ge=0)

    @property
    def admin_email_set(self) -> set[str]:
        return {
            email.strip().lower()
            for email in self.admin_emails.split(",")
            if email.strip()
        }

    @property
    def password_reset_redirect(self) -> str:
        return self.site_url.rstrip("/") + "/forgot-password"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
