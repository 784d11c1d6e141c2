"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    face_api_endpoint: str
    face_api_key: str
    face_api_timeout_seconds: float = 15.0
    image_bucket: str = "verification-images"
    profiles_table: str = "users"
    trips_table: str = "trips"
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_timeout_seconds: float = 15.0
    mail_from: str = "Travel Buddy App <noreply@travelbuddy.com>"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def face_api_base_url(self) -> str:
        """Face API endpoint without a trailing slash."""
        return self.face_api_endpoint.rstrip("/")
