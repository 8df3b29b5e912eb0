"""
Configuration and settings for the pupi map backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.constants import MAX_UPLOAD_BYTES

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Database: Postgres URL, SQLite URL/path or a JSON file.
    # Unset means a SQLite file under data/.
    database_url: Optional[str] = Field(default=None, env="DATABASE_URL")
    default_sqlite_path: str = Field(
        default="data/pupi.db", env="DEFAULT_SQLITE_PATH"
    )

    # Admin shared secret, compared against the x-admin-password header.
    admin_password: Optional[str] = Field(default=None, env="ADMIN_PASSWORD")

    # S3-compatible object storage for uploaded images
    storage_bucket: Optional[str] = Field(default=None, env="STORAGE_BUCKET")
    storage_region: Optional[str] = Field(default=None, env="STORAGE_REGION")
    storage_endpoint: Optional[str] = Field(default=None, env="STORAGE_ENDPOINT")
    storage_public_base_url: Optional[str] = Field(
        default=None, env="STORAGE_PUBLIC_BASE_URL"
    )
    aws_access_key_id: Optional[str] = Field(
        default=None, env="AWS_ACCESS_KEY_ID"
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None, env="AWS_SECRET_ACCESS_KEY"
    )
    max_upload_bytes: int = Field(default=MAX_UPLOAD_BYTES, env="MAX_UPLOAD_BYTES")

    # LLM / Gemini
    gemini_api_key: Optional[str] = Field(default=None, env="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-3-flash-preview", env="GEMINI_MODEL")

    # Google sign-in. Without a client id, user login is disabled.
    google_client_id: Optional[str] = Field(default=None, env="GOOGLE_CLIENT_ID")

    # Geocoding (OpenStreetMap Nominatim)
    geocoder_url: str = Field(default=NOMINATIM_SEARCH_URL, env="GEOCODER_URL")
    geocoder_user_agent: str = Field(
        default="PupoMap-Admin/1.0", env="GEOCODER_USER_AGENT"
    )

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "PUPI_USE_IN_MEMORY_BACKENDS", "use_in_memory_backends"
        ),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
