"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from backend.config import get_settings
from backend.db import DbClient, InMemoryDbClient, create_db_client
from backend.geocoding import Geocoder, NominatimGeocoder
from backend.storage import InMemoryStorageClient, S3StorageClient, StorageClient

_db_client: DbClient | None = None
_storage_client: StorageClient | None = None
_geocoder: Geocoder | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so connections are reused across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _db_client = InMemoryDbClient()
    else:
        _db_client = create_db_client(
            settings.database_url, settings.default_sqlite_path
        )
    return _db_client


def get_storage_client() -> Optional[StorageClient]:
    """
    Return the object storage client, or None when no bucket is configured.
    """
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _storage_client = InMemoryStorageClient()
    elif settings.storage_bucket:
        _storage_client = S3StorageClient(
            bucket=settings.storage_bucket,
            region=settings.storage_region or "",
            endpoint=settings.storage_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            public_base_url=settings.storage_public_base_url,
        )
    return _storage_client


def get_geocoder() -> Geocoder:
    global _geocoder
    if _geocoder:
        return _geocoder

    settings = get_settings()
    _geocoder = NominatimGeocoder(
        url=settings.geocoder_url, user_agent=settings.geocoder_user_agent
    )
    return _geocoder
