"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests with app.dependency_overrides
- Configuration is centralized

The metadata store and the storage client are process-wide. Both are built
once by create_app and live on app.state; the service wrapping them is
cheap and built per request.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request

from ..config.settings import Settings
from ..core.videos.service import VideoService
from ..core.videos.store import VideoStore
from ..core.videos.validation import UploadPolicy
from ..infrastructure.storage.client import StorageClient, StorageConfig, create_storage_client


def storage_config_from_settings(settings: Settings) -> StorageConfig:
    return StorageConfig(
        access_key_id=settings.cos_secret_id,
        secret_access_key=settings.cos_secret_key,
        bucket_name=settings.cos_bucket_name,
        region=settings.cos_region,
        endpoint_url=settings.cos_endpoint,
        public_base_url=settings.cos_public_base,
        key_prefix=settings.cos_key_prefix,
        connect_timeout=settings.cos_connect_timeout,
        read_timeout=settings.cos_read_timeout,
    )


# ---------------------------------------------------------------------------
# Shared State
# ---------------------------------------------------------------------------

def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    return request.app.state.settings


def get_video_store(request: Request) -> VideoStore:
    """The process-wide metadata store."""
    return request.app.state.video_store


def build_storage_client(settings: Settings) -> Optional[StorageClient]:
    """
    Create the storage client for the app's lifetime.

    Returns either the COS client or the mock client based on settings,
    or None when credentials are missing. The service reports a missing
    backend only once a request actually needs it, so validation errors
    and lookups are answered first.
    """
    if not settings.storage_mock_mode and settings.validate_required_fields():
        return None

    return create_storage_client(
        config=storage_config_from_settings(settings),
        mock_mode=settings.storage_mock_mode,
    )


def get_storage_client(request: Request) -> Optional[StorageClient]:
    """The process-wide storage client, or None when unconfigured."""
    return request.app.state.storage_client


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_video_service(
    settings: Annotated[Settings, Depends(get_app_settings)],
    store: Annotated[VideoStore, Depends(get_video_store)],
    storage: Annotated[Optional[StorageClient], Depends(get_storage_client)],
) -> VideoService:
    """Provide a VideoService bound to the shared store and storage."""
    return VideoService(
        store=store,
        storage=storage,
        policy=UploadPolicy.from_settings(settings),
        allow_unicode_filenames=settings.allow_unicode_filenames,
        strict_backend_delete=settings.strict_backend_delete,
    )


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
VideoServiceDep = Annotated[VideoService, Depends(get_video_service)]
