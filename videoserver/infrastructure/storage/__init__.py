"""
Object storage integration for uploaded videos.

Supports Tencent Cloud COS (and any other S3-compatible store) via boto3.
Includes mock mode for local development without credentials.
"""

from .client import (
    COSStorageClient,
    MockStorageClient,
    StorageClient,
    StorageConfig,
    StorageError,
    create_storage_client,
)

__all__ = [
    "COSStorageClient",
    "MockStorageClient",
    "StorageClient",
    "StorageConfig",
    "StorageError",
    "create_storage_client",
]
