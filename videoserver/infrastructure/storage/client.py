"""
Object storage client for uploaded videos.

Supports Tencent Cloud COS through its S3-compatible API, with mock mode
for local development. Using the S3 API (boto3) instead of the COS SDK
because:
- One client library for COS, S3, R2 or MinIO
- Only the endpoint and addressing style differ between providers

Objects are public-read; playback URLs are built from the bucket's public
domain rather than signed.

Mock mode stores objects in memory, enabling API testing without
provisioning a bucket.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ...core.videos.exceptions import StorageError

logger = logging.getLogger(__name__)


def _describe_error(error: Exception) -> str:
    """
    Short description of a botocore failure.

    Only the provider's error code and message are kept; request
    parameters and credentials never end up in the text.
    """
    if isinstance(error, ClientError):
        details = error.response.get("Error", {})
        code = details.get("Code", "Unknown")
        message = details.get("Message", "")
        return f"{code}: {message}" if message else code
    return type(error).__name__ if not str(error) else str(error)


@dataclass
class StorageConfig:
    """
    Configuration for COS/S3-compatible storage.

    Using a dataclass instead of raw parameters means:
    - Configuration is explicit and documented
    - Simple to create test configurations
    """
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    region: str
    endpoint_url: str
    public_base_url: str
    key_prefix: str = "videos/"
    connect_timeout: Optional[float] = None
    read_timeout: Optional[float] = None

    def object_key(self, filename: str) -> str:
        return f"{self.key_prefix}{filename}"

    def public_url(self, filename: str) -> str:
        return f"{self.public_base_url.rstrip('/')}/{self.object_key(filename)}"


class StorageClient(Protocol):
    """
    Protocol for object storage operations.

    Using a protocol means tests can provide fakes and we can swap
    storage backends without changing the intake pipeline.
    """

    async def put_object(
        self,
        filename: str,
        data: bytes,
        content_type: str,
    ) -> str:
        """Store bytes under filename and return the public URL."""
        ...

    async def delete_object(self, filename: str) -> None:
        """Delete the object stored under filename."""
        ...

    async def check_bucket(self) -> None:
        """Raise StorageError if the bucket can't be reached."""
        ...


class COSStorageClient:
    """
    Tencent Cloud COS client over the S3 API.

    boto3 is synchronous, so every call runs in a worker thread via
    asyncio.to_thread. The event loop keeps serving other requests while
    an upload is in flight.

    Retries are disabled: a failed write is reported to the caller, who
    decides whether to upload again.
    """

    def __init__(self, config: StorageConfig) -> None:
        self._config = config

        boto_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "virtual"},
            retries={"max_attempts": 1, "mode": "standard"},
            connect_timeout=config.connect_timeout or 60,
            read_timeout=config.read_timeout or 60,
        )

        self._s3_client = boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized COS storage client",
            extra={
                "bucket": config.bucket_name,
                "region": config.region,
                "endpoint": config.endpoint_url,
            }
        )

    async def put_object(
        self,
        filename: str,
        data: bytes,
        content_type: str,
    ) -> str:
        """
        Upload a video to COS.

        Path structure: {prefix}{filename}
        The call either writes the whole object or raises; there is no
        partial state visible to the caller.
        """
        key = self._config.object_key(filename)

        try:
            await asyncio.to_thread(
                self._s3_client.put_object,
                Bucket=self._config.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
                ContentLength=len(data),
            )
        except (BotoCoreError, ClientError) as e:
            reason = _describe_error(e)
            logger.error(
                "Failed to upload video",
                extra={"key": key, "error": reason}
            )
            raise StorageError(f"Upload failed: {reason}") from e

        logger.info(
            "Uploaded video",
            extra={"key": key, "size_bytes": len(data)}
        )

        return self._config.public_url(filename)

    async def delete_object(self, filename: str) -> None:
        """Delete a video from COS."""
        key = self._config.object_key(filename)

        try:
            await asyncio.to_thread(
                self._s3_client.delete_object,
                Bucket=self._config.bucket_name,
                Key=key,
            )
        except (BotoCoreError, ClientError) as e:
            reason = _describe_error(e)
            logger.error(
                "Failed to delete video",
                extra={"key": key, "error": reason}
            )
            raise StorageError(f"Delete failed: {reason}") from e

        logger.info("Deleted video", extra={"key": key})

    async def check_bucket(self) -> None:
        try:
            await asyncio.to_thread(
                self._s3_client.head_bucket,
                Bucket=self._config.bucket_name,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Bucket check failed: {_describe_error(e)}") from e


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development.

    Objects are kept in a dictionary and URLs are mock URIs. Not suitable
    for production, but enough to exercise the whole API.
    """

    def __init__(self, key_prefix: str = "videos/") -> None:
        self._key_prefix = key_prefix
        self._objects: dict[str, bytes] = {}
        logger.info("Initialized mock storage client (in-memory)")

    def _key(self, filename: str) -> str:
        return f"{self._key_prefix}{filename}"

    async def put_object(
        self,
        filename: str,
        data: bytes,
        content_type: str,
    ) -> str:
        key = self._key(filename)
        self._objects[key] = data

        logger.debug(
            "Stored video in mock storage",
            extra={"key": key, "size_bytes": len(data)}
        )

        return f"mock://storage/{key}"

    async def delete_object(self, filename: str) -> None:
        # S3 semantics: deleting a missing key succeeds
        self._objects.pop(self._key(filename), None)

    async def check_bucket(self) -> None:
        return None


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return mock client for testing

    Returns:
        StorageClient implementation (COS or Mock)
    """
    if mock_mode:
        prefix = config.key_prefix if config is not None else "videos/"
        return MockStorageClient(key_prefix=prefix)

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return COSStorageClient(config)
