"""
Video intake pipeline.

This module holds the only real decision logic in the service:
1. Validate an upload before any network call
2. Derive a collision-free storage key
3. Hand the bytes to object storage
4. Commit metadata only after the write succeeded

Deletion runs the other way: look the record up, delete the object
(best-effort), then drop the record. A failed storage delete does not
keep the record around unless strict deletes are configured; a clean
index is preferred over a record pointing at an object that may or may
not still exist.
"""

import asyncio
import logging
from typing import Optional, Protocol

from .exceptions import (
    BackendOperationError,
    BackendUnavailableError,
    ProtectedVideoError,
    StorageError,
    UploadValidationError,
    VideoNotFoundError,
)
from .models import VideoRecord, format_from_content_type
from .naming import generate_storage_key, strip_extension
from .store import VideoStore
from .validation import UploadPolicy, validate_upload

logger = logging.getLogger(__name__)


class VideoStorage(Protocol):
    """
    What the pipeline needs from object storage.

    The service doesn't know whether it's talking to COS, S3 or an
    in-memory fake. It just needs somewhere to put and delete bytes.
    """

    async def put_object(self, filename: str, data: bytes, content_type: str) -> str:
        """Store bytes and return the playable URL."""
        ...

    async def delete_object(self, filename: str) -> None:
        ...


class VideoService:
    """
    Orchestrates uploads, deletes and listings.

    Stateless apart from its collaborators, so a new instance per request
    is fine as long as the store is shared.
    """

    def __init__(
        self,
        store: VideoStore,
        storage: Optional[VideoStorage],
        policy: Optional[UploadPolicy] = None,
        allow_unicode_filenames: bool = True,
        strict_backend_delete: bool = False,
    ) -> None:
        self._store = store
        self._storage = storage
        self._policy = policy or UploadPolicy()
        self._allow_unicode = allow_unicode_filenames
        self._strict_delete = strict_backend_delete

    @property
    def policy(self) -> UploadPolicy:
        return self._policy

    def validate(self, content_type: Optional[str], original_name: Optional[str], size: int) -> None:
        """
        Apply the upload policy, raising UploadValidationError on rejection.

        Exposed separately so the HTTP layer can reject an oversized body
        from its declared size before reading it.
        """
        result = validate_upload(content_type, original_name, size, self._policy)
        if result.accepted:
            return

        logger.info(
            "Upload rejected",
            extra={
                "original_name": original_name,
                "content_type": content_type,
                "size_bytes": size,
                "violation": result.violation.value if result.violation else None,
            }
        )
        raise UploadValidationError(result.message, violation=result.violation)

    def _require_storage(self) -> VideoStorage:
        if self._storage is None:
            raise BackendUnavailableError("Object storage is not configured")
        return self._storage

    async def upload(
        self,
        data: bytes,
        original_name: str,
        content_type: str,
        title: Optional[str] = None,
    ) -> VideoRecord:
        """
        Store an uploaded video and register it.

        Raises:
            UploadValidationError: The file broke an upload rule (no I/O happened)
            BackendUnavailableError: No storage is configured (checked after validation)
            BackendOperationError: The storage write failed (nothing was registered)
        """
        self.validate(content_type, original_name, len(data))
        storage = self._require_storage()

        filename = generate_storage_key(
            original_name,
            forced_extension=self._policy.forced_extension,
            allow_unicode=self._allow_unicode,
        )

        try:
            url = await storage.put_object(filename, data, content_type)
        except StorageError as e:
            logger.error(
                "Storage write failed, upload aborted",
                extra={"storage_key": filename, "error": str(e)}
            )
            raise BackendOperationError(str(e)) from e

        record = VideoRecord(
            filename=filename,
            original_name=original_name,
            title=self._resolve_title(title, original_name),
            size=len(data),
            mime_type=content_type,
            url=url,
            format=format_from_content_type(content_type),
        )
        self._store.insert(record)

        logger.info(
            "Video uploaded",
            extra={
                "video_id": record.id,
                "storage_key": filename,
                "size": record.formatted_size,
            }
        )

        return record

    @staticmethod
    def _resolve_title(title: Optional[str], original_name: str) -> str:
        if title and title.strip():
            return title.strip()
        return strip_extension(original_name) or original_name

    def list_videos(self) -> list[VideoRecord]:
        return self._store.list()

    def get_video(self, video_id: str) -> VideoRecord:
        record = self._store.get(video_id)
        if record is None:
            raise VideoNotFoundError(video_id)
        return record

    async def delete(self, video_id: str) -> VideoRecord:
        """
        Delete a video's object and its record.

        Returns the removed record.

        Raises:
            VideoNotFoundError: No such id (storage is not called)
            ProtectedVideoError: The video is a preset (storage is not called)
            BackendUnavailableError: No storage is configured
            BackendOperationError: Storage delete failed and strict deletes are on
        """
        record = self.get_video(video_id)
        if record.protected:
            raise ProtectedVideoError(video_id)
        storage = self._require_storage()

        try:
            await storage.delete_object(record.filename)
        except StorageError as e:
            if self._strict_delete:
                logger.error(
                    "Storage delete failed, record kept",
                    extra={"video_id": video_id, "error": str(e)}
                )
                raise BackendOperationError(str(e)) from e
            logger.warning(
                "Storage delete failed, removing record anyway",
                extra={
                    "video_id": video_id,
                    "storage_key": record.filename,
                    "error": str(e),
                }
            )

        # A concurrent delete may have won the race; the outcome is the same
        self._store.remove(video_id)

        logger.info(
            "Video deleted",
            extra={"video_id": video_id, "original_name": record.original_name}
        )

        return record

    async def clear(self) -> int:
        """
        Delete every unprotected video.

        Storage deletes run concurrently and are best-effort. Only the
        records snapshotted at the start are removed, so uploads that
        land while the clear is running survive.

        A delete that fails with anything other than StorageError keeps
        its record; the other records are still removed before that error
        is re-raised.

        Returns the number of records removed.
        """
        targets = [record for record in self._store.list() if not record.protected]
        if not targets:
            return 0
        storage = self._require_storage()

        results = await asyncio.gather(
            *(storage.delete_object(record.filename) for record in targets),
            return_exceptions=True,
        )

        finished: list[str] = []
        unexpected: Optional[BaseException] = None
        for record, outcome in zip(targets, results):
            if isinstance(outcome, StorageError):
                logger.warning(
                    "Storage delete failed during clear",
                    extra={"storage_key": record.filename, "error": str(outcome)}
                )
            elif isinstance(outcome, BaseException):
                # Unknown state: keep the record so the object stays reachable
                logger.error(
                    "Unexpected error deleting video during clear",
                    extra={"storage_key": record.filename, "error": repr(outcome)}
                )
                unexpected = unexpected or outcome
                continue
            finished.append(record.id)

        removed = self._store.remove_many(finished)

        logger.info("Cleared videos", extra={"count": len(removed)})

        if unexpected is not None:
            raise unexpected

        return len(removed)
