"""
Errors raised by the video intake pipeline.

Each error knows the HTTP status it maps to, so the API layer can render
any of them with a single exception handler.
"""

from typing import Optional

from .validation import Violation


class VideoServiceError(Exception):
    """Base class for failures the caller should be told about."""

    http_status: int = 500
    code: str = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UploadValidationError(VideoServiceError):
    """The uploaded file was rejected before any storage call."""

    http_status = 400
    code = "validation_error"

    def __init__(self, message: str, violation: Optional[Violation] = None) -> None:
        super().__init__(message)
        self.violation = violation


class VideoNotFoundError(VideoServiceError):
    """Raised when a requested video doesn't exist."""

    http_status = 404
    code = "not_found"

    def __init__(self, video_id: str) -> None:
        super().__init__(f"Video not found: {video_id}")
        self.video_id = video_id


class ProtectedVideoError(VideoServiceError):
    """Raised on an attempt to delete a preset video."""

    http_status = 400
    code = "protected_video"

    def __init__(self, video_id: str) -> None:
        super().__init__(f"Video {video_id} is a preset video and cannot be deleted")
        self.video_id = video_id


class BackendUnavailableError(VideoServiceError):
    """Object storage is not configured."""

    http_status = 500
    code = "storage_unavailable"


class BackendOperationError(VideoServiceError):
    """A storage write or delete failed."""

    http_status = 500
    code = "storage_error"


class StorageError(Exception):
    """Raised by storage clients when an operation fails."""
    pass
