"""
Video intake pipeline.

Contains the metadata store, upload validation, storage key generation
and the service that ties them to object storage.
"""

from .exceptions import (
    BackendOperationError,
    BackendUnavailableError,
    ProtectedVideoError,
    StorageError,
    UploadValidationError,
    VideoNotFoundError,
    VideoServiceError,
)
from .formatting import format_file_size
from .models import VideoRecord
from .naming import generate_storage_key
from .service import VideoService
from .store import VideoStore
from .validation import UploadPolicy, ValidationResult, Violation, validate_upload

__all__ = [
    "BackendOperationError",
    "BackendUnavailableError",
    "ProtectedVideoError",
    "StorageError",
    "UploadValidationError",
    "VideoNotFoundError",
    "VideoServiceError",
    "format_file_size",
    "VideoRecord",
    "generate_storage_key",
    "VideoService",
    "VideoStore",
    "UploadPolicy",
    "ValidationResult",
    "Violation",
    "validate_upload",
]
