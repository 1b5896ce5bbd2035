"""
Domain models for registered videos.

These models have no dependencies on FastAPI, boto3 or any storage
format. The API layer translates them into response bodies.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from .formatting import format_file_size


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class VideoRecord:
    """
    Metadata for one video held in object storage.

    duration, resolution and format are best-effort. No media inspection
    is performed, so duration and resolution stay None unless a caller
    knows better.
    """
    filename: str  # storage key, unique within the bucket prefix
    original_name: str
    title: str
    size: int
    mime_type: str
    url: str
    id: str = field(default_factory=_new_id)
    upload_date: datetime = field(default_factory=_utcnow)
    duration: Optional[float] = None
    resolution: Optional[str] = None
    format: Optional[str] = None
    protected: bool = False  # preset videos can't be deleted

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError("Video size cannot be negative")
        if not self.filename:
            raise ValueError("Video filename cannot be empty")

    @property
    def formatted_size(self) -> str:
        return format_file_size(self.size)


def format_from_content_type(content_type: str) -> Optional[str]:
    """Container format implied by a content type ("video/mp4" -> "mp4")."""
    _, _, subtype = content_type.partition("/")
    subtype = subtype.split(";", 1)[0].strip()
    return subtype or None
