"""
Upload validation rules.

All acceptance rules for an inbound file live in one declarative policy,
evaluated by a pure function. Nothing here touches the network or the
metadata store, so every rule can be tested without a running server.

Two policy shapes are supported:
- Open: any video/* content type, plus an explicit allow-list for the
  oddballs browsers send (video/avi, video/mkv, ...)
- Single format: exactly one content type AND a matching file extension.
  Both must match; either alone is rejected.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .formatting import format_file_size
from .naming import normalize_extension, split_extension

if TYPE_CHECKING:
    from ...config.settings import Settings

DEFAULT_MAX_SIZE_BYTES = 100 * 1024 * 1024


class Violation(Enum):
    """Which rule an upload broke."""
    MISSING_FILE = "missing_file"
    FILE_TOO_LARGE = "file_too_large"
    UNSUPPORTED_TYPE = "unsupported_type"
    EXTENSION_MISMATCH = "extension_mismatch"
    TOO_MANY_FILES = "too_many_files"


@dataclass(frozen=True)
class UploadPolicy:
    """
    Declarative rule set for accepting uploads.

    Frozen because a policy is configuration, built once at startup.
    """
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES
    allowed_content_types: frozenset[str] = field(default_factory=frozenset)
    accept_any_video: bool = True
    required_content_type: Optional[str] = None
    required_extension: Optional[str] = None

    def __post_init__(self) -> None:
        if self.max_size_bytes <= 0:
            raise ValueError("max_size_bytes must be positive")
        if (self.required_content_type is None) != (self.required_extension is None):
            raise ValueError(
                "required_content_type and required_extension must be set together"
            )

    @property
    def single_format(self) -> bool:
        return self.required_content_type is not None

    @property
    def forced_extension(self) -> Optional[str]:
        """Extension every stored key gets in single-format mode."""
        if self.required_extension is None:
            return None
        return normalize_extension(self.required_extension)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "UploadPolicy":
        required_type = settings.required_content_type or None
        required_extension = settings.required_extension or None
        return cls(
            max_size_bytes=settings.max_upload_size_bytes,
            allowed_content_types=frozenset(settings.allowed_video_types_list),
            accept_any_video=settings.accept_any_video_type,
            required_content_type=required_type.lower() if required_type else None,
            required_extension=required_extension,
        )


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one upload."""
    accepted: bool
    violation: Optional[Violation] = None
    message: str = ""

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(accepted=True)

    @classmethod
    def reject(cls, violation: Violation, message: str) -> "ValidationResult":
        return cls(accepted=False, violation=violation, message=message)


def _normalize_content_type(content_type: Optional[str]) -> str:
    # Drop parameters such as "; codecs=avc1"
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def _type_allowed(content_type: str, policy: UploadPolicy) -> bool:
    if policy.single_format:
        return content_type == policy.required_content_type
    if policy.accept_any_video and content_type.startswith("video/"):
        return True
    return content_type in policy.allowed_content_types


def validate_upload(
    content_type: Optional[str],
    filename: Optional[str],
    size: int,
    policy: UploadPolicy,
) -> ValidationResult:
    """
    Decide whether an uploaded file is acceptable.

    Checks run in order: missing file, size, content type, extension.
    The first failing rule is reported so the client can fix it.
    """
    if not filename:
        return ValidationResult.reject(Violation.MISSING_FILE, "No file was uploaded")

    if size > policy.max_size_bytes:
        return ValidationResult.reject(
            Violation.FILE_TOO_LARGE,
            f"File too large ({format_file_size(size)}). "
            f"Maximum size is {format_file_size(policy.max_size_bytes)}",
        )

    normalized_type = _normalize_content_type(content_type)
    if not _type_allowed(normalized_type, policy):
        if policy.single_format:
            message = (
                f"Unsupported file type: {content_type or 'unknown'}. "
                f"Only {policy.required_content_type} is accepted"
            )
        else:
            message = f"Unsupported file type: {content_type or 'unknown'}"
        return ValidationResult.reject(Violation.UNSUPPORTED_TYPE, message)

    if policy.single_format:
        _, extension = split_extension(filename)
        if normalize_extension(extension) != policy.forced_extension:
            return ValidationResult.reject(
                Violation.EXTENSION_MISMATCH,
                f"File extension must be {policy.forced_extension}",
            )

    return ValidationResult.ok()
