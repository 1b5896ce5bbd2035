"""
Storage key generation.

Client filenames can contain anything: spaces, path separators, shell
metacharacters, emoji. Before a name becomes part of an object key it is
reduced to a safe alphabet and suffixed with a uuid4, so two uploads of
"clip.mp4" never collide.
"""

import os
import re
from typing import Optional
from uuid import uuid4

# CJK Unified Ideographs, the range the original uploads were named in
_UNICODE_RANGE = "一-龥"

_UNSAFE_ASCII = re.compile(r"[^A-Za-z0-9_\-]")
_UNSAFE_WITH_UNICODE = re.compile(rf"[^A-Za-z0-9_\-{_UNICODE_RANGE}]")
_UNSAFE_EXTENSION = re.compile(r"[^A-Za-z0-9]")

DEFAULT_BASE_NAME = "video"


def _basename(filename: str) -> str:
    # Browsers on Windows sometimes send the full client path
    return filename.replace("\\", "/").rsplit("/", 1)[-1]


def split_extension(filename: str) -> tuple[str, str]:
    """
    Split a client filename into (base, extension).

    The extension keeps its leading dot. Dotfiles like ".mp4" have no
    extension, matching os.path.splitext.
    """
    return os.path.splitext(_basename(filename))


def strip_extension(filename: str) -> str:
    """Filename without its last suffix, used as the default title."""
    base, _ = split_extension(filename)
    return base


def sanitize_extension(extension: str) -> str:
    """Keep letters and digits of an extension, as given, behind one dot."""
    cleaned = _UNSAFE_EXTENSION.sub("", extension.lstrip("."))
    return f".{cleaned}" if cleaned else ""


def normalize_extension(extension: str) -> str:
    """Sanitized, lower-cased extension, for comparisons."""
    return sanitize_extension(extension).lower()


def sanitize_base_name(base: str, allow_unicode: bool = True) -> str:
    """Replace every character outside the safe alphabet with an underscore."""
    pattern = _UNSAFE_WITH_UNICODE if allow_unicode else _UNSAFE_ASCII
    sanitized = pattern.sub("_", base)
    return sanitized or DEFAULT_BASE_NAME


def generate_storage_key(
    original_name: str,
    forced_extension: Optional[str] = None,
    allow_unicode: bool = True,
) -> str:
    """
    Build a collision-free storage key for an uploaded file.

    Format: {sanitized_base}_{uuid4}{extension}

    Args:
        original_name: Filename as supplied by the client
        forced_extension: Replaces the client's extension when uploads are
            restricted to a single format
        allow_unicode: Keep CJK characters in the base name

    Returns:
        A key safe to use as an object path segment
    """
    base, extension = split_extension(original_name)
    if forced_extension is not None:
        extension = forced_extension

    safe_base = sanitize_base_name(base, allow_unicode=allow_unicode)
    return f"{safe_base}_{uuid4()}{sanitize_extension(extension)}"
