"""
Unit tests for the upload rules: key generation, validation and size
formatting.

These are pure functions, so no storage, store or server is involved.
"""

import re

import pytest

from videoserver.core.videos.formatting import format_file_size
from videoserver.core.videos.naming import (
    generate_storage_key,
    sanitize_base_name,
    split_extension,
    strip_extension,
)
from videoserver.core.videos.validation import (
    UploadPolicy,
    Violation,
    validate_upload,
)

MB = 1024 * 1024
UUID_PATTERN = r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}"


# ---------------------------------------------------------------------------
# Storage Key Tests
# ---------------------------------------------------------------------------

class TestStorageKey:
    """Tests for storage key generation."""

    def test_key_keeps_base_and_extension(self):
        """clip.mp4 becomes clip_<uuid>.mp4"""
        key = generate_storage_key("clip.mp4")
        assert re.fullmatch(rf"clip_{UUID_PATTERN}\.mp4", key)

    def test_identical_names_get_distinct_keys(self):
        keys = {generate_storage_key("clip.mp4") for _ in range(50)}
        assert len(keys) == 50

    def test_unsafe_characters_become_underscores(self):
        key = generate_storage_key("my holiday (1)!.mov")
        assert key.startswith("my_holiday__1__")
        assert key.endswith(".mov")

    def test_path_components_are_dropped(self):
        """Neither separators nor traversal survive."""
        key = generate_storage_key("../../etc/passwd.mp4")
        assert "/" not in key
        assert ".." not in key
        assert key.startswith("passwd_")

    def test_windows_paths_are_dropped(self):
        key = generate_storage_key("C:\\Users\\me\\clip.mp4")
        assert key.startswith("clip_")
        assert "\\" not in key

    def test_cjk_characters_kept_when_allowed(self):
        key = generate_storage_key("游泳 训练.mp4")
        assert key.startswith("游泳_训练_")

    def test_cjk_characters_replaced_in_ascii_mode(self):
        key = generate_storage_key("游泳.mp4", allow_unicode=False)
        assert key.startswith("___")
        assert key.isascii()

    def test_forced_extension_replaces_client_extension(self):
        key = generate_storage_key("clip.MOV", forced_extension=".mp4")
        assert key.endswith(".mp4")

    def test_extension_keeps_client_case(self):
        key = generate_storage_key("Clip.MP4")
        assert re.fullmatch(rf"Clip_{UUID_PATTERN}\.MP4", key)

    def test_unsafe_extension_characters_are_dropped(self):
        assert generate_storage_key("clip.m p4!").endswith(".mp4")

    def test_name_without_extension(self):
        key = generate_storage_key("recording")
        assert re.fullmatch(rf"recording_{UUID_PATTERN}", key)

    def test_empty_base_falls_back(self):
        assert sanitize_base_name("") == "video"

    def test_dotfile_has_no_extension(self):
        assert split_extension(".mp4") == (".mp4", "")

    def test_strip_extension_removes_last_suffix_only(self):
        assert strip_extension("match.final.mp4") == "match.final"


# ---------------------------------------------------------------------------
# Validation Tests
# ---------------------------------------------------------------------------

class TestOpenPolicy:
    """Any video/* type plus an explicit allow-list."""

    @pytest.fixture
    def policy(self) -> UploadPolicy:
        return UploadPolicy(
            max_size_bytes=100 * MB,
            allowed_content_types=frozenset({"application/x-matroska"}),
        )

    def test_accepts_any_video_type(self, policy):
        result = validate_upload("video/x-flv", "clip.flv", 10 * MB, policy)
        assert result.accepted
        assert result.violation is None

    def test_accepts_allow_listed_type(self, policy):
        result = validate_upload("application/x-matroska", "clip.mkv", MB, policy)
        assert result.accepted

    def test_content_type_parameters_ignored(self, policy):
        result = validate_upload("video/mp4; codecs=avc1", "clip.mp4", MB, policy)
        assert result.accepted

    def test_rejects_non_video(self, policy):
        result = validate_upload("image/png", "photo.png", MB, policy)
        assert not result.accepted
        assert result.violation == Violation.UNSUPPORTED_TYPE
        assert "image/png" in result.message

    def test_rejects_missing_content_type(self, policy):
        result = validate_upload(None, "clip.mp4", MB, policy)
        assert result.violation == Violation.UNSUPPORTED_TYPE

    def test_rejects_oversize(self, policy):
        result = validate_upload("video/mp4", "clip.mp4", 150 * MB, policy)
        assert not result.accepted
        assert result.violation == Violation.FILE_TOO_LARGE
        assert "100 MB" in result.message

    def test_exact_limit_is_accepted(self, policy):
        assert validate_upload("video/mp4", "clip.mp4", 100 * MB, policy).accepted

    def test_accepts_empty_file(self, policy):
        """Only type and size are limited; zero bytes is within the limit."""
        assert validate_upload("video/mp4", "clip.mp4", 0, policy).accepted

    def test_rejects_missing_filename(self, policy):
        result = validate_upload("video/mp4", "", MB, policy)
        assert result.violation == Violation.MISSING_FILE

    def test_size_checked_before_type(self, policy):
        """The oversize report wins so the client fixes the bigger problem."""
        result = validate_upload("image/png", "photo.png", 150 * MB, policy)
        assert result.violation == Violation.FILE_TOO_LARGE

    def test_allow_list_only_when_open_mode_off(self):
        policy = UploadPolicy(
            accept_any_video=False,
            allowed_content_types=frozenset({"video/mp4"}),
        )
        assert validate_upload("video/mp4", "a.mp4", MB, policy).accepted
        assert not validate_upload("video/webm", "a.webm", MB, policy).accepted


class TestSingleFormatPolicy:
    """Exactly one content type AND a matching extension."""

    @pytest.fixture
    def policy(self) -> UploadPolicy:
        return UploadPolicy(
            required_content_type="video/mp4",
            required_extension=".mp4",
        )

    def test_accepts_matching_pair(self, policy):
        assert validate_upload("video/mp4", "clip.mp4", MB, policy).accepted

    def test_extension_match_is_case_insensitive(self, policy):
        assert validate_upload("video/mp4", "CLIP.MP4", MB, policy).accepted

    def test_rejects_other_video_type(self, policy):
        result = validate_upload("video/webm", "clip.mp4", MB, policy)
        assert result.violation == Violation.UNSUPPORTED_TYPE

    def test_rejects_mismatched_extension(self, policy):
        """Right content type, wrong extension: still rejected."""
        result = validate_upload("video/mp4", "clip.mov", MB, policy)
        assert result.violation == Violation.EXTENSION_MISMATCH

    def test_forced_extension_is_normalized(self):
        policy = UploadPolicy(required_content_type="video/mp4", required_extension="MP4")
        assert policy.forced_extension == ".mp4"

    def test_requires_both_halves(self):
        with pytest.raises(ValueError, match="set together"):
            UploadPolicy(required_content_type="video/mp4")

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError, match="positive"):
            UploadPolicy(max_size_bytes=0)


# ---------------------------------------------------------------------------
# Size Formatting Tests
# ---------------------------------------------------------------------------

class TestFormatFileSize:
    """Base-1024 sizes with two-decimal rounding."""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (0, "0 Bytes"),
            (1, "1 Bytes"),
            (1023, "1023 Bytes"),
            (1024, "1 KB"),
            (1536, "1.5 KB"),
            (1572864, "1.5 MB"),
            (10 * MB, "10 MB"),
            (100 * MB, "100 MB"),
            (1024 ** 3, "1 GB"),
            (2 * 1024 ** 4, "2048 GB"),
        ],
    )
    def test_formats(self, size, expected):
        assert format_file_size(size) == expected

    def test_rounds_to_two_decimals(self):
        # 1234567 / 1024**2 = 1.1773...
        assert format_file_size(1234567) == "1.18 MB"
