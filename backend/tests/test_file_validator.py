"""
Tests for payload validation: size ceilings, media type allow-lists and the
Content-Length pre-check.
"""

import pytest

from video_assets.exceptions import (
    MissingPayload,
    PayloadTooLarge,
    UnsupportedMediaType,
    ValidationError,
)
from video_assets.models.upload import AssetKind
from video_assets.utils.file_validator import (
    MULTIPART_OVERHEAD_BYTES,
    THUMBNAIL_MAX_BYTES,
    VIDEO_MAX_BYTES,
    check_content_length,
    extension_for_media_type,
    format_file_size,
    max_size_for,
    normalize_media_type,
    validate_payload,
)

from tests.conftest import make_payload


class TestSizeCeilings:
    """Per-kind size ceilings."""

    def test_ceiling_values(self) -> None:
        assert max_size_for(AssetKind.THUMBNAIL) == 10 * 1024 * 1024
        assert max_size_for(AssetKind.VIDEO) == 1024 * 1024 * 1024

    def test_thumbnail_at_ceiling_accepted(self) -> None:
        payload = make_payload(b"x", "image/png", size=THUMBNAIL_MAX_BYTES)
        assert validate_payload(payload, AssetKind.THUMBNAIL).size_bytes == THUMBNAIL_MAX_BYTES

    def test_thumbnail_over_ceiling_rejected(self) -> None:
        payload = make_payload(b"x", "image/png", size=THUMBNAIL_MAX_BYTES + 1)
        with pytest.raises(PayloadTooLarge):
            validate_payload(payload, AssetKind.THUMBNAIL)

    def test_video_of_one_and_a_half_gib_rejected(self) -> None:
        payload = make_payload(b"x", "video/mp4", size=VIDEO_MAX_BYTES + VIDEO_MAX_BYTES // 2)
        with pytest.raises(PayloadTooLarge):
            validate_payload(payload, AssetKind.VIDEO)

    def test_twenty_mib_video_accepted(self) -> None:
        payload = make_payload(b"x", "video/mp4", size=20 * 1024 * 1024)
        validated = validate_payload(payload, AssetKind.VIDEO)
        assert validated.media_type == "video/mp4"
        assert validated.extension == "mp4"

    def test_size_checked_before_media_type(self) -> None:
        payload = make_payload(b"x", "image/gif", size=THUMBNAIL_MAX_BYTES + 1)
        with pytest.raises(PayloadTooLarge):
            validate_payload(payload, AssetKind.THUMBNAIL)

    def test_undeclared_size_passes_through(self) -> None:
        payload = make_payload(b"abc", "image/jpeg", size=None)
        assert validate_payload(payload, AssetKind.THUMBNAIL).size_bytes is None


class TestMediaTypes:
    """Per-kind media type allow-lists."""

    @pytest.mark.parametrize("media_type", ["image/jpeg", "image/png"])
    def test_thumbnail_types_accepted(self, media_type: str) -> None:
        validate_payload(make_payload(b"abc", media_type), AssetKind.THUMBNAIL)

    @pytest.mark.parametrize("media_type", ["image/gif", "image/webp", "video/mp4", "", "text/plain"])
    def test_other_thumbnail_types_rejected(self, media_type: str) -> None:
        with pytest.raises(UnsupportedMediaType):
            validate_payload(make_payload(b"abc", media_type), AssetKind.THUMBNAIL)

    @pytest.mark.parametrize("media_type", ["video/quicktime", "video/webm", "image/png"])
    def test_other_video_types_rejected(self, media_type: str) -> None:
        with pytest.raises(UnsupportedMediaType):
            validate_payload(make_payload(b"abc", media_type), AssetKind.VIDEO)

    def test_media_type_parameters_and_case_ignored(self) -> None:
        validated = validate_payload(
            make_payload(b"abc", "Image/PNG; charset=binary"), AssetKind.THUMBNAIL
        )
        assert validated.media_type == "image/png"

    def test_validation_errors_share_base(self) -> None:
        assert issubclass(UnsupportedMediaType, ValidationError)
        assert issubclass(PayloadTooLarge, ValidationError)
        assert issubclass(MissingPayload, ValidationError)


class TestMissingPayload:
    def test_absent_payload(self) -> None:
        with pytest.raises(MissingPayload, match="Thumbnail file missing"):
            validate_payload(None, AssetKind.THUMBNAIL)

    def test_declared_empty_payload(self) -> None:
        with pytest.raises(MissingPayload, match="empty"):
            validate_payload(make_payload(b"", "video/mp4"), AssetKind.VIDEO)


class TestContentLength:
    """Early rejection from the Content-Length header."""

    def test_within_allowance(self) -> None:
        check_content_length(THUMBNAIL_MAX_BYTES + MULTIPART_OVERHEAD_BYTES, AssetKind.THUMBNAIL)

    def test_over_allowance(self) -> None:
        with pytest.raises(PayloadTooLarge):
            check_content_length(
                str(THUMBNAIL_MAX_BYTES + MULTIPART_OVERHEAD_BYTES + 1), AssetKind.THUMBNAIL
            )

    @pytest.mark.parametrize("header", [None, "", "not-a-number"])
    def test_missing_or_garbage_header_ignored(self, header) -> None:
        check_content_length(header, AssetKind.VIDEO)


class TestHelpers:
    @pytest.mark.parametrize(
        ("media_type", "extension"),
        [("image/png", "png"), ("image/jpeg", "jpeg"), ("video/mp4", "mp4")],
    )
    def test_extension_from_subtype(self, media_type: str, extension: str) -> None:
        assert extension_for_media_type(media_type) == extension

    def test_extension_requires_subtype(self) -> None:
        with pytest.raises(UnsupportedMediaType):
            extension_for_media_type("image")

    def test_normalize_empty(self) -> None:
        assert normalize_media_type(None) == ""

    def test_format_file_size(self) -> None:
        assert format_file_size(512) == "512 B"
        assert format_file_size(1536) == "1.50 KB"
        assert format_file_size(THUMBNAIL_MAX_BYTES) == "10.00 MB"
        assert format_file_size(VIDEO_MAX_BYTES) == "1.00 GB"
