"""
Payload Validation Utilities Module

This module implements the intake checks for asset uploads:
- Per-kind size ceilings (thumbnail 10 MiB, video 1 GiB)
- Per-kind media type allow-lists (JPEG/PNG thumbnails, MP4 videos)
- Early rejection from the Content-Length header, before the multipart body
  is parsed, so oversized bodies are never buffered
- Extension derivation from the declared media type

All checks operate on declared metadata only and have no side effects.
"""

from video_assets.exceptions import MissingPayload, PayloadTooLarge, UnsupportedMediaType
from video_assets.models.upload import AssetKind, RawPayload, ValidatedPayload


# =============================================================================
# CONSTANTS - Size Limits
# =============================================================================

# Bytes in a kilobyte (for size conversions and comparisons)
BYTES_PER_KB: int = 1024

THUMBNAIL_MAX_BYTES: int = 10 << 20  # 10 MiB
VIDEO_MAX_BYTES: int = 1 << 30  # 1 GiB

MAX_SIZE_BY_KIND: dict[AssetKind, int] = {
    AssetKind.THUMBNAIL: THUMBNAIL_MAX_BYTES,
    AssetKind.VIDEO: VIDEO_MAX_BYTES,
}

# Room for multipart boundaries and part headers on top of the file itself
MULTIPART_OVERHEAD_BYTES: int = 64 * BYTES_PER_KB


# =============================================================================
# CONSTANTS - Allowed Media Types
# =============================================================================

ALLOWED_MEDIA_TYPES: dict[AssetKind, frozenset[str]] = {
    AssetKind.THUMBNAIL: frozenset({"image/jpeg", "image/png"}),
    AssetKind.VIDEO: frozenset({"video/mp4"}),
}


# =============================================================================
# MEDIA TYPE HELPERS
# =============================================================================


def normalize_media_type(media_type: str | None) -> str:
    """
    Normalize a declared Content-Type to a bare ``type/subtype``.

    Parameters such as ``; charset=binary`` are dropped and the result is
    lower-cased.

    Example:
        >>> normalize_media_type("Image/PNG; foo=bar")
        'image/png'
    """
    if not media_type:
        return ""
    return media_type.split(";", 1)[0].strip().lower()


def extension_for_media_type(media_type: str) -> str:
    """
    Derive a file extension from the subtype of a media type.

    Example:
        >>> extension_for_media_type("image/png")
        'png'
        >>> extension_for_media_type("video/mp4")
        'mp4'
    """
    normalized = normalize_media_type(media_type)
    _, _, subtype = normalized.partition("/")
    if not subtype:
        raise UnsupportedMediaType(f"Cannot derive a file extension from '{media_type}'")
    return subtype


def max_size_for(kind: AssetKind) -> int:
    """Return the size ceiling in bytes for an asset kind."""
    return MAX_SIZE_BY_KIND[kind]


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable string.

    Example:
        >>> format_file_size(1536)
        '1.50 KB'
        >>> format_file_size(1048576)
        '1.00 MB'
    """
    if size_bytes < 0:
        return "Invalid size"

    bytes_per_mb = BYTES_PER_KB * BYTES_PER_KB
    bytes_per_gb = bytes_per_mb * BYTES_PER_KB

    if size_bytes < BYTES_PER_KB:
        return f"{size_bytes} B"
    if size_bytes < bytes_per_mb:
        return f"{size_bytes / BYTES_PER_KB:.2f} KB"
    if size_bytes < bytes_per_gb:
        return f"{size_bytes / bytes_per_mb:.2f} MB"
    return f"{size_bytes / bytes_per_gb:.2f} GB"


# =============================================================================
# SIZE VALIDATION
# =============================================================================


def check_size(size_bytes: int, kind: AssetKind) -> None:
    """
    Raise PayloadTooLarge if ``size_bytes`` exceeds the ceiling for ``kind``.

    The ceiling itself is inclusive: a thumbnail of exactly 10 MiB is accepted.
    """
    limit = max_size_for(kind)
    if size_bytes > limit:
        raise PayloadTooLarge(
            f"{kind.value.capitalize()} size ({format_file_size(size_bytes)}) exceeds "
            f"maximum allowed size ({format_file_size(limit)})"
        )


def check_content_length(content_length: str | int | None, kind: AssetKind) -> None:
    """
    Reject a request from its Content-Length header before the body is read.

    The whole multipart body is compared against the kind's ceiling plus
    MULTIPART_OVERHEAD_BYTES. A missing or unparseable header is not an error
    here; the declared part size and the staging writer still enforce the limit.
    """
    if content_length is None:
        return
    try:
        length = int(content_length)
    except (TypeError, ValueError):
        return
    if length > max_size_for(kind) + MULTIPART_OVERHEAD_BYTES:
        raise PayloadTooLarge(
            f"Request body ({format_file_size(length)}) exceeds maximum allowed "
            f"{kind.value} size ({format_file_size(max_size_for(kind))})"
        )


# =============================================================================
# PAYLOAD VALIDATION
# =============================================================================


def validate_payload(payload: RawPayload | None, kind: AssetKind) -> ValidatedPayload:
    """
    Validate declared upload metadata for an asset kind.

    Checks run in order, failing fast:
    1. A payload is present and not declared empty (MissingPayload)
    2. The declared size is within the ceiling (PayloadTooLarge)
    3. The declared media type is in the allow-list (UnsupportedMediaType)

    Args:
        payload: Raw payload from the request, or None if the form field was absent
        kind: Asset kind selecting ceiling and allow-list

    Returns:
        ValidatedPayload with the normalized media type, declared size and extension
    """
    if payload is None:
        raise MissingPayload(f"{kind.value.capitalize()} file missing")

    if payload.size is not None:
        if payload.size == 0:
            raise MissingPayload(f"{kind.value.capitalize()} file is empty")
        check_size(payload.size, kind)

    media_type = normalize_media_type(payload.media_type)
    allowed = ALLOWED_MEDIA_TYPES[kind]
    if media_type not in allowed:
        raise UnsupportedMediaType(
            f"Media type '{payload.media_type or 'unknown'}' is not supported for "
            f"{kind.value} uploads. Allowed types: {', '.join(sorted(allowed))}"
        )

    return ValidatedPayload(
        media_type=media_type,
        size_bytes=payload.size,
        extension=extension_for_media_type(media_type),
    )
