"""
Utilities Package for the video asset service.

Modules:
--------
file_validator:
    Intake checks for uploads:
    - Per-kind size ceilings (10 MiB thumbnails, 1 GiB videos)
    - Per-kind media type allow-lists
    - Content-Length pre-checks before the multipart body is parsed
    - Extension derivation from media types

logger:
    Structured logging configuration:
    - JSONFormatter / StandardFormatter
    - setup_logging for application-wide configuration
    - add_log_context for per-upload context fields

security:
    - Cryptographically secure asset names
"""

from video_assets.utils.file_validator import (
    check_content_length,
    extension_for_media_type,
    validate_payload,
)
from video_assets.utils.logger import add_log_context, setup_logging
from video_assets.utils.security import generate_asset_token


__all__ = [
    "add_log_context",
    "check_content_length",
    "extension_for_media_type",
    "generate_asset_token",
    "setup_logging",
    "validate_payload",
]
