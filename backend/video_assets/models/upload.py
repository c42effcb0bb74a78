"""
Upload value types for the asset pipeline.

These types carry an upload from the HTTP edge through validation, staging
and promotion. They are deliberately transport-agnostic: RawPayload only
needs an async ``read(size)`` callable, which FastAPI's UploadFile provides
and which tests can satisfy with a small in-memory reader.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class AssetKind(str, Enum):
    """
    Kind of asset attached to a video record.

    The kind selects the size ceiling, media type allow-list, multipart form
    field, staging subdirectory and promotion target.
    """

    THUMBNAIL = "thumbnail"
    VIDEO = "video"

    @property
    def form_field(self) -> str:
        """Multipart form field that carries this kind of file."""
        return self.value

    @property
    def record_field(self) -> str:
        """VideoRecord attribute that references the promoted asset."""
        return f"{self.value}_url"


@dataclass(frozen=True)
class RawPayload:
    """Untrusted upload body plus the metadata the client declared for it."""

    media_type: str
    size: int | None
    read: Callable[[int], Awaitable[bytes]]
    filename: str | None = None


@dataclass(frozen=True)
class ValidatedPayload:
    """Media type and size accepted by the payload validator."""

    media_type: str
    # None when the client declared no size; staging still enforces the ceiling
    size_bytes: int | None
    extension: str


@dataclass(frozen=True)
class UploadRequest:
    """Input to the upload pipeline."""

    video_id: str
    caller_id: str
    payload: RawPayload | None
    kind: AssetKind


@dataclass(frozen=True)
class StagedAsset:
    """Ephemeral local copy of a validated payload."""

    local_path: Path
    file_name: str
    media_type: str
    size_bytes: int
