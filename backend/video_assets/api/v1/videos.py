"""
FastAPI Videos Router

Endpoints:
- POST /{video_id}/thumbnail - Attach a JPEG/PNG thumbnail (multipart field "thumbnail")
- POST /{video_id}/video - Attach an MP4 video (multipart field "video")
- GET /{video_id} - Fetch a video record owned by the caller

Upload endpoints read the multipart body themselves so its size can be
checked before it is parsed: the Content-Length header up front, and the
bytes actually received while a chunked body streams in.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field
from starlette.datastructures import UploadFile
from starlette.types import Message

from video_assets.config import Settings, get_settings
from video_assets.core.auth import get_current_user_id
from video_assets.core.database import get_db_client
from video_assets.exceptions import PayloadTooLarge
from video_assets.models.upload import AssetKind, RawPayload, UploadRequest
from video_assets.models.video import VideoRecord
from video_assets.services.promotion_service import AssetPromoter
from video_assets.services.staging_service import StagingService
from video_assets.services.storage_service import StorageService
from video_assets.services.upload_service import UploadService
from video_assets.services.video_service import VideoService
from video_assets.services.video_store import VideoStore
from video_assets.utils.file_validator import (
    MULTIPART_OVERHEAD_BYTES,
    check_content_length,
    format_file_size,
    max_size_for,
)


# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================


class VideoResponse(BaseModel):
    """Video record as returned to clients."""

    id: str = Field(..., description="Video identifier")
    user_id: str = Field(..., description="Owning user's identifier")
    title: str = Field(default="", description="Video title")
    description: str = Field(default="", description="Video description")
    thumbnail_url: str | None = Field(default=None, description="Thumbnail URL")
    video_url: str | None = Field(default=None, description="Video URL")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: VideoRecord) -> "VideoResponse":
        return cls(**record.model_dump())


class ErrorResponse(BaseModel):
    """Error body produced by the application exception handler."""

    error: str = Field(..., description="Error type")
    detail: str = Field(..., description="Human-readable error message")


ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
    403: {"model": ErrorResponse, "description": "Caller does not own the video"},
    404: {"model": ErrorResponse, "description": "Video not found"},
}

UPLOAD_ERROR_RESPONSES = {
    **ERROR_RESPONSES,
    400: {"model": ErrorResponse, "description": "File missing from the form"},
    413: {"model": ErrorResponse, "description": "File too large"},
    415: {"model": ErrorResponse, "description": "Unsupported media type"},
    502: {"model": ErrorResponse, "description": "Durable storage failed"},
    503: {"model": ErrorResponse, "description": "Record store unavailable"},
}


# ============================================================================
# Dependency Injection Functions
# ============================================================================


def get_video_store() -> VideoStore:
    """Dependency injection for VideoStore over the videos collection."""
    return VideoStore(get_db_client().get_videos_collection())


def get_storage_service(settings: Settings = Depends(get_settings)) -> StorageService:
    """Dependency injection for StorageService."""
    return StorageService.from_settings(settings)


def get_video_service(store: VideoStore = Depends(get_video_store)) -> VideoService:
    return VideoService(store)


def get_upload_service(
    settings: Settings = Depends(get_settings),
    video_service: VideoService = Depends(get_video_service),
    storage_service: StorageService = Depends(get_storage_service),
) -> UploadService:
    """
    Dependency injection for UploadService.

    Returns:
        UploadService: Pipeline wired to the configured staging root,
        assets root and S3 bucket.
    """
    return UploadService(
        video_service=video_service,
        staging_service=StagingService(settings.staging_root),
        promoter=AssetPromoter(settings, storage_service),
    )


# ============================================================================
# Helper Functions
# ============================================================================


def payload_from_form_value(value: object) -> RawPayload | None:
    """
    Build a RawPayload from a parsed multipart value.

    Plain string fields and file parts without a filename count as missing.
    """
    if not isinstance(value, UploadFile) or not value.filename:
        return None
    return RawPayload(
        media_type=value.content_type or "",
        size=value.size,
        read=value.read,
        filename=value.filename,
    )


def limit_request_body(request: Request, limit: int) -> Request:
    """
    Return a view of ``request`` whose body stream fails past ``limit`` bytes.

    Content-Length only covers clients that send it; a chunked body is counted
    as it arrives so the form parser never spools more than ``limit`` bytes.

    Raises:
        PayloadTooLarge: From the body stream once ``limit`` is exceeded.
    """
    received = 0

    async def receive() -> Message:
        nonlocal received
        message = await request.receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > limit:
                raise PayloadTooLarge(
                    f"Request body exceeds maximum allowed size ({format_file_size(limit)})"
                )
        return message

    return Request(request.scope, receive)


async def _handle_upload(
    request: Request,
    video_id: str,
    kind: AssetKind,
    user_id: str,
    upload_service: UploadService,
) -> VideoResponse:
    check_content_length(request.headers.get("content-length"), kind)

    body_limit = max_size_for(kind) + MULTIPART_OVERHEAD_BYTES
    form = await limit_request_body(request, body_limit).form()
    try:
        payload = payload_from_form_value(form.get(kind.form_field))
        record = await upload_service.upload_asset(
            UploadRequest(video_id=video_id, caller_id=user_id, payload=payload, kind=kind),
            is_disconnected=request.is_disconnected,
        )
    finally:
        await form.close()

    return VideoResponse.from_record(record)


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/{video_id}/thumbnail",
    response_model=VideoResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload a video thumbnail",
    description="Attach a JPEG or PNG thumbnail (max 10 MiB) to a video you own.",
    responses=UPLOAD_ERROR_RESPONSES,
)
async def upload_thumbnail(
    video_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    upload_service: UploadService = Depends(get_upload_service),
) -> VideoResponse:
    """
    Upload a thumbnail image for a video.

    The form must carry the file in a field named ``thumbnail``. On success
    the video's ``thumbnail_url`` points at the newly served image; any
    previous thumbnail is left where it was.
    """
    logger.info("Thumbnail upload requested for video %s by user %s", video_id, user_id)
    return await _handle_upload(request, video_id, AssetKind.THUMBNAIL, user_id, upload_service)


@router.post(
    "/{video_id}/video",
    response_model=VideoResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload a video file",
    description="Attach an MP4 video (max 1 GiB) to a video record you own.",
    responses=UPLOAD_ERROR_RESPONSES,
)
async def upload_video(
    video_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    upload_service: UploadService = Depends(get_upload_service),
) -> VideoResponse:
    """
    Upload the video file for a video record.

    The form must carry the file in a field named ``video``. The file is
    stored in the S3 bucket and ``video_url`` is set to its object URL.
    """
    logger.info("Video upload requested for video %s by user %s", video_id, user_id)
    return await _handle_upload(request, video_id, AssetKind.VIDEO, user_id, upload_service)


@router.get(
    "/{video_id}",
    response_model=VideoResponse,
    summary="Get a video record",
    responses=ERROR_RESPONSES,
)
async def get_video(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    video_service: VideoService = Depends(get_video_service),
) -> VideoResponse:
    """Return a video record owned by the caller."""
    record = await video_service.get_owned_video(video_id, user_id)
    return VideoResponse.from_record(record)
