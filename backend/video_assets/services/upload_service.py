"""
Asset Upload Pipeline Module

This module wires the upload stages together for a single request:

1. Validate declared payload metadata (size ceiling, media type allow-list)
2. Stream the payload to a staging file with an unguessable name
3. Check the caller owns the video record
4. Promote the staged file to durable storage
5. Point the record at the promoted object
6. Delete the staging file, whatever happened above

Stages run strictly in sequence. Ownership is checked after staging but
before promotion, so an unauthorized call can at most produce a throwaway
local file. The record is only updated once the durable object exists.

If the client disconnects, the pipeline stops at the next stage boundary
with UploadCancelled and never promotes or updates anything afterwards.
"""

import logging
from collections.abc import Awaitable, Callable

from video_assets.exceptions import UploadCancelled
from video_assets.models.upload import StagedAsset, UploadRequest
from video_assets.models.video import VideoRecord
from video_assets.services.promotion_service import AssetPromoter
from video_assets.services.staging_service import StagingService
from video_assets.services.video_service import VideoService
from video_assets.utils.file_validator import validate_payload
from video_assets.utils.logger import add_log_context


logger = logging.getLogger(__name__)

DisconnectProbe = Callable[[], Awaitable[bool]]


class UploadService:
    """
    Run the asset upload pipeline for one request.

    Attributes:
        videos: VideoService for the ownership gate and metadata update
        staging: StagingService for staging writes and cleanup
        promoter: AssetPromoter for durable copies

    Example:
        ```python
        upload_service = UploadService(video_service, staging_service, promoter)
        record = await upload_service.upload_asset(
            UploadRequest(video_id="vid-1", caller_id="user-1",
                          payload=payload, kind=AssetKind.THUMBNAIL),
            is_disconnected=request.is_disconnected,
        )
        ```
    """

    def __init__(
        self,
        video_service: VideoService,
        staging_service: StagingService,
        promoter: AssetPromoter,
    ) -> None:
        self.videos = video_service
        self.staging = staging_service
        self.promoter = promoter

    async def upload_asset(
        self,
        request: UploadRequest,
        is_disconnected: DisconnectProbe | None = None,
    ) -> VideoRecord:
        """
        Attach an uploaded asset to a video record.

        Args:
            request: Video id, caller identity, raw payload and asset kind.
            is_disconnected: Optional async predicate polled between stages;
                FastAPI's ``Request.is_disconnected`` fits.

        Returns:
            VideoRecord: The record with the new asset reference.

        Raises:
            MissingPayload, PayloadTooLarge, UnsupportedMediaType: Rejected input.
            StagingWriteError: The staging file could not be written.
            RecordNotFound, Forbidden: Ownership gate failures.
            PromotionError: The durable copy failed.
            PersistenceError: The record could not be updated.
            UploadCancelled: The client went away mid-upload.
        """
        log = add_log_context(
            logger,
            video_id=request.video_id,
            user_id=request.caller_id,
            kind=request.kind.value,
        )

        validated = validate_payload(request.payload, request.kind)
        log.info(
            "Validated %s upload (%s, %s bytes declared)",
            request.kind.value,
            validated.media_type,
            validated.size_bytes if validated.size_bytes is not None else "unknown",
        )

        staged: StagedAsset | None = None
        try:
            await self._check_connected(is_disconnected, "staging")
            staged = await self.staging.stage(request.payload, validated, request.kind)
            log.info("Staged %s as %s", request.kind.value, staged.file_name)

            await self._check_connected(is_disconnected, "ownership check")
            record = await self.videos.get_owned_video(request.video_id, request.caller_id)

            await self._check_connected(is_disconnected, "promotion")
            url = await self.promoter.promote(staged, request.kind)
            log.info("Promoted %s to %s", staged.file_name, url)

            await self._check_connected(is_disconnected, "metadata update")
            updated = await self.videos.set_asset_url(record, request.kind, url)
            log.info("Updated %s on video record", request.kind.record_field)

            return updated

        except Exception as error:
            log.warning("Upload failed: %s: %s", type(error).__name__, error)
            raise

        finally:
            if staged is not None:
                self.staging.discard(staged)

    @staticmethod
    async def _check_connected(is_disconnected: DisconnectProbe | None, stage: str) -> None:
        if is_disconnected is not None and await is_disconnected():
            raise UploadCancelled(f"Client disconnected before {stage}")
