"""
Durable promotion of staged assets.

Thumbnails are copied into the statically served assets directory and
referenced through the public base URL. Videos are uploaded to the S3 bucket
and referenced by their canonical object URL. Either way the returned
reference only exists once the durable copy does.
"""

import asyncio
import logging
import os
import shutil
from pathlib import Path

from video_assets.config import Settings
from video_assets.exceptions import PromotionError
from video_assets.models.upload import AssetKind, StagedAsset
from video_assets.services.storage_service import StorageService, StorageServiceError


logger = logging.getLogger(__name__)

# URL prefix under which promoted thumbnails are served
ASSETS_URL_PATH = "/assets"


class AssetPromoter:
    """
    Copy a staged asset to its durable location and return a reference to it.

    Attributes:
        settings: Settings providing assets_root and public_base_url
        storage: StorageService for video objects
    """

    def __init__(self, settings: Settings, storage_service: StorageService) -> None:
        self.settings = settings
        self.storage = storage_service

    async def promote(self, staged: StagedAsset, kind: AssetKind) -> str:
        """
        Promote a staged asset.

        Raises:
            PromotionError: If the durable copy could not be made.
        """
        if kind is AssetKind.THUMBNAIL:
            return await self._promote_thumbnail(staged)
        return await self._promote_video(staged)

    def thumbnail_url(self, file_name: str) -> str:
        return f"{self.settings.public_base_url}{ASSETS_URL_PATH}/{file_name}"

    async def _promote_thumbnail(self, staged: StagedAsset) -> str:
        target = self.settings.assets_root / staged.file_name
        try:
            await asyncio.to_thread(_copy_into_place, staged.local_path, target)
        except OSError as e:
            logger.exception("Failed to promote thumbnail %s", staged.file_name)
            raise PromotionError(f"Failed to store thumbnail {staged.file_name}") from e

        logger.info("Promoted thumbnail %s to %s", staged.file_name, target)
        return self.thumbnail_url(staged.file_name)

    async def _promote_video(self, staged: StagedAsset) -> str:
        try:
            result = await self.storage.upload_file(
                object_key=staged.file_name,
                file_path=str(staged.local_path),
                content_type=staged.media_type,
            )
        except StorageServiceError as e:
            raise PromotionError(f"Failed to store video {staged.file_name}: {e}") from e

        logger.info(
            "Promoted video %s to bucket %s (etag=%s)",
            staged.file_name,
            result.get("bucket"),
            result.get("etag"),
        )
        return result.get("url") or self.storage.object_url(staged.file_name)


def _copy_into_place(source: Path, target: Path) -> None:
    """
    Copy ``source`` to ``target`` so that ``target`` is either absent or complete.

    The bytes go to a hidden sibling first and are renamed over ``target``;
    a failed copy removes the sibling.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    partial = target.with_name(f".{target.name}.partial")
    try:
        shutil.copyfile(source, partial)
        os.replace(partial, target)
    except OSError:
        partial.unlink(missing_ok=True)
        raise
