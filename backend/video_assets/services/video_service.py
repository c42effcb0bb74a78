"""
Video record service: ownership checks and asset reference updates.
"""

import logging
from datetime import UTC, datetime

from video_assets.exceptions import Forbidden, RecordNotFound
from video_assets.models.upload import AssetKind
from video_assets.models.video import VideoRecord
from video_assets.services.video_store import VideoStore


logger = logging.getLogger(__name__)


class VideoService:
    """
    Business logic over the video record store.

    Example:
        ```python
        service = VideoService(VideoStore(collection))
        record = await service.get_owned_video("vid-1", caller_id="user-1")
        record = await service.set_asset_url(record, AssetKind.VIDEO, url)
        ```
    """

    def __init__(self, store: VideoStore) -> None:
        self.store = store

    async def get_video(self, video_id: str) -> VideoRecord:
        """
        Fetch a record.

        Raises:
            RecordNotFound: If no record has that id.
        """
        record = await self.store.get(video_id)
        if record is None:
            raise RecordNotFound(f"Video {video_id} not found")
        return record

    async def get_owned_video(self, video_id: str, caller_id: str) -> VideoRecord:
        """
        Fetch a record and confirm the caller owns it.

        Raises:
            RecordNotFound: If no record has that id.
            Forbidden: If the record belongs to another user.
        """
        record = await self.get_video(video_id)
        if record.user_id != caller_id:
            logger.warning(
                "User %s attempted to modify video %s owned by %s",
                caller_id,
                video_id,
                record.user_id,
            )
            raise Forbidden(f"Not allowed to modify video {video_id}")
        return record

    async def set_asset_url(self, record: VideoRecord, kind: AssetKind, url: str) -> VideoRecord:
        """
        Point one asset field of a record at a promoted object and persist it.

        Only that field and ``updated_at`` are written; the returned record is
        the stored one, so it reflects changes made since ``record`` was read.
        The previous reference, if any, is simply replaced; the object it named
        is not deleted.

        Raises:
            RecordNotFound: If the record disappeared since it was read.
            PersistenceError: If the store rejects the write.
        """
        updated = await self.store.update_asset_url(record.id, kind, url, datetime.now(UTC))
        logger.info("Set %s of video %s to %s", kind.record_field, record.id, url)
        return updated
