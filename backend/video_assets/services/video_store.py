"""
Video record store backed by the MongoDB ``videos`` collection.

Thin async wrapper over a Motor collection. Driver failures surface as
PersistenceError so callers never see pymongo exceptions.
"""

import logging
from datetime import datetime

from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import ValidationError as PydanticValidationError
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from video_assets.exceptions import PersistenceError, RecordNotFound
from video_assets.models.upload import AssetKind
from video_assets.models.video import VideoRecord


logger = logging.getLogger(__name__)


class VideoStore:
    """
    Read and write VideoRecord documents.

    Example:
        ```python
        store = VideoStore(get_db_client().get_videos_collection())
        record = await store.get("vid-1")
        ```
    """

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self._collection = collection

    async def get(self, video_id: str) -> VideoRecord | None:
        """
        Fetch a record by id.

        Returns:
            The record, or None if no document has that id.

        Raises:
            PersistenceError: If the query fails or the stored document is malformed.
        """
        try:
            document = await self._collection.find_one({"_id": video_id})
        except PyMongoError as e:
            logger.exception("Failed to load video record %s", video_id)
            raise PersistenceError(f"Failed to load video record {video_id}") from e

        if document is None:
            return None

        try:
            return VideoRecord.model_validate(document)
        except PydanticValidationError as e:
            logger.error("Stored video record %s is malformed: %s", video_id, e)
            raise PersistenceError(f"Video record {video_id} is malformed") from e

    async def update_asset_url(
        self, video_id: str, kind: AssetKind, url: str, updated_at: datetime
    ) -> VideoRecord:
        """
        Set one asset reference and the modification time, nothing else.

        Other fields are left as the database holds them, so a concurrent
        change to the other asset reference survives this write.

        Returns:
            The record as stored after the update.

        Raises:
            RecordNotFound: If the record no longer exists.
            PersistenceError: If the write fails or the result is malformed.
        """
        try:
            document = await self._collection.find_one_and_update(
                {"_id": video_id},
                {"$set": {kind.record_field: url, "updated_at": updated_at}},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.exception("Failed to update video record %s", video_id)
            raise PersistenceError(f"Failed to update video record {video_id}") from e

        if document is None:
            raise RecordNotFound(f"Video {video_id} not found")

        logger.debug("Set %s of video record %s", kind.record_field, video_id)
        try:
            return VideoRecord.model_validate(document)
        except PydanticValidationError as e:
            logger.error("Stored video record %s is malformed: %s", video_id, e)
            raise PersistenceError(f"Video record {video_id} is malformed") from e
