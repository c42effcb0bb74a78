"""
Video record Pydantic model.

A VideoRecord is owned by exactly one user and references at most one
thumbnail and one video asset. Asset URL fields are only ever changed by the
metadata updater after the referenced object has been promoted.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class VideoRecord(BaseModel):
    """
    Pydantic model for a video record.

    Attributes:
        id: Record identifier (aliased from Mongo _id)
        user_id: Identifier of the owning user
        title: Display title
        description: Free-form description
        thumbnail_url: Reference to the current thumbnail asset, if any
        video_url: Reference to the current video asset, if any
        created_at: Creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)

    Example:
        ```python
        record = VideoRecord(_id="vid-1", user_id="user-1", title="Boots")
        document = record.to_document()
        ```
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., alias="_id", min_length=1, description="Record identifier")
    user_id: str = Field(..., min_length=1, description="Owning user's identifier")
    title: str = Field(default="", max_length=500, description="Video title")
    description: str = Field(default="", description="Video description")
    thumbnail_url: str | None = Field(default=None, description="Thumbnail asset reference")
    video_url: str | None = Field(default=None, description="Video asset reference")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_document(self) -> dict:
        """Serialize for MongoDB storage (``_id`` key)."""
        return self.model_dump(by_alias=True)
