"""
Models Package for the video asset service.

Models Overview:
    - VideoRecord: Video metadata with owner and asset references
    - AssetKind: Thumbnail or video, selecting limits and targets
    - RawPayload / ValidatedPayload / UploadRequest / StagedAsset:
      value types that flow through the upload pipeline
"""

from video_assets.models.upload import (
    AssetKind,
    RawPayload,
    StagedAsset,
    UploadRequest,
    ValidatedPayload,
)
from video_assets.models.video import VideoRecord


__all__ = [
    "AssetKind",
    "RawPayload",
    "StagedAsset",
    "UploadRequest",
    "ValidatedPayload",
    "VideoRecord",
]
