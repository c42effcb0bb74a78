"""
API v1 Router Aggregator.

Combines all v1 endpoint routers into a single APIRouter for registration
with the main FastAPI application under the /api/v1 prefix.

Router Structure:
    - /videos: Video records and their thumbnail/video asset uploads
"""

import logging

from fastapi import APIRouter

from video_assets.api.v1.videos import router as videos_router


# Configure logger
logger = logging.getLogger(__name__)

# Create the main API v1 router
api_router = APIRouter()

api_router.include_router(
    videos_router,
    prefix="/videos",
    tags=["videos"],
)


__all__ = ["api_router"]
