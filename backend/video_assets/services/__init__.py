"""
Services package for the video asset service.

- upload_service: Asset upload pipeline (validate, stage, gate, promote, update, clean up)
- staging_service: Local staging writes and cleanup
- promotion_service: Durable promotion of staged thumbnails and videos
- video_service: Ownership gate and asset reference updates
- video_store: MongoDB-backed video record store
- storage_service: S3-compatible storage operations with MinIO/AWS S3

All services are async and are wired together through FastAPI's dependency
system in api/v1/videos.py.
"""
