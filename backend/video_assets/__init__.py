"""
Video Assets Backend Application Package

This package contains the FastAPI application that attaches media assets to
existing video records. The platform provides:

- Bounded intake of thumbnail (JPEG/PNG) and video (MP4) uploads
- Local staging under collision-resistant random names
- Ownership-gated promotion to durable storage (local asset root or S3/MinIO)
- Write-then-point metadata updates on the video record
- JWT bearer authentication

Package Structure:
- api/: REST API endpoints organized by version (v1)
- core/: Core infrastructure (database, auth)
- models/: Pydantic data models and upload value types
- services/: Business logic layer for the upload pipeline
- utils/: Validation, security and logging helpers
"""

__version__ = "1.0.0"
__app_name__ = "VIDEO-ASSETS"
