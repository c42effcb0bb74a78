"""
Video Asset Service - FastAPI Application Entry Point.

This module initializes the FastAPI application with CORS middleware,
registers the v1 API router, serves promoted thumbnails under /assets and
configures startup/shutdown event handlers for logging, MongoDB and the
local asset directories.

Every AssetUploadError raised while handling a request is answered by a
single exception handler with the error's status code and a body of the form
``{"error": "<ErrorClass>", "detail": "<message>"}``.
"""

import logging
from datetime import UTC, datetime

import uvicorn

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pymongo.errors import PyMongoError

from video_assets import __app_name__, __version__
from video_assets.api.v1 import api_router
from video_assets.config import Settings, get_settings
from video_assets.core.database import close_db, init_db
from video_assets.exceptions import AssetUploadError, AuthError
from video_assets.utils.logger import setup_logging


logger = logging.getLogger(__name__)


# =============================================================================
# Exception Handlers
# =============================================================================


async def asset_upload_error_handler(request: Request, exc: AssetUploadError) -> JSONResponse:
    """Serialize pipeline and auth errors with their status code."""
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s: %s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc.message,
        )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": type(exc).__name__, "detail": exc.message},
        headers=headers,
    )


# =============================================================================
# Application Factory
# =============================================================================


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; defaults to get_settings().
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Attach thumbnails and video files to video records",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AssetUploadError, asset_upload_error_handler)

    @app.on_event("startup")
    async def startup_event() -> None:
        """
        Configure logging, create the asset directories and connect to MongoDB.

        A failed database connection is logged and startup continues so the
        health check endpoint stays reachable.
        """
        setup_logging(
            log_level=settings.log_level,
            json_logs=settings.json_logs,
            include_file_logging=settings.log_to_file,
            log_dir=settings.log_dir,
            log_filename=settings.log_filename,
        )

        settings.assets_root.mkdir(parents=True, exist_ok=True)
        settings.staging_root.mkdir(parents=True, exist_ok=True)

        try:
            await init_db(settings)
        except (RuntimeError, PyMongoError):
            logger.exception("Failed to initialize database connection")

        logger.info("%s started on %s:%d", settings.app_name, settings.host, settings.port)

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        """Close the MongoDB connection pool."""
        await close_db()
        logger.info("%s shutdown complete", settings.app_name)

    @app.get("/", tags=["root"])
    async def root() -> dict:
        """API information and navigation."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "description": "Attach thumbnails and video files to video records",
            "docs": "/docs",
        }

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        """
        Liveness check for container orchestration.

        Returns immediately without checking backend dependencies.
        """
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "service": __app_name__,
        }

    app.include_router(api_router, prefix="/api/v1")

    # Promoted thumbnails; the directory is created at startup
    app.mount(
        "/assets",
        StaticFiles(directory=settings.assets_root, check_dir=False),
        name="assets",
    )

    return app


app = create_app()


if __name__ == "__main__":
    _settings = get_settings()
    uvicorn.run(
        "video_assets.main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.debug,
        log_level=_settings.log_level.lower(),
    )
