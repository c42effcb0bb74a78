"""
Exception hierarchy for the asset upload pipeline.

Every failure the pipeline can surface derives from AssetUploadError and
carries the HTTP status the API layer answers with. Client input errors
(MissingPayload, PayloadTooLarge, UnsupportedMediaType) share the
ValidationError base; the remaining classes cover not-found, authorization
and infrastructure failures.
"""

from fastapi import status


class AssetUploadError(Exception):
    """Base exception for asset upload errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__doc__ or self.__class__.__name__)
        self.message = str(self.args[0])


class ValidationError(AssetUploadError):
    """Upload payload failed validation."""

    status_code = status.HTTP_400_BAD_REQUEST


class MissingPayload(ValidationError):
    """Expected form file is missing from the upload."""

    status_code = status.HTTP_400_BAD_REQUEST


class PayloadTooLarge(ValidationError):
    """Upload exceeds the size ceiling for its asset kind."""

    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


class UnsupportedMediaType(ValidationError):
    """Declared media type is not allowed for this asset kind."""

    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE


class AuthError(AssetUploadError):
    """Bearer credential is missing, malformed or invalid."""

    status_code = status.HTTP_401_UNAUTHORIZED


class RecordNotFound(AssetUploadError):
    """Video record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(AssetUploadError):
    """Caller does not own the video record."""

    status_code = status.HTTP_403_FORBIDDEN


class UploadCancelled(AssetUploadError):
    """Client disconnected before the upload completed."""

    # nginx convention for "client closed request"
    status_code = 499


class StagingWriteError(AssetUploadError):
    """Writing the payload to local staging failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class PromotionError(AssetUploadError):
    """Copying the staged asset to durable storage failed."""

    status_code = status.HTTP_502_BAD_GATEWAY


class PersistenceError(AssetUploadError):
    """Video record store is unavailable or rejected the write."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
