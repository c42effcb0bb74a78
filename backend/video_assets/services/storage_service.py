"""
S3-compatible storage service for promoted video assets.

This module provides a cloud-agnostic storage service wrapping boto3 operations.
Compatible with both MinIO (development) and AWS S3 (production) environments.

Key Features:
- File upload from a local path (boto3 managed transfer, multipart for large files)
- Post-upload confirmation and metadata via head_object
- Canonical object URL construction for AWS S3 and custom endpoints
- Async-wrapped operations for non-blocking I/O
"""

import asyncio
import logging
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar

import boto3
from boto3.exceptions import Boto3Error
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from video_assets.config import Settings

# Set up module-level logger for tracking S3 operations
logger = logging.getLogger(__name__)

# Type variable for generic async wrapper
T = TypeVar("T")


def async_wrap(func: Callable[..., T]) -> Callable[..., "asyncio.Future[T]"]:
    """
    Decorator to wrap synchronous boto3 operations for async execution.

    Uses asyncio.to_thread to run blocking boto3 operations in a separate
    thread pool, preventing event loop blocking during S3 operations.
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        return await asyncio.to_thread(func, *args, **kwargs)
    return wrapper


class StorageServiceError(Exception):
    """Base exception for storage service errors."""
    pass


class StorageConnectionError(StorageServiceError):
    """Raised when connection to storage backend fails."""
    pass


class StorageCredentialsError(StorageServiceError):
    """Raised when storage credentials are missing or invalid."""
    pass


class StorageOperationError(StorageServiceError):
    """Raised when a storage operation fails."""
    pass


class StorageService:
    """
    S3-compatible storage service for cloud-agnostic file operations.

    Attributes:
        bucket_name: The S3 bucket receiving promoted video files
        endpoint_url: The S3-compatible endpoint URL (None for AWS S3)
        region_name: AWS region name

    Example:
        >>> service = StorageService(
        ...     bucket_name="video-assets",
        ...     endpoint_url="http://localhost:9000",  # MinIO
        ...     access_key="minioadmin",
        ...     secret_key="minioadmin"
        ... )
        >>> await service.upload_file("abc.mp4", file_path="/tmp/abc.mp4", content_type="video/mp4")
        >>> service.object_url("abc.mp4")
        'http://localhost:9000/video-assets/abc.mp4'
    """

    def __init__(
        self,
        bucket_name: str,
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        region_name: str = "us-east-1",
        max_attempts: int = 3,
        read_timeout: int = 60,
        client: Any = None,
    ) -> None:
        """
        Initialize the S3-compatible storage service.

        Args:
            bucket_name: Bucket for all operations
            endpoint_url: S3-compatible endpoint URL (None for AWS S3 default)
            access_key: AWS access key ID or MinIO access key
            secret_key: AWS secret access key or MinIO secret key
            region_name: AWS region (default: us-east-1)
            max_attempts: botocore retry attempts (standard mode)
            read_timeout: socket read timeout in seconds
            client: Pre-built boto3 S3 client (skips client construction)

        Raises:
            StorageCredentialsError: If credentials are missing or invalid
            StorageConnectionError: If the client cannot be constructed
        """
        self.bucket_name = bucket_name
        self.endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        self.region_name = region_name

        if client is not None:
            self._client = client
            return

        logger.info(
            f"Initializing StorageService with bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3 default'}"
        )

        try:
            client_config: Dict[str, Any] = {
                "service_name": "s3",
                "region_name": region_name,
                "config": Config(
                    signature_version="s3v4",
                    retries={"max_attempts": max_attempts, "mode": "standard"},
                    read_timeout=read_timeout,
                ),
            }

            # Add endpoint URL for MinIO or custom S3-compatible storage
            if endpoint_url:
                client_config["endpoint_url"] = endpoint_url
                client_config["config"] = client_config["config"].merge(
                    Config(s3={"addressing_style": "path"})
                )

            # Add credentials if provided (otherwise use environment/IAM role)
            if access_key and secret_key:
                client_config["aws_access_key_id"] = access_key
                client_config["aws_secret_access_key"] = secret_key

            self._client = boto3.client(**client_config)

            logger.info("StorageService S3 client initialized successfully")

        except NoCredentialsError as e:
            error_msg = (
                "S3 credentials not found. Configure S3_ACCESS_KEY_ID and "
                "S3_SECRET_ACCESS_KEY or provide an IAM role."
            )
            logger.error(f"Credential configuration error: {error_msg}")
            raise StorageCredentialsError(error_msg) from e

        except BotoCoreError as e:
            error_msg = f"Failed to initialize S3 client: {str(e)}"
            logger.error(error_msg)
            raise StorageConnectionError(error_msg) from e

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageService":
        """Build a StorageService from application settings."""
        return cls(
            bucket_name=settings.s3_bucket_name,
            endpoint_url=settings.s3_endpoint_url,
            access_key=settings.s3_access_key_id,
            secret_key=settings.s3_secret_access_key,
            region_name=settings.s3_region,
            max_attempts=settings.s3_max_attempts,
            read_timeout=settings.s3_read_timeout_seconds,
        )

    def object_url(self, object_key: str) -> str:
        """
        Return the canonical URL of an object.

        AWS S3 uses virtual-hosted style
        (``https://<bucket>.s3.<region>.amazonaws.com/<key>``); custom endpoints
        such as MinIO use path style (``<endpoint>/<bucket>/<key>``).
        """
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket_name}/{object_key}"
        return f"https://{self.bucket_name}.s3.{self.region_name}.amazonaws.com/{object_key}"

    async def upload_file(
        self,
        object_key: str,
        file_path: str,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Upload a local file to S3 storage and confirm it landed.

        After the transfer a head_object call confirms the object exists and
        supplies its ETag.

        Args:
            object_key: The S3 object key for the uploaded file
            file_path: Local file system path to upload
            content_type: MIME type of the file
            metadata: Optional metadata key-value pairs to attach to object

        Returns:
            Dictionary containing:
                - success: Boolean indicating successful upload
                - object_key: The S3 object key
                - bucket: The bucket name
                - etag: ETag of the uploaded object
                - url: Canonical object URL

        Raises:
            StorageOperationError: If upload fails
        """
        logger.info(f"Uploading file to object_key={object_key}, bucket={self.bucket_name}")

        extra_args: Dict[str, Any] = {}
        if content_type:
            extra_args["ContentType"] = content_type
        if metadata:
            extra_args["Metadata"] = metadata

        try:
            @async_wrap
            def _upload_file() -> None:
                self._client.upload_file(
                    file_path,
                    self.bucket_name,
                    object_key,
                    ExtraArgs=extra_args or None,
                )

            await _upload_file()

        except ClientError as e:
            error_msg = f"Failed to upload file: {e.response['Error']['Message']}"
            logger.error(error_msg)
            raise StorageOperationError(error_msg) from e

        except Boto3Error as e:
            # Managed transfers wrap service errors in S3UploadFailedError
            error_msg = f"Failed to upload file: {str(e)}"
            logger.error(error_msg)
            raise StorageOperationError(error_msg) from e

        except BotoCoreError as e:
            error_msg = f"Storage operation error during file upload: {str(e)}"
            logger.error(error_msg)
            raise StorageOperationError(error_msg) from e

        except OSError as e:
            error_msg = f"File system error during upload: {str(e)}"
            logger.error(error_msg)
            raise StorageOperationError(error_msg) from e

        head = await self.get_file_metadata(object_key)

        logger.info(f"Successfully uploaded file to {object_key}")

        return {
            "success": True,
            "object_key": object_key,
            "bucket": self.bucket_name,
            "etag": head.get("etag", ""),
            "url": self.object_url(object_key),
        }

    async def get_file_metadata(self, object_key: str) -> Dict[str, Any]:
        """
        Fetch object metadata with head_object.

        Returns:
            Dictionary with content_length, content_type, etag and last_modified

        Raises:
            StorageOperationError: If the object is missing or the call fails
        """
        try:
            @async_wrap
            def _head() -> Dict[str, Any]:
                return self._client.head_object(Bucket=self.bucket_name, Key=object_key)

            response = await _head()

        except ClientError as e:
            error_msg = f"Failed to read object metadata: {e.response['Error'].get('Message', '')}"
            logger.error(error_msg)
            raise StorageOperationError(error_msg) from e

        except BotoCoreError as e:
            error_msg = f"Storage operation error during metadata lookup: {str(e)}"
            logger.error(error_msg)
            raise StorageOperationError(error_msg) from e

        return {
            "content_length": response.get("ContentLength", 0),
            "content_type": response.get("ContentType"),
            "etag": str(response.get("ETag", "")).strip('"'),
            "last_modified": response.get("LastModified"),
        }
