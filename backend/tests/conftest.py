"""
Pytest Configuration and Test Fixtures for the video asset service

This module provides fixtures including:
- Settings pointing every filesystem root at tmp_path
- An in-memory video record store standing in for MongoDB
- A mocked boto3 S3 client behind a real StorageService
- Payload builders (real PNG bytes via Pillow, fake MP4 bytes)
- Signed JWTs for owner and non-owner callers
- FastAPI TestClient wired through app.dependency_overrides
"""

from datetime import UTC, datetime, timedelta
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Generator, Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from PIL import Image

from video_assets.api.v1.videos import get_storage_service, get_video_store
from video_assets.config import Settings, get_settings
from video_assets.exceptions import RecordNotFound
from video_assets.main import create_app
from video_assets.models.upload import AssetKind, RawPayload
from video_assets.models.video import VideoRecord
from video_assets.services.promotion_service import AssetPromoter
from video_assets.services.staging_service import StagingService
from video_assets.services.storage_service import StorageService
from video_assets.services.upload_service import UploadService
from video_assets.services.video_service import VideoService


TEST_SECRET_KEY = "test-secret-key-for-jwt-signing-minimum-32-chars"
OWNER_ID = "user-owner"
OTHER_USER_ID = "user-intruder"
VIDEO_ID = "video-1"


# ==============================================================================
# Test Doubles
# ==============================================================================


class InMemoryVideoStore:
    """
    Dict-backed stand-in for VideoStore.

    Records are kept as Mongo-style documents so every read goes through
    VideoRecord validation exactly like the real store.
    """

    def __init__(self) -> None:
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.update_calls = 0
        self.fail_updates_with: Optional[Exception] = None

    def add(self, record: VideoRecord) -> None:
        self.documents[record.id] = record.to_document()

    async def get(self, video_id: str) -> Optional[VideoRecord]:
        document = self.documents.get(video_id)
        return VideoRecord.model_validate(document) if document else None

    async def update_asset_url(
        self, video_id: str, kind: AssetKind, url: str, updated_at: datetime
    ) -> VideoRecord:
        self.update_calls += 1
        if self.fail_updates_with is not None:
            raise self.fail_updates_with
        if video_id not in self.documents:
            raise RecordNotFound(f"Video {video_id} not found")
        document = self.documents[video_id]
        document[kind.record_field] = url
        document["updated_at"] = updated_at
        return VideoRecord.model_validate(document)


class ChunkReader:
    """Async ``read(n)`` over in-memory bytes, like UploadFile.read."""

    def __init__(self, data: bytes, fail_after: Optional[int] = None) -> None:
        self._buffer = BytesIO(data)
        self._fail_after = fail_after
        self.bytes_read = 0

    async def read(self, size: int = -1) -> bytes:
        if self._fail_after is not None and self.bytes_read >= self._fail_after:
            raise OSError("connection reset while reading upload")
        chunk = self._buffer.read(size)
        self.bytes_read += len(chunk)
        return chunk


def make_payload(
    data: bytes,
    media_type: str,
    size: Optional[int] = -1,
    filename: Optional[str] = "upload.bin",
) -> RawPayload:
    """Build a RawPayload; ``size=-1`` declares the true length."""
    return RawPayload(
        media_type=media_type,
        size=len(data) if size == -1 else size,
        read=ChunkReader(data).read,
        filename=filename,
    )


def make_token(subject: Optional[str], secret: str = TEST_SECRET_KEY, **claims: Any) -> str:
    payload: Dict[str, Any] = {"exp": datetime.now(UTC) + timedelta(hours=1), **claims}
    if subject is not None:
        payload["sub"] = subject
    return jwt.encode(payload, secret, algorithm="HS256")


def staged_files(settings: Settings) -> list[Path]:
    """All files currently under the staging root."""
    if not settings.staging_root.exists():
        return []
    return [path for path in settings.staging_root.rglob("*") if path.is_file()]


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings with isolated filesystem roots and a custom S3 endpoint."""
    return Settings(
        app_env="testing",
        app_name="VIDEO-ASSETS-Test",
        debug=True,
        secret_key=TEST_SECRET_KEY,
        mongodb_uri="mongodb://localhost:27017/test_video_assets",
        mongodb_db_name="test_video_assets",
        s3_endpoint_url="http://localhost:9000",
        s3_access_key_id="test-access-key",
        s3_secret_access_key="test-secret-key",
        s3_bucket_name="test-bucket",
        s3_region="us-east-1",
        assets_root=tmp_path / "assets",
        staging_root=tmp_path / "staging",
        public_base_url="https://media.example.test",
    )


# ==============================================================================
# Store and Storage Fixtures
# ==============================================================================


@pytest.fixture
def video_store() -> InMemoryVideoStore:
    """In-memory store seeded with one record owned by OWNER_ID."""
    store = InMemoryVideoStore()
    store.add(
        VideoRecord(
            _id=VIDEO_ID,
            user_id=OWNER_ID,
            title="Launch trailer",
            description="First cut",
        )
    )
    return store


@pytest.fixture
def mock_s3_client() -> MagicMock:
    """
    Mocked boto3 S3 client.

    upload_file copies nothing; head_object reports the object with an ETag.
    """
    client = MagicMock()
    client.upload_file.return_value = None
    client.head_object.return_value = {
        "ContentLength": 1024,
        "ContentType": "video/mp4",
        "ETag": '"d41d8cd98f00b204e9800998ecf8427e"',
    }
    return client


@pytest.fixture
def storage_service(test_settings: Settings, mock_s3_client: MagicMock) -> StorageService:
    return StorageService(
        bucket_name=test_settings.s3_bucket_name,
        endpoint_url=test_settings.s3_endpoint_url,
        region_name=test_settings.s3_region,
        client=mock_s3_client,
    )


@pytest.fixture
def upload_service(
    test_settings: Settings,
    video_store: InMemoryVideoStore,
    storage_service: StorageService,
) -> UploadService:
    return UploadService(
        video_service=VideoService(video_store),
        staging_service=StagingService(test_settings.staging_root),
        promoter=AssetPromoter(test_settings, storage_service),
    )


# ==============================================================================
# Payload Fixtures
# ==============================================================================


@pytest.fixture
def png_bytes() -> bytes:
    """A real 64x64 PNG image."""
    buffer = BytesIO()
    Image.new("RGB", (64, 64), color=(200, 40, 40)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def mp4_bytes() -> bytes:
    """Bytes starting with an MP4 ftyp box; content is never inspected."""
    return b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom" + b"\x00" * 4096


# ==============================================================================
# Auth Fixtures
# ==============================================================================


@pytest.fixture
def owner_token() -> str:
    return make_token(OWNER_ID)


@pytest.fixture
def other_token() -> str:
    return make_token(OTHER_USER_ID)


@pytest.fixture
def owner_headers(owner_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {owner_token}"}


# ==============================================================================
# FastAPI Client Fixture
# ==============================================================================


@pytest.fixture
def test_client(
    test_settings: Settings,
    video_store: InMemoryVideoStore,
    storage_service: StorageService,
) -> Generator[TestClient, None, None]:
    """
    TestClient over an app built from test settings.

    Startup events are not run, so no MongoDB connection is attempted; the
    record store and S3 client are replaced through dependency overrides.
    """
    test_settings.assets_root.mkdir(parents=True, exist_ok=True)
    app = create_app(test_settings)
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_video_store] = lambda: video_store
    app.dependency_overrides[get_storage_service] = lambda: storage_service

    yield TestClient(app)

    app.dependency_overrides.clear()
