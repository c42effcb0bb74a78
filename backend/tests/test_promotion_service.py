"""
Tests for durable promotion of staged thumbnails and videos.
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import boto3
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from botocore.stub import Stubber

from video_assets.config import Settings
from video_assets.exceptions import PromotionError
from video_assets.models.upload import AssetKind, StagedAsset
from video_assets.services.promotion_service import AssetPromoter
from video_assets.services.storage_service import StorageOperationError, StorageService


def _stage(directory: Path, name: str, data: bytes, media_type: str) -> StagedAsset:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(data)
    return StagedAsset(local_path=path, file_name=name, media_type=media_type, size_bytes=len(data))


class TestThumbnailPromotion:
    """Thumbnails land in the served assets root."""

    @pytest.mark.asyncio
    async def test_copies_under_same_name(
        self, test_settings: Settings, storage_service: StorageService, png_bytes: bytes
    ) -> None:
        staged = _stage(test_settings.staging_root / "thumbnails", "abc.png", png_bytes, "image/png")
        promoter = AssetPromoter(test_settings, storage_service)

        url = await promoter.promote(staged, AssetKind.THUMBNAIL)

        assert url == "https://media.example.test/assets/abc.png"
        assert (test_settings.assets_root / "abc.png").read_bytes() == png_bytes
        # Promotion copies; the staged file is left for cleanup
        assert staged.local_path.exists()

    @pytest.mark.asyncio
    async def test_base_url_comes_from_settings(
        self, tmp_path: Path, storage_service: StorageService, png_bytes: bytes
    ) -> None:
        settings = Settings(
            assets_root=tmp_path / "served",
            staging_root=tmp_path / "staging",
            public_base_url="http://cdn.internal:8080/",
        )
        staged = _stage(settings.staging_root, "x.png", png_bytes, "image/png")

        url = await AssetPromoter(settings, storage_service).promote(staged, AssetKind.THUMBNAIL)

        assert url == "http://cdn.internal:8080/assets/x.png"

    @pytest.mark.asyncio
    async def test_missing_staged_file_raises_promotion_error(
        self, test_settings: Settings, storage_service: StorageService, tmp_path: Path
    ) -> None:
        staged = StagedAsset(
            local_path=tmp_path / "vanished.png",
            file_name="vanished.png",
            media_type="image/png",
            size_bytes=10,
        )
        with pytest.raises(PromotionError):
            await AssetPromoter(test_settings, storage_service).promote(staged, AssetKind.THUMBNAIL)

        assert not (test_settings.assets_root / "vanished.png").exists()

    @pytest.mark.asyncio
    async def test_interrupted_copy_leaves_nothing_served(
        self, test_settings: Settings, storage_service: StorageService, png_bytes: bytes
    ) -> None:
        staged = _stage(test_settings.staging_root, "cut.png", png_bytes, "image/png")

        def copy_half_then_fail(src, dst):
            Path(dst).write_bytes(png_bytes[: len(png_bytes) // 2])
            raise OSError(28, "No space left on device")

        with patch(
            "video_assets.services.promotion_service.shutil.copyfile",
            side_effect=copy_half_then_fail,
        ):
            with pytest.raises(PromotionError):
                await AssetPromoter(test_settings, storage_service).promote(
                    staged, AssetKind.THUMBNAIL
                )

        assert list(test_settings.assets_root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_replaces_existing_file_whole(
        self, test_settings: Settings, storage_service: StorageService, png_bytes: bytes
    ) -> None:
        test_settings.assets_root.mkdir(parents=True, exist_ok=True)
        (test_settings.assets_root / "same.png").write_bytes(b"old")
        staged = _stage(test_settings.staging_root, "same.png", png_bytes, "image/png")

        await AssetPromoter(test_settings, storage_service).promote(staged, AssetKind.THUMBNAIL)

        assert [p.name for p in test_settings.assets_root.iterdir()] == ["same.png"]
        assert (test_settings.assets_root / "same.png").read_bytes() == png_bytes


class TestVideoPromotion:
    """Videos are uploaded to the S3 bucket."""

    @pytest.mark.asyncio
    async def test_uploads_staged_file(
        self,
        test_settings: Settings,
        storage_service: StorageService,
        mock_s3_client: MagicMock,
        mp4_bytes: bytes,
    ) -> None:
        staged = _stage(test_settings.staging_root / "videos", "clip.mp4", mp4_bytes, "video/mp4")

        url = await AssetPromoter(test_settings, storage_service).promote(staged, AssetKind.VIDEO)

        assert url == "http://localhost:9000/test-bucket/clip.mp4"
        mock_s3_client.upload_file.assert_called_once_with(
            str(staged.local_path),
            "test-bucket",
            "clip.mp4",
            ExtraArgs={"ContentType": "video/mp4"},
        )
        mock_s3_client.head_object.assert_called_once_with(Bucket="test-bucket", Key="clip.mp4")

    @pytest.mark.asyncio
    async def test_aws_object_url(self, test_settings: Settings, mp4_bytes: bytes) -> None:
        client = MagicMock()
        client.head_object.return_value = {"ETag": '"abc"'}
        storage = StorageService(bucket_name="prod-videos", region_name="eu-west-1", client=client)
        staged = _stage(test_settings.staging_root, "k.mp4", mp4_bytes, "video/mp4")

        url = await AssetPromoter(test_settings, storage).promote(staged, AssetKind.VIDEO)

        assert url == "https://prod-videos.s3.eu-west-1.amazonaws.com/k.mp4"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"),
            EndpointConnectionError(endpoint_url="http://localhost:9000"),
        ],
    )
    async def test_store_failure_raises_promotion_error(
        self,
        test_settings: Settings,
        storage_service: StorageService,
        mock_s3_client: MagicMock,
        mp4_bytes: bytes,
        error: Exception,
    ) -> None:
        mock_s3_client.upload_file.side_effect = error
        staged = _stage(test_settings.staging_root, "fail.mp4", mp4_bytes, "video/mp4")

        with pytest.raises(PromotionError):
            await AssetPromoter(test_settings, storage_service).promote(staged, AssetKind.VIDEO)

    @pytest.mark.asyncio
    async def test_storage_service_error_is_chained(
        self, test_settings: Settings, mp4_bytes: bytes
    ) -> None:
        storage = MagicMock(spec=StorageService)
        storage.upload_file = AsyncMock(side_effect=StorageOperationError("quota exceeded"))
        staged = _stage(test_settings.staging_root, "q.mp4", mp4_bytes, "video/mp4")

        with pytest.raises(PromotionError, match="quota exceeded") as exc_info:
            await AssetPromoter(test_settings, storage).promote(staged, AssetKind.VIDEO)

        assert isinstance(exc_info.value.__cause__, StorageOperationError)

    @pytest.mark.asyncio
    async def test_managed_transfer_failure_raises_promotion_error(
        self, test_settings: Settings, mp4_bytes: bytes
    ) -> None:
        # A real client: upload_file reports service errors as S3UploadFailedError
        client = boto3.client(
            "s3",
            region_name="us-east-1",
            aws_access_key_id="testing",
            aws_secret_access_key="testing",
        )
        stubber = Stubber(client)
        stubber.add_client_error(
            "put_object", service_error_code="AccessDenied", http_status_code=403
        )
        storage = StorageService(bucket_name="denied-bucket", client=client)
        staged = _stage(test_settings.staging_root, "denied.mp4", mp4_bytes, "video/mp4")

        with stubber:
            with pytest.raises(PromotionError, match="denied.mp4") as exc_info:
                await AssetPromoter(test_settings, storage).promote(staged, AssetKind.VIDEO)

        assert isinstance(exc_info.value.__cause__, StorageOperationError)
