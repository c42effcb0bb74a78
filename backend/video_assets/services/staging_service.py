"""
Local staging for validated upload payloads.

The staging writer streams an untrusted payload to an ephemeral file named
with a fresh random token, enforcing the size ceiling on the bytes actually
received. ``discard`` removes the file again and never raises.
"""

import logging
from pathlib import Path

import aiofiles

from video_assets.exceptions import PayloadTooLarge, StagingWriteError
from video_assets.models.upload import AssetKind, RawPayload, StagedAsset, ValidatedPayload
from video_assets.utils.file_validator import format_file_size, max_size_for
from video_assets.utils.security import generate_asset_token


logger = logging.getLogger(__name__)

# Streaming chunk size for staging writes (1 MiB)
CHUNK_SIZE = 1024 * 1024

STAGING_SUBDIRS: dict[AssetKind, str] = {
    AssetKind.THUMBNAIL: "thumbnails",
    AssetKind.VIDEO: "videos",
}


class StagingService:
    """
    Write payloads to local staging and clean them up afterwards.

    Attributes:
        staging_root: Directory holding one subdirectory per asset kind
    """

    def __init__(self, staging_root: Path, chunk_size: int = CHUNK_SIZE) -> None:
        self.staging_root = Path(staging_root)
        self.chunk_size = chunk_size

    def staging_dir(self, kind: AssetKind) -> Path:
        """Return the staging directory for an asset kind."""
        return self.staging_root / STAGING_SUBDIRS[kind]

    async def stage(
        self,
        payload: RawPayload,
        validated: ValidatedPayload,
        kind: AssetKind,
    ) -> StagedAsset:
        """
        Stream a payload into a new staging file.

        Args:
            payload: Raw payload supplying the bytes
            validated: Result of validate_payload for the same payload
            kind: Asset kind selecting directory and ceiling

        Returns:
            StagedAsset describing the written file

        Raises:
            PayloadTooLarge: If more bytes arrive than the ceiling allows
            StagingWriteError: If the file cannot be written
        """
        file_name = f"{generate_asset_token()}.{validated.extension}"
        target_dir = self.staging_dir(kind)
        local_path = target_dir / file_name
        limit = max_size_for(kind)
        written = 0

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(local_path, "wb") as out:
                while True:
                    chunk = await payload.read(self.chunk_size)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > limit:
                        raise PayloadTooLarge(
                            f"{kind.value.capitalize()} exceeds maximum allowed size "
                            f"({format_file_size(limit)})"
                        )
                    await out.write(chunk)
        except PayloadTooLarge:
            self._remove(local_path)
            logger.warning("Rejected oversized %s upload after %d bytes", kind.value, written)
            raise
        except OSError as e:
            self._remove(local_path)
            logger.exception("Failed to stage %s upload at %s", kind.value, local_path)
            raise StagingWriteError(f"Failed to stage {kind.value} upload") from e
        except BaseException:
            # Cancellation or any other interruption must not leave a partial file
            self._remove(local_path)
            raise

        logger.debug(
            "Staged %s upload at %s (%s)", kind.value, local_path, format_file_size(written)
        )

        return StagedAsset(
            local_path=local_path,
            file_name=file_name,
            media_type=validated.media_type,
            size_bytes=written,
        )

    def discard(self, staged: StagedAsset) -> None:
        """Delete a staged file. Failures are logged, never raised."""
        self._remove(staged.local_path)

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as cleanup_error:
            logger.warning("Failed to clean up staging file '%s': %s", path, cleanup_error)
        else:
            logger.debug("Cleaned up staging file: %s", path)
