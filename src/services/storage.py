"""
Artifact Storage.

Stores raw booth recordings and business-card photos in a Supabase
Storage bucket. The permanent public URL becomes the lead's ``source``;
recordings also get a short-lived signed URL (``raw_audio_url``).
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Any

from supabase import Client

from src.logging_config import get_logger

logger = get_logger(__name__)

AUDIO_FOLDER = "audio"
CARD_FOLDER = "business-cards"


class StorageError(RuntimeError):
    """Uploading, signing or downloading an artifact failed."""


@dataclass(frozen=True)
class StoredArtifact:
    path: str
    public_url: str


def sanitize_filename(filename: str) -> str:
    """Make an uploaded filename safe for use in a storage key."""
    cleaned = re.sub(r"[^a-zA-Z0-9.-]", "_", filename)
    cleaned = re.sub(r"_{2,}", "_", cleaned)
    return cleaned.lower()


class ArtifactStorage:
    """Wrapper around a Supabase Storage bucket."""

    def __init__(self, client: Client, bucket: str, temporary_url_ttl_seconds: int = 3600) -> None:
        self._client = client
        self.bucket = bucket
        self.temporary_url_ttl_seconds = temporary_url_ttl_seconds

    def _bucket(self) -> Any:
        return self._client.storage.from_(self.bucket)

    async def upload(
        self,
        data: bytes,
        filename: str,
        mimetype: str,
        folder: str,
    ) -> StoredArtifact:
        """Upload one artifact and return its storage path and public URL."""
        path = f"{folder}/{int(time.time() * 1000)}_{sanitize_filename(filename)}"

        try:
            self._bucket().upload(path, data, {"content-type": mimetype})
            public_url = self._bucket().get_public_url(path)
        except Exception as e:
            logger.error("artifact_upload_error", path=path, error=str(e))
            raise StorageError(f"Failed to upload {filename}: {e}") from e

        logger.info("artifact_uploaded", path=path, size=len(data), mimetype=mimetype)
        return StoredArtifact(path=path, public_url=public_url)

    async def temporary_url(self, path: str) -> str:
        """Create a signed URL that expires after the configured TTL."""
        try:
            result = self._bucket().create_signed_url(path, self.temporary_url_ttl_seconds)
        except Exception as e:
            logger.error("artifact_sign_error", path=path, error=str(e))
            raise StorageError(f"Failed to sign {path}: {e}") from e

        url = None
        if isinstance(result, dict):
            # storage3 has returned both spellings across releases
            url = result.get("signedURL") or result.get("signedUrl")
        if not url:
            raise StorageError(f"No signed URL returned for {path}")
        return url

    async def download(self, path: str) -> bytes:
        try:
            return self._bucket().download(path)
        except Exception as e:
            logger.error("artifact_download_error", path=path, error=str(e))
            raise StorageError(f"Failed to download {path}: {e}") from e
