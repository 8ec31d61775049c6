"""
Tests for ArtifactStorage.
"""

import asyncio
from unittest.mock import Mock, patch

import pytest

from src.services.storage import AUDIO_FOLDER, CARD_FOLDER, ArtifactStorage, StorageError, sanitize_filename


class TestSanitizeFilename:
    def test_sanitize(self):
        test_cases = [
            ("card.jpg", "card.jpg"),
            ("My Card (1).JPG", "my_card_1_.jpg"),
            ("booth__intro!!.m4a", "booth_intro_.m4a"),
            ("über-lead.webm", "_ber-lead.webm"),
        ]

        for name, expected in test_cases:
            assert sanitize_filename(name) == expected, f"Failed for: {name}"


class TestArtifactStorage:
    """Test cases for ArtifactStorage."""

    @pytest.fixture
    def bucket(self):
        bucket = Mock()
        bucket.get_public_url.return_value = "https://proj.supabase.co/storage/v1/object/public/leads/x"
        bucket.create_signed_url.return_value = {"signedURL": "https://proj.supabase.co/sign/x?token=t"}
        bucket.download.return_value = b"audio"
        return bucket

    @pytest.fixture
    def storage(self, bucket):
        client = Mock()
        client.storage.from_.return_value = bucket
        return ArtifactStorage(client, "leads", temporary_url_ttl_seconds=900)

    def test_upload(self, storage, bucket):
        with patch("src.services.storage.time.time", return_value=1700000000.5):
            artifact = asyncio.run(storage.upload(b"img", "My Card.JPG", "image/jpeg", CARD_FOLDER))

        assert artifact.path == "business-cards/1700000000500_my_card.jpg"
        assert artifact.public_url.startswith("https://proj.supabase.co/")
        bucket.upload.assert_called_once_with(
            "business-cards/1700000000500_my_card.jpg", b"img", {"content-type": "image/jpeg"}
        )

    def test_upload_failure(self, storage, bucket):
        bucket.upload.side_effect = Exception("bucket not found")

        with pytest.raises(StorageError, match="bucket not found"):
            asyncio.run(storage.upload(b"a", "a.m4a", "audio/m4a", AUDIO_FOLDER))

    def test_temporary_url(self, storage, bucket):
        url = asyncio.run(storage.temporary_url("audio/1_a.m4a"))

        assert url == "https://proj.supabase.co/sign/x?token=t"
        bucket.create_signed_url.assert_called_once_with("audio/1_a.m4a", 900)

    def test_temporary_url_alternate_key(self, storage, bucket):
        bucket.create_signed_url.return_value = {"signedUrl": "https://signed"}

        assert asyncio.run(storage.temporary_url("audio/1_a.m4a")) == "https://signed"

    def test_temporary_url_missing(self, storage, bucket):
        bucket.create_signed_url.return_value = {"error": "not found"}

        with pytest.raises(StorageError):
            asyncio.run(storage.temporary_url("audio/missing.m4a"))

    def test_download(self, storage, bucket):
        assert asyncio.run(storage.download("audio/1_a.m4a")) == b"audio"

    def test_download_failure(self, storage, bucket):
        bucket.download.side_effect = Exception("Object not found")

        with pytest.raises(StorageError):
            asyncio.run(storage.download("audio/missing.m4a"))
