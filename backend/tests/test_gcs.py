"""Tests for video delivery: GCS signed/public URLs and local passthrough."""

import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from services.errors import StorageError
from services.gcs import (
    VIDEO_URL_EXPIRATION_SECONDS,
    generate_signed_url,
    get_bucket_name,
    get_public_base_url,
    publish_local,
    store_video,
    video_blob_name,
)


def _mock_storage():
    mock_blob = MagicMock()
    mock_blob.generate_signed_url.return_value = "https://storage.example.com/signed"

    mock_bucket = MagicMock()
    mock_bucket.blob.return_value = mock_blob

    mock_client = MagicMock()
    mock_client.bucket.return_value = mock_bucket

    mock_storage = MagicMock()
    mock_storage.Client.return_value = mock_client
    # Satisfy "from google.cloud import storage" without real credentials
    mock_cloud = MagicMock()
    mock_cloud.storage = mock_storage
    modules = {"google": MagicMock(), "google.cloud": mock_cloud, "google.cloud.storage": mock_storage}
    return modules, mock_client, mock_bucket, mock_blob


def test_get_bucket_name_unset() -> None:
    with patch.dict("os.environ", {"GCS_BUCKET": ""}, clear=False):
        assert get_bucket_name() is None


def test_get_bucket_name_strips_whitespace() -> None:
    with patch.dict("os.environ", {"GCS_BUCKET": "  promo-videos  "}, clear=False):
        assert get_bucket_name() == "promo-videos"


def test_public_base_url_drops_trailing_slash() -> None:
    with patch.dict("os.environ", {"GCS_PUBLIC_URL": "https://cdn.example.com/"}, clear=False):
        assert get_public_base_url() == "https://cdn.example.com"


def test_video_blob_name() -> None:
    assert video_blob_name("abc123") == "videos/abc123.mp4"


def test_generate_signed_url_builds_correct_parameters() -> None:
    """Mock google.cloud.storage and assert generate_signed_url is called with correct params."""
    modules, mock_client, mock_bucket, mock_blob = _mock_storage()

    with patch.dict(sys.modules, modules):
        url = generate_signed_url(
            "videos/abc123.mp4",
            bucket_name="promo-videos",
            expiration_seconds=3600,
            method="GET",
        )

    assert url == "https://storage.example.com/signed"
    mock_client.bucket.assert_called_once_with("promo-videos")
    mock_bucket.blob.assert_called_once_with("videos/abc123.mp4")
    call_kw = mock_blob.generate_signed_url.call_args[1]
    assert call_kw["method"] == "GET"
    assert call_kw["version"] == "v4"
    now_utc = datetime.now(timezone.utc)
    assert abs((call_kw["expiration"] - now_utc).total_seconds() - 3600) < 5


def test_generate_signed_url_default_expiration_24h() -> None:
    modules, _, _, mock_blob = _mock_storage()

    with patch.dict(sys.modules, modules):
        generate_signed_url("videos/abc123.mp4", bucket_name="promo-videos")

    expiration = mock_blob.generate_signed_url.call_args[1]["expiration"]
    now_utc = datetime.now(timezone.utc)
    assert abs((expiration - now_utc).total_seconds() - VIDEO_URL_EXPIRATION_SECONDS) < 5


@pytest.mark.asyncio
async def test_store_video_uploads_and_signs(tmp_path: Path) -> None:
    video = tmp_path / "output.mp4"
    video.write_bytes(b"mp4")
    modules, _, mock_bucket, mock_blob = _mock_storage()

    with (
        patch.dict(sys.modules, modules),
        patch.dict("os.environ", {"GCS_BUCKET": "promo-videos", "GCS_PUBLIC_URL": ""}, clear=False),
    ):
        url = await store_video(video, "abc123", public_dir=tmp_path / "public")

    assert url == "https://storage.example.com/signed"
    mock_bucket.blob.assert_called_with("videos/abc123.mp4")
    mock_blob.upload_from_filename.assert_called_once_with(str(video), content_type="video/mp4")


@pytest.mark.asyncio
async def test_store_video_prefers_public_url(tmp_path: Path) -> None:
    video = tmp_path / "output.mp4"
    video.write_bytes(b"mp4")
    modules, _, _, mock_blob = _mock_storage()

    with (
        patch.dict(sys.modules, modules),
        patch.dict(
            "os.environ",
            {"GCS_BUCKET": "promo-videos", "GCS_PUBLIC_URL": "https://cdn.example.com"},
            clear=False,
        ),
    ):
        url = await store_video(video, "abc123", public_dir=tmp_path / "public")

    assert url == "https://cdn.example.com/videos/abc123.mp4"
    mock_blob.generate_signed_url.assert_not_called()


@pytest.mark.asyncio
async def test_store_video_wraps_upload_errors(tmp_path: Path) -> None:
    modules, _, _, mock_blob = _mock_storage()
    mock_blob.upload_from_filename.side_effect = RuntimeError("403 Forbidden")

    with (
        patch.dict(sys.modules, modules),
        patch.dict("os.environ", {"GCS_BUCKET": "promo-videos"}, clear=False),
    ):
        with pytest.raises(StorageError, match="403 Forbidden"):
            await store_video(tmp_path / "output.mp4", "abc123", public_dir=tmp_path / "public")


@pytest.mark.asyncio
async def test_store_video_without_bucket_publishes_locally(tmp_path: Path) -> None:
    video = tmp_path / "output.mp4"
    video.write_bytes(b"mp4 bytes")

    with patch.dict("os.environ", {"GCS_BUCKET": ""}, clear=False):
        url = await store_video(video, "abc123", public_dir=tmp_path / "public")

    assert url == "/videos/abc123.mp4"
    assert (tmp_path / "public" / "abc123.mp4").read_bytes() == b"mp4 bytes"


def test_publish_local_missing_file(tmp_path: Path) -> None:
    with pytest.raises(StorageError):
        publish_local(tmp_path / "missing.mp4", "abc123", tmp_path / "public")
