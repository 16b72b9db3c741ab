"""Video delivery: GCS upload with public or signed URLs, or local passthrough."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path

from .errors import StorageError

logger = logging.getLogger(__name__)

VIDEO_URL_EXPIRATION_SECONDS = 24 * 3600  # 24 hours
VIDEO_CONTENT_TYPE = "video/mp4"


def get_bucket_name() -> str | None:
    """Bucket name from env; None means no bucket is configured."""
    return os.environ.get("GCS_BUCKET", "").strip() or None


def get_public_base_url() -> str | None:
    return os.environ.get("GCS_PUBLIC_URL", "").strip().rstrip("/") or None


def video_blob_name(job_id: str) -> str:
    return f"videos/{job_id}.mp4"


def upload_file(
    blob_name: str,
    local_path: Path,
    *,
    bucket_name: str,
    content_type: str = VIDEO_CONTENT_TYPE,
) -> None:
    """
    Upload a local file to a GCS object.

    :param blob_name: Object path in bucket, e.g. "videos/abc123.mp4"
    :param local_path: File to upload
    :param bucket_name: GCS bucket
    """
    from google.cloud import storage

    client = storage.Client()
    bucket = client.bucket(bucket_name)
    blob = bucket.blob(blob_name)
    blob.upload_from_filename(str(local_path), content_type=content_type)


def generate_signed_url(
    blob_name: str,
    *,
    bucket_name: str,
    expiration_seconds: int = VIDEO_URL_EXPIRATION_SECONDS,
    method: str = "GET",
) -> str:
    """
    Generate a V4 signed URL for a GCS object.

    Uses default credentials (GOOGLE_APPLICATION_CREDENTIALS or ADC).

    :param blob_name: Object path in bucket, e.g. "videos/abc123.mp4"
    :param bucket_name: GCS bucket
    :param expiration_seconds: URL validity in seconds (default 24h)
    :param method: HTTP method for the signed URL ("GET" for download)
    :return: Signed URL string
    """
    from google.cloud import storage

    client = storage.Client()
    bucket = client.bucket(bucket_name)
    blob = bucket.blob(blob_name)
    expiration = datetime.now(timezone.utc) + timedelta(seconds=expiration_seconds)
    return blob.generate_signed_url(
        expiration=expiration,
        method=method,
        version="v4",
    )


def upload_video(local_path: Path, job_id: str, *, bucket_name: str) -> str:
    """Upload the encoded video and return its public or signed URL."""
    blob_name = video_blob_name(job_id)
    try:
        upload_file(blob_name, local_path, bucket_name=bucket_name)
        public = get_public_base_url()
        if public:
            return f"{public}/{blob_name}"
        return generate_signed_url(blob_name, bucket_name=bucket_name)
    except Exception as exc:
        raise StorageError(f"Failed to upload video: {exc}") from exc


def publish_local(local_path: Path, job_id: str, public_dir: Path) -> str:
    """Copy the video into the public videos directory and return its served path."""
    try:
        public_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(local_path, public_dir / f"{job_id}.mp4")
    except OSError as exc:
        raise StorageError(f"Failed to publish video locally: {exc}") from exc
    return f"/videos/{job_id}.mp4"


async def store_video(local_path: Path, job_id: str, *, public_dir: Path) -> str:
    """Deliver the video: GCS when a bucket is configured, else the local public dir."""
    bucket_name = get_bucket_name()
    if bucket_name is None:
        url = await asyncio.to_thread(publish_local, local_path, job_id, public_dir)
        logger.info("[gcs] No bucket configured, video served locally at %s", url)
        return url
    logger.info("[gcs] Uploading %s to gs://%s", job_id, bucket_name)
    url = await asyncio.to_thread(upload_video, local_path, job_id, bucket_name=bucket_name)
    logger.info("[gcs] Upload complete for %s", job_id)
    return url
