"""End-to-end video generation for one job: capture, assemble, deliver."""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path

from models.job import JobRecord

from .browser import capture_site
from .config import Settings
from .gcs import store_video
from .job_queue import ProgressCallback
from .video_assembly import assemble

logger = logging.getLogger(__name__)

PROGRESS_CAPTURE_START = 15
PROGRESS_CAPTURED = 40
PROGRESS_ENCODE_START = 50
PROGRESS_ENCODED = 80
PROGRESS_UPLOAD_START = 85
PROGRESS_DELIVERED = 95


async def generate_video(job: JobRecord, on_progress: ProgressCallback, *, settings: Settings) -> str:
    """
    Produce and deliver the video for a job, returning its URL.

    The job's temp directory is removed on success and on failure; errors
    propagate so the caller can mark the job failed. Progress stops at 95,
    the caller reports 100 together with completion.
    """
    temp_dir = settings.work_dir / job.id
    frames_dir = temp_dir / "frames"
    output_path = temp_dir / "output.mp4"
    try:
        frames_dir.mkdir(parents=True, exist_ok=True)

        await on_progress(PROGRESS_CAPTURE_START)
        logger.info("[%s] Capturing %s (mode=%s, %ss, %s)", job.id, job.url, job.mode, job.duration, job.format)
        capture = await capture_site(
            job.url,
            duration=job.duration,
            mode=job.mode,
            video_format=job.format,
            output_dir=frames_dir,
            credentials=job.credentials,
            capture_budget=settings.capture_budget_seconds,
        )
        await on_progress(PROGRESS_CAPTURED)
        logger.info("[%s] Captured %d shots", job.id, len(capture.shots))

        await on_progress(PROGRESS_ENCODE_START)
        await assemble(
            capture.shots,
            output_path,
            video_format=job.format,
            options=job.options,
            settings=settings.encoder,
            music_dir=settings.music_dir,
            captions=capture.captions,
        )
        await on_progress(PROGRESS_ENCODED)
        for executed in capture.shots:
            await asyncio.to_thread(shutil.rmtree, executed.shot_dir, True)

        await on_progress(PROGRESS_UPLOAD_START)
        video_url = await store_video(output_path, job.id, public_dir=settings.public_videos_dir)
        await on_progress(PROGRESS_DELIVERED)
        logger.info("[%s] Video delivered: %s", job.id, video_url)
        return video_url
    finally:
        await _cleanup(temp_dir)


async def _cleanup(temp_dir: Path) -> None:
    try:
        await asyncio.to_thread(shutil.rmtree, temp_dir)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("[pipeline] Cleanup of %s failed: %s", temp_dir, exc)
