"""Job intake, status updates and the single-consumer worker loop."""

from __future__ import annotations

import asyncio
import logging
import secrets
import string
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from models.job import JobRecord, JobRequest, JobStatus

from .errors import InvalidJobError, RateLimitedError
from .progress_hub import ProgressHub
from .store import JobStore

logger = logging.getLogger(__name__)

_JOB_ALPHABET = string.ascii_letters + string.digits + "_-"
_JOB_ID_LENGTH = 21

PROCESSING_START_PROGRESS = 10
INITIAL_BACKOFF_SECONDS = 1.0
MAX_BACKOFF_SECONDS = 30.0

ProgressCallback = Callable[[int], Awaitable[None]]
VideoGenerator = Callable[[JobRecord, ProgressCallback], Awaitable[str]]


def generate_job_id() -> str:
    """URL-safe random job id."""
    return "".join(secrets.choice(_JOB_ALPHABET) for _ in range(_JOB_ID_LENGTH))


def _validation_message(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        msg = str(error.get("msg", "invalid value")).removeprefix("Value error, ")
        loc = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(messages)


class JobQueue:
    """Creates, reads and updates jobs against an injected store."""

    def __init__(
        self,
        store: JobStore,
        *,
        max_duration: int = 60,
        rate_limit_seconds: int = 3600,
        hub: ProgressHub | None = None,
    ) -> None:
        self.store = store
        self.max_duration = max_duration
        self.rate_limit_seconds = rate_limit_seconds
        self.hub = hub

    async def submit_job(self, payload: dict[str, Any] | JobRequest, *, client_id: str | None = None) -> JobRecord:
        """
        Validate and enqueue a job.

        Raises InvalidJobError for bad input and RateLimitedError when the
        client already submitted within the window. No record exists on either.
        """
        if isinstance(payload, JobRequest):
            request = payload
        else:
            try:
                request = JobRequest.model_validate(payload)
            except ValidationError as exc:
                raise InvalidJobError(_validation_message(exc)) from exc
        if request.duration > self.max_duration:
            raise InvalidJobError(f"Duration must be between 5 and {self.max_duration} seconds")

        if client_id is not None and not await self.store.acquire_rate_limit(client_id, self.rate_limit_seconds):
            raise RateLimitedError(client_id, self.rate_limit_seconds)

        record = JobRecord.from_request(generate_job_id(), request, client_id=client_id)
        await self.store.save_job(record)
        await self.store.enqueue(record.id)
        logger.info("[queue] Job %s queued (%s, %ss, %s)", record.id, record.format, record.duration, record.mode)
        return record

    async def get_job(self, job_id: str) -> dict[str, Any] | None:
        """Public job state; credentials are never returned."""
        record = await self.store.get_job(job_id)
        return record.to_public_dict() if record else None

    async def update_job_status(
        self,
        job_id: str,
        status: JobStatus,
        progress: int | None = None,
        *,
        video_url: str | None = None,
        error: str | None = None,
    ) -> JobRecord | None:
        """
        Apply a status change.

        Progress never decreases and reaches 100 only together with
        COMPLETED; terminal jobs are not modified again.
        """
        record = await self.store.get_job(job_id)
        if record is None:
            logger.error("[queue] Cannot update missing job %s", job_id)
            return None
        if record.status.is_terminal:
            logger.warning("[queue] Ignoring %s update for finished job %s", status.value, job_id)
            return record

        if progress is not None:
            if status is not JobStatus.COMPLETED:
                progress = min(progress, 99)
            record.progress = max(record.progress, max(0, min(progress, 100)))
        record.status = status
        fields = {"status": status.value, "progress": str(record.progress)}
        if video_url:
            record.video_url = video_url
            fields["videoUrl"] = video_url
        if error:
            record.error = error
            fields["error"] = error
        if status.is_terminal:
            record.completed_at = datetime.now(timezone.utc)
            fields["completed"] = record.completed_at.isoformat()
        await self.store.update_job(job_id, fields)

        if self.hub is not None:
            await self.hub.publish(
                job_id, {"job_id": job_id, "status": record.status.value, "progress": record.progress}
            )
        return record


class JobWorker:
    """Pops one job at a time and runs it to a terminal state."""

    def __init__(
        self,
        queue: JobQueue,
        generate: VideoGenerator,
        *,
        poll_timeout: float = 5.0,
    ) -> None:
        self.queue = queue
        self.generate = generate
        self.poll_timeout = poll_timeout
        self._stopping = asyncio.Event()

    def stop(self) -> None:
        self._stopping.set()

    async def process_next(self) -> bool:
        """Handle at most one queued job; False when the poll timed out empty."""
        store = self.queue.store
        job_id = await store.dequeue(self.poll_timeout)
        if job_id is None:
            return False

        record = await store.get_job(job_id)
        if record is None:
            logger.error("[worker] Job %s not found", job_id)
            return True

        logger.info("[worker] Processing job %s (%s)", job_id, record.url)
        await self.queue.update_job_status(job_id, JobStatus.PROCESSING, PROCESSING_START_PROGRESS)

        async def on_progress(progress: int) -> None:
            await self.queue.update_job_status(job_id, JobStatus.PROCESSING, progress)

        try:
            video_url = await self.generate(record, on_progress)
        except Exception as exc:
            logger.error("[worker] Job %s failed: %s", job_id, exc, exc_info=True)
            await self.queue.update_job_status(job_id, JobStatus.FAILED, error=str(exc) or type(exc).__name__)
        else:
            await self.queue.update_job_status(job_id, JobStatus.COMPLETED, 100, video_url=video_url)
            logger.info("[worker] Job %s completed: %s", job_id, video_url)
        finally:
            await store.delete_credentials(job_id)
        return True

    async def run_forever(self) -> None:
        """Poll until stop(); store errors are retried with exponential backoff."""
        logger.info("[worker] Starting job worker")
        backoff = INITIAL_BACKOFF_SECONDS
        while not self._stopping.is_set():
            try:
                await self.process_next()
            except Exception as exc:
                logger.error("[worker] Worker error, retrying in %.0fs: %s", backoff, exc)
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, MAX_BACKOFF_SECONDS)
            else:
                backoff = INITIAL_BACKOFF_SECONDS
        logger.info("[worker] Job worker stopped")
