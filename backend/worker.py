from __future__ import annotations

import asyncio
import logging
import os
import signal
from functools import partial

from dotenv import load_dotenv

from services.config import Settings
from services.job_queue import JobQueue, JobWorker
from services.pipeline import generate_video
from services.progress_hub import ProgressHub
from services.store import create_job_store

# Load .env from backend dir (where worker.py runs)
load_dotenv(os.path.join(os.path.dirname(__file__), ".env"))
logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)


def build_worker(settings: Settings, *, hub: ProgressHub | None = None) -> JobWorker:
    store = create_job_store(settings.redis_url)
    queue = JobQueue(
        store,
        max_duration=settings.max_video_duration,
        rate_limit_seconds=settings.rate_limit_seconds,
        hub=hub,
    )
    return JobWorker(
        queue,
        partial(generate_video, settings=settings),
        poll_timeout=settings.worker_poll_timeout,
    )


async def main() -> None:
    settings = Settings.from_env()
    settings.work_dir.mkdir(parents=True, exist_ok=True)
    worker = build_worker(settings, hub=ProgressHub())

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, worker.stop)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops
            pass

    try:
        await worker.run_forever()
    finally:
        await worker.queue.store.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
