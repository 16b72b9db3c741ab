"""Job store: job hashes, the pending-job queue and per-client rate limits."""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod

from models.job import JobRecord

logger = logging.getLogger(__name__)

QUEUE_KEY = "queue:jobs"
CREDENTIALS_TTL_SECONDS = 24 * 3600


def job_key(job_id: str) -> str:
    return f"job:{job_id}"


def credentials_key(job_id: str) -> str:
    return f"job:{job_id}:credentials"


def rate_limit_key(client_id: str) -> str:
    return f"ratelimit:{client_id}"


class JobStore(ABC):
    """Storage backend for jobs, selected once at startup and passed explicitly."""

    @abstractmethod
    async def save_job(self, record: JobRecord) -> None:
        """Persist a full job record (credentials under their own key)."""

    @abstractmethod
    async def update_job(self, job_id: str, fields: dict[str, str]) -> None:
        """Merge flat string fields into an existing job."""

    @abstractmethod
    async def get_job(self, job_id: str) -> JobRecord | None: ...

    @abstractmethod
    async def delete_credentials(self, job_id: str) -> None: ...

    @abstractmethod
    async def enqueue(self, job_id: str) -> None: ...

    @abstractmethod
    async def dequeue(self, timeout: float) -> str | None:
        """Block up to timeout seconds for the next job id (FIFO)."""

    @abstractmethod
    async def acquire_rate_limit(self, client_id: str, window_seconds: int) -> bool:
        """True and start a window when the client has none running, else False."""

    async def close(self) -> None:
        return None


class InMemoryJobStore(JobStore):
    """Process-local store for development and tests."""

    def __init__(self) -> None:
        self._jobs: dict[str, dict[str, str]] = {}
        self._credentials: dict[str, dict[str, str]] = {}
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._rate_limits: dict[str, float] = {}

    async def save_job(self, record: JobRecord) -> None:
        self._jobs[record.id] = record.to_store_fields()
        if record.credentials is not None:
            self._credentials[record.id] = record.credentials.model_dump(by_alias=True, exclude_none=True)

    async def update_job(self, job_id: str, fields: dict[str, str]) -> None:
        self._jobs.setdefault(job_id, {}).update(fields)

    async def get_job(self, job_id: str) -> JobRecord | None:
        fields = self._jobs.get(job_id)
        if not fields:
            return None
        return JobRecord.from_store_fields(job_id, fields, self._credentials.get(job_id))

    async def delete_credentials(self, job_id: str) -> None:
        self._credentials.pop(job_id, None)

    async def enqueue(self, job_id: str) -> None:
        self._queue.put_nowait(job_id)

    async def dequeue(self, timeout: float) -> str | None:
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    async def acquire_rate_limit(self, client_id: str, window_seconds: int) -> bool:
        now = time.monotonic()
        expires = self._rate_limits.get(client_id)
        if expires is not None and expires > now:
            return False
        self._rate_limits[client_id] = now + window_seconds
        return True


class RedisJobStore(JobStore):
    """Durable store on Redis: job hashes, an LPUSH/BRPOP list and SET NX EX limits."""

    def __init__(self, client) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> RedisJobStore:
        import redis.asyncio as redis

        return cls(redis.Redis.from_url(url, decode_responses=True))

    async def save_job(self, record: JobRecord) -> None:
        if record.credentials is not None:
            key = credentials_key(record.id)
            await self._redis.hset(key, mapping=record.credentials.model_dump(by_alias=True, exclude_none=True))
            await self._redis.expire(key, CREDENTIALS_TTL_SECONDS)
        await self._redis.hset(job_key(record.id), mapping=record.to_store_fields())

    async def update_job(self, job_id: str, fields: dict[str, str]) -> None:
        await self._redis.hset(job_key(job_id), mapping=fields)

    async def get_job(self, job_id: str) -> JobRecord | None:
        fields = await self._redis.hgetall(job_key(job_id))
        if not fields:
            return None
        credentials = None
        if fields.get("hasCredentials") == "true":
            credentials = await self._redis.hgetall(credentials_key(job_id)) or None
        return JobRecord.from_store_fields(job_id, fields, credentials)

    async def delete_credentials(self, job_id: str) -> None:
        await self._redis.delete(credentials_key(job_id))

    async def enqueue(self, job_id: str) -> None:
        await self._redis.lpush(QUEUE_KEY, job_id)

    async def dequeue(self, timeout: float) -> str | None:
        result = await self._redis.brpop([QUEUE_KEY], timeout=max(1, int(timeout)))
        if not result:
            return None
        _, job_id = result
        return job_id

    async def acquire_rate_limit(self, client_id: str, window_seconds: int) -> bool:
        return bool(await self._redis.set(rate_limit_key(client_id), "1", nx=True, ex=window_seconds))

    async def close(self) -> None:
        await self._redis.aclose()


def create_job_store(redis_url: str | None) -> JobStore:
    if redis_url:
        logger.info("[store] Using Redis job store")
        return RedisJobStore.from_url(redis_url)
    logger.warning("[store] REDIS_URL not configured, using in-memory job store (local development only)")
    return InMemoryJobStore()
