from __future__ import annotations

import asyncio
from collections import OrderedDict, defaultdict
from typing import Any

MAX_TRACKED_JOBS = 256


class ProgressHub:
    """
    In-memory pubsub for job progress updates.

    JobQueue publishes every status change here; a status endpoint or
    websocket running in the same process subscribes to stream them.

    - Each subscriber gets an asyncio.Queue(maxsize=1) (latest-wins).
    - Publisher fan-outs to all current subscribers for the job_id.
    - The last update per job is kept so late subscribers start from it.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._subscribers: dict[str, set[asyncio.Queue[dict[str, Any]]]] = defaultdict(set)
        self._latest: OrderedDict[str, dict[str, Any]] = OrderedDict()

    async def subscribe(self, job_id: str) -> asyncio.Queue[dict[str, Any]]:
        q: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=1)
        async with self._lock:
            self._subscribers[job_id].add(q)
            latest = self._latest.get(job_id)
        if latest is not None:
            q.put_nowait(latest)
        return q

    async def unsubscribe(self, job_id: str, q: asyncio.Queue[dict[str, Any]]) -> None:
        async with self._lock:
            subs = self._subscribers.get(job_id)
            if not subs:
                return
            subs.discard(q)
            if not subs:
                self._subscribers.pop(job_id, None)

    async def publish(self, job_id: str, payload: dict[str, Any]) -> None:
        async with self._lock:
            self._latest[job_id] = payload
            self._latest.move_to_end(job_id)
            while len(self._latest) > MAX_TRACKED_JOBS:
                self._latest.popitem(last=False)
            subs = list(self._subscribers.get(job_id, set()))
        for q in subs:
            # latest-wins: if queue is full, drop the old payload
            if q.full():
                try:
                    _ = q.get_nowait()
                except asyncio.QueueEmpty:
                    pass
            try:
                q.put_nowait(payload)
            except asyncio.QueueFull:
                pass
