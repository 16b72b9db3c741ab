from __future__ import annotations

import asyncio

import pytest

from services import progress_hub
from services.progress_hub import ProgressHub


@pytest.mark.asyncio
async def test_progress_hub_late_subscriber_gets_latest_update() -> None:
    hub = ProgressHub()
    job_id = "late-job"

    await hub.publish(job_id, {"progress": 15})
    await hub.publish(job_id, {"progress": 40})

    q = await hub.subscribe(job_id)
    latest = await asyncio.wait_for(q.get(), timeout=0.5)
    assert latest == {"progress": 40}
    assert q.empty()

    await hub.unsubscribe(job_id, q)


@pytest.mark.asyncio
async def test_progress_hub_is_latest_wins_per_subscriber() -> None:
    hub = ProgressHub()
    job_id = "busy-job"
    q = await hub.subscribe(job_id)

    for value in (15, 40, 50, 80):
        await hub.publish(job_id, {"progress": value})

    assert q.qsize() == 1
    assert (await q.get()) == {"progress": 80}
    await hub.unsubscribe(job_id, q)


@pytest.mark.asyncio
async def test_progress_hub_fans_out_to_all_subscribers() -> None:
    hub = ProgressHub()
    a = await hub.subscribe("job")
    b = await hub.subscribe("job")
    other = await hub.subscribe("other-job")

    await hub.publish("job", {"progress": 95})

    assert (await asyncio.wait_for(a.get(), timeout=0.5)) == {"progress": 95}
    assert (await asyncio.wait_for(b.get(), timeout=0.5)) == {"progress": 95}
    assert other.empty()

    await hub.unsubscribe("job", a)
    await hub.unsubscribe("job", b)
    await hub.publish("job", {"progress": 100})
    assert a.empty()


@pytest.mark.asyncio
async def test_progress_hub_bounds_remembered_jobs(monkeypatch) -> None:
    monkeypatch.setattr(progress_hub, "MAX_TRACKED_JOBS", 2)
    hub = ProgressHub()

    for job_id in ("a", "b", "c"):
        await hub.publish(job_id, {"job_id": job_id})

    assert (await hub.subscribe("a")).empty()
    assert (await hub.subscribe("c")).qsize() == 1


@pytest.mark.asyncio
async def test_unsubscribe_unknown_is_noop() -> None:
    hub = ProgressHub()
    await hub.unsubscribe("missing", asyncio.Queue())
