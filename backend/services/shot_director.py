"""Shot execution: drives the page per shot and writes numbered frame sequences."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import math
import shutil
from pathlib import Path
from typing import Any

from models.narrative import Narrative, NarrativeCopy
from models.shot import (
    CAPTURE_FPS,
    LEGACY_CAPTURE_FPS,
    CaptureResult,
    ExecutedShot,
    ShotResult,
    StoryboardShot,
    frame_at,
)
from models.snapshot import SemanticSnapshot

from . import page_scripts
from .captions import build_caption_timeline
from .cinematographer import execute_camera_move
from .observer import scan_page
from .storyboard import build_narrative_storyboard, build_scanner_storyboard

logger = logging.getLogger(__name__)

FRAME_PATTERN = "frame_%04d.jpg"
JPEG_QUALITY = 80
MIN_SHOT_TIMEOUT = 10.0
SHOT_TIMEOUT_PADDING = 15.0
SCAN_TIMEOUT_SECONDS = 30.0
MOVE_SETTLE_SECONDS = 0.6
ACTION_PAUSE_SECONDS = 1.2
CLICK_DELAY_MS = 100
RESULT_FRAMES = 15
SLOW_PAN_STEP_PX = 30
DEFAULT_CAPTURE_BUDGET = 90.0


def shot_timeout(duration: float) -> float:
    return max(MIN_SHOT_TIMEOUT, duration + SHOT_TIMEOUT_PADDING)


def frame_path(shot_dir: Path, index: int) -> Path:
    return shot_dir / (FRAME_PATTERN % index)


async def capture_frame(page: Any, shot_dir: Path, index: int) -> Path:
    path = frame_path(shot_dir, index)
    await page.screenshot(path=str(path), type="jpeg", quality=JPEG_QUALITY)
    return path


async def page_hash(page: Any) -> str:
    """MD5 of a full screenshot; any pixel change anywhere changes the hash."""
    return hashlib.md5(await page.screenshot()).hexdigest()


async def capture_frames(
    page: Any,
    shot_dir: Path,
    duration: float,
    *,
    fps: int = CAPTURE_FPS,
    start_index: int = 0,
    scroll_step: int | None = None,
) -> int:
    """Capture floor(duration * fps) frames paced at fps; returns frames written."""
    total = int(math.floor(duration * fps))
    interval = 1.0 / fps
    loop = asyncio.get_running_loop()
    for i in range(total):
        started = loop.time()
        await capture_frame(page, shot_dir, start_index + i)
        if scroll_step:
            await page.evaluate(page_scripts.SCROLL_BY, scroll_step)
        remaining = interval - (loop.time() - started)
        if remaining > 0:
            await asyncio.sleep(remaining)
    return total


async def _execute_professional(page: Any, shot: StoryboardShot, shot_dir: Path) -> ShotResult:
    logger.info("[shot_director] Shot %s: professional %s (%.1fs)", shot.id, shot.type, shot.duration)
    _, frames = await asyncio.gather(
        execute_camera_move(page, shot.execution_plan),
        capture_frames(page, shot_dir, shot.duration, fps=CAPTURE_FPS),
    )
    return ShotResult(frame_count=frames, change_score=1.0)


async def _execute_legacy(page: Any, shot: StoryboardShot, shot_dir: Path) -> ShotResult:
    if shot.target:
        try:
            await page.evaluate(page_scripts.SCROLL_INTO_VIEW, shot.target)
            await page.evaluate(page_scripts.MOVE_CURSOR, shot.target)
        except Exception as exc:
            logger.warning("[shot_director] Shot %s: could not scroll to %s: %s", shot.id, shot.target, exc)
        await asyncio.sleep(MOVE_SETTLE_SECONDS)

    before = await page_hash(page)

    capture_seconds = frame_at(shot.duration, LEGACY_CAPTURE_FPS) / LEGACY_CAPTURE_FPS
    scroll_step = SLOW_PAN_STEP_PX if shot.camera_move == "slow_pan_down" else None
    frames = await capture_frames(
        page, shot_dir, capture_seconds, fps=LEGACY_CAPTURE_FPS, scroll_step=scroll_step
    )

    change_score = 1.0
    if shot.action == "click" and shot.target:
        await page.evaluate(page_scripts.HIGHLIGHT_ELEMENT, {"sel": shot.target, "glow": True})
        await page.click(shot.target, delay=CLICK_DELAY_MS)
        await asyncio.sleep(ACTION_PAUSE_SECONDS)
        after = await page_hash(page)
        change_score = 0.0 if before == after else 1.0
        if change_score == 0.0:
            logger.info("[shot_director] Shot %s: click produced no visible change", shot.id)
            return ShotResult(frame_count=frames, change_score=0.0, skipped=True)
        frames += await capture_frames(
            page, shot_dir, RESULT_FRAMES / LEGACY_CAPTURE_FPS, fps=LEGACY_CAPTURE_FPS, start_index=frames
        )
    return ShotResult(frame_count=frames, change_score=change_score)


async def execute_shot(
    page: Any,
    shot: StoryboardShot,
    shot_dir: Path,
    *,
    timeout: float | None = None,
) -> ShotResult:
    """
    Run one shot under a hard timeout.

    Shots with an execution plan run camera movement and frame capture
    concurrently. Other shots run move, capture, optional click and a
    before/after comparison; a click with no visible change is skipped.
    Timeouts and errors skip the shot instead of failing the job.
    """
    shot_dir.mkdir(parents=True, exist_ok=True)
    limit = timeout if timeout is not None else shot_timeout(shot.duration)
    runner = _execute_professional if shot.execution_plan else _execute_legacy
    try:
        return await asyncio.wait_for(runner(page, shot, shot_dir), timeout=limit)
    except asyncio.TimeoutError:
        logger.warning("[shot_director] Shot %s timed out after %.1fs", shot.id, limit)
    except Exception as exc:
        logger.warning("[shot_director] Shot %s failed: %s", shot.id, exc)
    return ShotResult(skipped=True)


async def capture_pro_director(
    page: Any,
    url: str,
    duration: float,
    output_dir: Path,
    *,
    narrative: Narrative | None = None,
    snapshot: SemanticSnapshot | None = None,
    copy: NarrativeCopy | None = None,
    budget_seconds: float = DEFAULT_CAPTURE_BUDGET,
) -> CaptureResult:
    """
    Execute a storyboard shot by shot and collect the surviving shots.

    Uses the narrative storyboard when a narrative is given, otherwise scans
    the page for a scanner storyboard. The capture budget is a hard deadline:
    no shot starts after it and the running shot is cut at it. Surviving shots
    are re-timed back to back. Any crash, or zero surviving shots, yields
    fallback_to_basic.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + budget_seconds
    try:
        if narrative is not None:
            storyboard = build_narrative_storyboard(narrative)
        else:
            logger.info("[shot_director] No narrative, using scanner storyboard")
            scanned = await asyncio.wait_for(scan_page(page, url), timeout=SCAN_TIMEOUT_SECONDS)
            storyboard = build_scanner_storyboard(scanned, duration)

        executed: list[ExecutedShot] = []
        elapsed = 0.0
        for shot in storyboard:
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.error(
                    "[shot_director] Capture budget of %.0fs exhausted, %d shots not started",
                    budget_seconds,
                    len(storyboard) - storyboard.index(shot),
                )
                break
            shot_dir = output_dir / f"shot_{shot.id}"
            result = await execute_shot(
                page, shot, shot_dir, timeout=min(shot_timeout(shot.duration), remaining)
            )
            if result.skipped or result.frame_count <= 0:
                logger.info("[shot_director] Shot %s dropped", shot.id)
                shutil.rmtree(shot_dir, ignore_errors=True)
                continue
            shot.place(elapsed)
            elapsed += shot.duration
            executed.append(
                ExecutedShot(
                    shot=shot,
                    shot_dir=shot_dir,
                    frame_count=result.frame_count,
                    change_score=result.change_score,
                    capture_fps=CAPTURE_FPS if shot.execution_plan else LEGACY_CAPTURE_FPS,
                    frame_pattern=FRAME_PATTERN,
                )
            )
    except Exception as exc:
        logger.error("[shot_director] Capture pipeline crashed: %s", exc, exc_info=True)
        return CaptureResult(fallback_to_basic=True)

    logger.info("[shot_director] Captured %d/%d shots", len(executed), len(storyboard))
    metadata = {"title": "Generated Video", "description": ""}
    if snapshot is not None and snapshot.hero.headline:
        metadata = {"title": snapshot.hero.headline, "description": snapshot.hero.subheadline}
    return CaptureResult(
        metadata=metadata,
        shots=executed,
        copy=copy,
        captions=build_caption_timeline(executed, copy),
        fallback_to_basic=not executed,
    )
