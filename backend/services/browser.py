"""Browser session (Playwright) and capture-mode selection, including basic mode."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from playwright.async_api import Browser, Page, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from models.job import Credentials
from models.shot import LEGACY_CAPTURE_FPS, CaptureResult, ExecutedShot, StoryboardShot

from . import page_scripts
from .errors import BrowserLaunchError, NavigationError
from .narrative_planner import generate_narrative_copy, plan_narrative
from .observer import analyze_page_semantics
from .shot_director import FRAME_PATTERN, capture_frame, capture_pro_director

logger = logging.getLogger(__name__)

VIEWPORTS: dict[str, dict[str, int]] = {
    "9:16": {"width": 1080, "height": 1920},   # vertical (Reels/TikTok)
    "16:9": {"width": 1920, "height": 1080},   # horizontal (YouTube)
}
LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-software-rasterizer",
    "--disable-web-security",
]
NAVIGATION_TIMEOUT_MS = 30_000
LOGIN_SETTLE_TIMEOUT_MS = 15_000
SETTLE_SECONDS = 2.0
POPUP_SETTLE_SECONDS = 1.0
TYPE_DELAY_SECONDS = 0.08

HERO_FRACTION = 0.15
INTERACTION_FRACTION = 0.5

USERNAME_SELECTOR = (
    'input[type="email"], input[type="text"][name*="user"], input[name="username"], input[id*="email"]'
)
PASSWORD_SELECTOR = 'input[type="password"]'
SUBMIT_SELECTOR = (
    'button[type="submit"], input[type="submit"], button:has-text("log in"), button:has-text("sign in")'
)


def viewport_for(video_format: str) -> dict[str, int]:
    return VIEWPORTS.get(video_format, VIEWPORTS["9:16"])


@asynccontextmanager
async def launch_browser() -> AsyncIterator[Browser]:
    """Headless Chromium for the duration of one job."""
    async with async_playwright() as playwright:
        try:
            browser = await playwright.chromium.launch(headless=True, args=LAUNCH_ARGS)
        except PlaywrightError as exc:
            logger.error("[browser] Failed to launch browser: %s", exc)
            raise BrowserLaunchError(
                "Browser initialization failed. Chromium may not be installed properly."
            ) from exc
        try:
            yield browser
        finally:
            await browser.close()


async def navigate(page: Any, url: str) -> None:
    logger.info("[browser] Loading %s", url)
    try:
        await page.goto(url, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)
    except PlaywrightError as exc:
        raise NavigationError(f"Failed to load {url}: {exc}") from exc


async def dismiss_popups(page: Any) -> None:
    """Close or remove modals, overlays and cookie banners; failures are ignored."""
    try:
        result = await page.evaluate(page_scripts.DISMISS_POPUPS)
        logger.info("[browser] Popups dismissed: %s", result)
    except PlaywrightError as exc:
        logger.warning("[browser] Failed to dismiss popups: %s", exc)


async def handle_login(page: Any, credentials: Credentials | None) -> bool:
    if credentials is None or not credentials.username or not credentials.password:
        return False
    try:
        if credentials.login_url:
            await page.goto(credentials.login_url, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)
        username = page.locator(USERNAME_SELECTOR).first
        password = page.locator(PASSWORD_SELECTOR).first
        if await username.count() == 0 or await password.count() == 0:
            logger.warning("[browser] Could not find login form fields")
            return False
        await username.fill(credentials.username)
        await password.fill(credentials.password)
        submit = page.locator(SUBMIT_SELECTOR).first
        if await submit.count() > 0:
            await submit.click()
            try:
                await page.wait_for_load_state("networkidle", timeout=LOGIN_SETTLE_TIMEOUT_MS)
            except PlaywrightTimeoutError:
                pass
        logger.info("[browser] Login completed")
        return True
    except PlaywrightError as exc:
        logger.warning("[browser] Login failed: %s", exc)
        return False


async def find_clickable_elements(page: Any) -> list[dict[str, Any]]:
    """Top three visible clickable elements, scored by call-to-action keywords."""
    try:
        return list(await page.evaluate(page_scripts.CLICKABLE_ELEMENTS) or [])
    except PlaywrightError as exc:
        logger.warning("[browser] Clickable element scan failed: %s", exc)
        return []


class _FrameRecorder:
    """Sequential frame writer paced at a fixed fps."""

    def __init__(self, page: Any, shot_dir: Path, fps: int) -> None:
        self.page = page
        self.shot_dir = shot_dir
        self.fps = fps
        self.count = 0

    async def capture(self) -> None:
        await capture_frame(self.page, self.shot_dir, self.count)
        self.count += 1
        await asyncio.sleep(1.0 / self.fps)

    async def capture_many(self, n: int) -> None:
        for _ in range(max(0, n)):
            await self.capture()


async def _type_with_animation(page: Any, selector: str, text: str, recorder: _FrameRecorder, max_frames: int) -> None:
    await page.focus(selector)
    for i, char in enumerate(text[:max_frames]):
        await page.keyboard.type(char)
        await asyncio.sleep(TYPE_DELAY_SECONDS)
        if i % 2 == 0:
            await recorder.capture()


def _sample_text(field: dict[str, Any]) -> str:
    if field.get("type") == "email":
        return "demo@autopromo.video"
    if field.get("type") == "search":
        return "product demo"
    placeholder = field.get("placeholder") or ""
    return placeholder[:20] if placeholder else "Sample text"


async def try_fill_form(page: Any, recorder: _FrameRecorder, max_frames: int) -> bool:
    """Type into up to two visible text fields while recording; True when any were found."""
    try:
        fields = await page.evaluate(page_scripts.FORM_FIELDS) or []
    except PlaywrightError as exc:
        logger.warning("[browser] Form scan failed: %s", exc)
        return False
    if not fields:
        return False

    budget = max_frames
    for field in fields:
        selector = field.get("selector")
        if not selector or budget <= 0:
            continue
        try:
            await page.evaluate(page_scripts.SCROLL_INTO_VIEW, selector)
            scroll_frames = min(5, budget)
            await recorder.capture_many(scroll_frames)
            budget -= scroll_frames
            await page.click(selector, timeout=2000)
            text = _sample_text(field)
            await _type_with_animation(page, selector, text, recorder, budget)
            budget -= len(text)
            logger.info("[browser] Filled %s field", field.get("type"))
        except PlaywrightError as exc:
            logger.warning("[browser] Failed to fill field %s: %s", selector, exc)
    return True


async def capture_with_interactions(
    page: Any,
    shot_dir: Path,
    *,
    total_frames: int,
    fps: int,
    viewport_height: int,
    clickables: list[dict[str, Any]],
) -> int:
    """
    Basic-mode recording in three phases.

    Hero at the top of the page (15% of frames), clicks on the scored
    elements with one form fill (50%), then a scroll through the rest of the
    page for the remaining frames.
    """
    recorder = _FrameRecorder(page, shot_dir, fps)

    await recorder.capture_many(int(total_frames * HERO_FRACTION))

    interaction_frames = int(total_frames * INTERACTION_FRACTION)
    per_interaction = interaction_frames // max(len(clickables), 1)
    await try_fill_form(page, recorder, int(per_interaction * 0.8))

    for element in clickables:
        selector = element.get("selector")
        if not selector:
            continue
        try:
            await page.evaluate(page_scripts.SCROLL_INTO_VIEW, selector)
            await recorder.capture_many(int(per_interaction * 0.3))
            await page.click(selector, timeout=2000)
            logger.info("[browser] Clicked: %s", element.get("text"))
            await recorder.capture_many(int(per_interaction * 0.7))
        except PlaywrightError as exc:
            logger.warning("[browser] Failed to interact with %s: %s", element.get("text"), exc)

    scroll_frames = total_frames - recorder.count
    if scroll_frames > 0:
        page_height = await page.evaluate(page_scripts.DOCUMENT_HEIGHT)
        scrollable = max(0, int(page_height) - viewport_height)
        for i in range(scroll_frames):
            progress = i / (scroll_frames - 1) if scroll_frames > 1 else 1.0
            await page.evaluate(page_scripts.SCROLL_TO, int(scrollable * progress))
            await recorder.capture()
    return recorder.count


async def capture_basic(page: Any, duration: int, output_dir: Path, video_format: str) -> CaptureResult:
    """Single continuous shot of the page with scored clicks and a final scroll."""
    logger.info("[browser] Executing basic mode")
    try:
        metadata = await page.evaluate(page_scripts.PAGE_METADATA) or {}
    except PlaywrightError as exc:
        logger.warning("[browser] Metadata extraction failed: %s", exc)
        metadata = {}

    clickables = await find_clickable_elements(page)
    logger.info("[browser] Found %d clickable elements", len(clickables))

    shot_dir = output_dir / "basic"
    shot_dir.mkdir(parents=True, exist_ok=True)
    frames = await capture_with_interactions(
        page,
        shot_dir,
        total_frames=duration * LEGACY_CAPTURE_FPS,
        fps=LEGACY_CAPTURE_FPS,
        viewport_height=viewport_for(video_format)["height"],
        clickables=clickables,
    )
    logger.info("[browser] Captured %d frames", frames)

    title = metadata.get("title") or "Untitled"
    shot = StoryboardShot(id=1, type="basic", duration=duration, caption=title)
    shot.place(0.0)
    return CaptureResult(
        metadata={"title": title, "description": metadata.get("description") or ""},
        shots=[
            ExecutedShot(
                shot=shot,
                shot_dir=shot_dir,
                frame_count=frames,
                capture_fps=LEGACY_CAPTURE_FPS,
                frame_pattern=FRAME_PATTERN,
            )
        ],
    )


async def capture_page(
    page: Any,
    url: str,
    *,
    duration: int,
    mode: str,
    video_format: str,
    output_dir: Path,
    capture_budget: float = 90.0,
) -> CaptureResult:
    """
    Capture an already loaded page.

    In pro_director mode the page is observed, planned and shot; any failure
    there, or a run that keeps no shots, falls back to basic mode.
    """
    if mode == "pro_director":
        try:
            snapshot = await analyze_page_semantics(page, url)
            narrative = plan_narrative(snapshot, duration)
            copy = generate_narrative_copy(snapshot)
            logger.info(
                "[browser] Narrative: %d beats, %d shots",
                len(narrative.beats),
                sum(len(b.shots) for b in narrative.beats),
            )
            result = await capture_pro_director(
                page,
                url,
                duration,
                output_dir / "shots",
                narrative=narrative,
                snapshot=snapshot,
                copy=copy,
                budget_seconds=capture_budget,
            )
            if not result.fallback_to_basic:
                return result
            logger.warning("[browser] Professional capture kept no shots, falling back to basic")
        except Exception as exc:
            logger.error("[browser] Professional pipeline failed, falling back to basic: %s", exc, exc_info=True)
    return await capture_basic(page, duration, output_dir, video_format)


async def open_page(browser: Browser, video_format: str) -> Page:
    context = await browser.new_context(viewport=viewport_for(video_format))
    return await context.new_page()


async def capture_site(
    url: str,
    *,
    duration: int,
    mode: str,
    video_format: str,
    output_dir: Path,
    credentials: Credentials | None = None,
    capture_budget: float = 90.0,
) -> CaptureResult:
    """Launch a browser, log in if needed, load the URL and capture it."""
    async with launch_browser() as browser:
        page = await open_page(browser, video_format)
        if credentials is not None:
            logger.info("[browser] Attempting login")
            await handle_login(page, credentials)
        await navigate(page, url)
        await asyncio.sleep(SETTLE_SECONDS)
        await dismiss_popups(page)
        await asyncio.sleep(POPUP_SETTLE_SECONDS)
        return await capture_page(
            page,
            url,
            duration=duration,
            mode=mode,
            video_format=video_format,
            output_dir=output_dir,
            capture_budget=capture_budget,
        )
