from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

import pytest
from playwright.async_api import Error as PlaywrightError

from models.job import Credentials
from models.shot import CaptureResult, ExecutedShot, StoryboardShot
from services import browser, page_scripts
from services.browser import (
    capture_basic,
    capture_page,
    capture_site,
    handle_login,
    navigate,
    viewport_for,
)
from services.errors import NavigationError


class _FakeKeyboard:
    def __init__(self) -> None:
        self.typed: list[str] = []

    async def type(self, text: str) -> None:
        self.typed.append(text)


class _FakeLocator:
    def __init__(self, page: "_FakePage", selector: str, present: bool) -> None:
        self.page = page
        self.selector = selector
        self.present = present

    @property
    def first(self) -> "_FakeLocator":
        return self

    async def count(self) -> int:
        return 1 if self.present else 0

    async def fill(self, value: str) -> None:
        self.page.filled[self.selector] = value

    async def click(self) -> None:
        self.page.clicks.append(self.selector)


class _FakePage:
    def __init__(
        self,
        *,
        clickables: list[dict] | None = None,
        fields: list[dict] | None = None,
        login_form: bool = True,
        goto_error: Exception | None = None,
    ) -> None:
        self.clickables = clickables or []
        self.fields = fields or []
        self.login_form = login_form
        self.goto_error = goto_error
        self.clicks: list[str] = []
        self.filled: dict[str, str] = {}
        self.visited: list[str] = []
        self.keyboard = _FakeKeyboard()
        self.scripts: list[str] = []

    async def goto(self, url: str, **kwargs) -> None:
        if self.goto_error is not None:
            raise self.goto_error
        self.visited.append(url)

    async def wait_for_load_state(self, state: str, **kwargs) -> None:
        return None

    async def screenshot(self, path=None, type=None, quality=None) -> bytes:
        if path is not None:
            Path(path).write_bytes(b"\xff\xd8jpeg")
        return b"jpeg"

    async def evaluate(self, script: str, arg=None):
        self.scripts.append(script)
        if script == page_scripts.PAGE_METADATA:
            return {"title": "Acme", "description": "Make videos", "h1": "Videos in minutes"}
        if script == page_scripts.CLICKABLE_ELEMENTS:
            return self.clickables
        if script == page_scripts.FORM_FIELDS:
            return self.fields
        if script == page_scripts.DOCUMENT_HEIGHT:
            return 4000
        return None

    async def click(self, selector: str, **kwargs) -> None:
        self.clicks.append(selector)

    async def focus(self, selector: str) -> None:
        return None

    def locator(self, selector: str) -> _FakeLocator:
        present = self.login_form or selector == browser.SUBMIT_SELECTOR
        return _FakeLocator(self, selector, present)


def test_viewport_for_known_and_unknown_formats() -> None:
    assert viewport_for("16:9") == {"width": 1920, "height": 1080}
    assert viewport_for("4:3") == {"width": 1080, "height": 1920}


@pytest.mark.asyncio
async def test_capture_basic_records_full_duration(tmp_path: Path) -> None:
    page = _FakePage(clickables=[{"selector": "#start", "text": "Get started", "score": 10}])

    result = await capture_basic(page, 1, tmp_path, "9:16")

    assert result.metadata == {"title": "Acme", "description": "Make videos"}
    assert len(result.shots) == 1
    executed = result.shots[0]
    assert executed.frame_count == 10
    assert executed.capture_fps == 10
    assert executed.shot.caption == "Acme"
    assert executed.shot.end_frame == 10
    assert page.clicks == ["#start"]
    assert sorted(p.name for p in (tmp_path / "basic").iterdir())[-1] == "frame_0009.jpg"


@pytest.mark.asyncio
async def test_capture_basic_types_into_form_fields(tmp_path: Path) -> None:
    page = _FakePage(
        clickables=[{"selector": "#start", "text": "Get started"}],
        fields=[{"selector": "#email", "type": "email", "placeholder": ""}],
    )
    result = await capture_basic(page, 4, tmp_path, "16:9")

    assert result.shots[0].frame_count == 40
    assert "#email" in page.clicks
    assert page.keyboard.typed


@pytest.mark.asyncio
async def test_pro_director_failure_falls_back_to_basic(monkeypatch, tmp_path: Path) -> None:
    async def broken_observer(page, url):
        raise RuntimeError("observer script crashed")

    monkeypatch.setattr(browser, "analyze_page_semantics", broken_observer)

    result = await capture_page(
        _FakePage(), "https://acme.io", duration=1, mode="pro_director", video_format="9:16", output_dir=tmp_path
    )

    assert result.fallback_to_basic is False
    assert [s.shot.type for s in result.shots] == ["basic"]


@pytest.mark.asyncio
async def test_empty_pro_capture_falls_back_to_basic(monkeypatch, tmp_path: Path) -> None:
    async def no_shots(*args, **kwargs):
        return CaptureResult(fallback_to_basic=True)

    monkeypatch.setattr(browser, "capture_pro_director", no_shots)

    result = await capture_page(
        _FakePage(), "https://acme.io", duration=1, mode="pro_director", video_format="9:16", output_dir=tmp_path
    )
    assert [s.shot.type for s in result.shots] == ["basic"]


@pytest.mark.asyncio
async def test_pro_capture_result_is_returned(monkeypatch, tmp_path: Path) -> None:
    shot = StoryboardShot(id=1, type="establishing_wide", duration=3)
    expected = CaptureResult(shots=[ExecutedShot(shot=shot, shot_dir=tmp_path / "shot_1", frame_count=24)])
    seen: dict[str, object] = {}

    async def fake_director(page, url, duration, output_dir, **kwargs):
        seen.update(kwargs, output_dir=output_dir)
        return expected

    monkeypatch.setattr(browser, "capture_pro_director", fake_director)

    result = await capture_page(
        _FakePage(),
        "https://acme.io",
        duration=15,
        mode="pro_director",
        video_format="9:16",
        output_dir=tmp_path,
        capture_budget=30,
    )

    assert result is expected
    assert seen["output_dir"] == tmp_path / "shots"
    assert seen["budget_seconds"] == 30
    assert seen["narrative"].total_duration == 15
    assert seen["copy"].cta == "Get Started Today"


@pytest.mark.asyncio
async def test_handle_login_fills_form_and_submits() -> None:
    page = _FakePage()
    creds = Credentials(username="demo", password="secret", loginUrl="https://acme.io/login")

    assert await handle_login(page, creds) is True
    assert page.visited == ["https://acme.io/login"]
    assert page.filled == {browser.USERNAME_SELECTOR: "demo", browser.PASSWORD_SELECTOR: "secret"}
    assert page.clicks == [browser.SUBMIT_SELECTOR]


@pytest.mark.asyncio
async def test_handle_login_without_form_or_credentials() -> None:
    assert await handle_login(_FakePage(), None) is False
    page = _FakePage(login_form=False)
    assert await handle_login(page, Credentials(username="demo", password="secret")) is False
    assert page.filled == {}


@pytest.mark.asyncio
async def test_navigate_wraps_playwright_errors() -> None:
    page = _FakePage(goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))
    with pytest.raises(NavigationError, match="Failed to load https://nope.invalid"):
        await navigate(page, "https://nope.invalid")


@pytest.mark.asyncio
async def test_capture_site_logs_in_then_loads_url(monkeypatch, tmp_path: Path) -> None:
    page = _FakePage()

    class _FakeContext:
        async def new_page(self):
            return page

    class _FakeBrowser:
        async def new_context(self, viewport):
            assert viewport == {"width": 1920, "height": 1080}
            return _FakeContext()

    @asynccontextmanager
    async def fake_launch():
        yield _FakeBrowser()

    monkeypatch.setattr(browser, "launch_browser", fake_launch)
    monkeypatch.setattr(browser, "SETTLE_SECONDS", 0)
    monkeypatch.setattr(browser, "POPUP_SETTLE_SECONDS", 0)

    result = await capture_site(
        "https://acme.io",
        duration=1,
        mode="basic",
        video_format="16:9",
        output_dir=tmp_path,
        credentials=Credentials(username="demo", password="secret"),
    )

    assert page.visited == ["https://acme.io"]
    assert page.filled[browser.USERNAME_SELECTOR] == "demo"
    assert page_scripts.DISMISS_POPUPS in page.scripts
    assert result.shots[0].frame_count == 10
