from __future__ import annotations

import re

import numpy as np
import pytest

from models.narrative import NarrativeShot, ZoomRange
from services import page_scripts
from services.cinematographer import (
    CENTER,
    ORBIT_MAX_ANGLE,
    SELECTOR_MAP,
    apply_easing,
    calculate_composition,
    execute_camera_move,
    generate_camera_path,
    generate_zoompan_filter,
    plan_camera_work,
)


class _FakePage:
    def __init__(self, *, click_error: Exception | None = None, found: bool = True) -> None:
        self.calls: list[tuple[str, object]] = []
        self.clicked: list[str] = []
        self.click_error = click_error
        self.found = found

    async def evaluate(self, script: str, arg=None):
        self.calls.append((script, arg))
        if script in (page_scripts.ELEMENT_EXISTS, page_scripts.SCROLL_INTO_VIEW):
            return self.found
        if script == page_scripts.VIEWPORT_HEIGHT:
            return 800
        return None

    async def click(self, selector: str, **kwargs) -> None:
        if self.click_error is not None:
            raise self.click_error
        self.clicked.append(selector)

    async def hover(self, selector: str, **kwargs) -> None:
        self.clicked.append(f"hover:{selector}")

    def scripts(self) -> list[str]:
        return [script for script, _ in self.calls]


def test_plan_camera_work_falls_back_for_unknown_type_and_movement() -> None:
    shot = NarrativeShot(type="mystery", target="somewhere", duration=0, camera_move="wobble")
    plan = plan_camera_work(shot)

    # feature_medium archetype with smooth_push_in movement
    assert plan.camera.zoom_start == 1.2
    assert plan.camera.zoom_end == 1.5
    assert plan.camera.movement == "zoom"
    assert plan.camera.easing == "ease-in-out"
    assert plan.duration == 3
    assert plan.framing.type == "rule_of_thirds"
    assert plan.framing.composition == CENTER
    assert plan.beat == "unknown"
    assert re.fullmatch(r"shot_\d+_[a-z0-9]{9}", plan.shot_id)


def test_plan_camera_work_keeps_shot_zoom_and_effects() -> None:
    shot = NarrativeShot(
        type="detail_closeup",
        target="cta button",
        duration=4,
        camera_move="pan_smooth",
        zoom=ZoomRange(1.1, 1.3),
        highlight="pulse_glow",
        overlay="warm",
        interaction="click",
        beat="cta",
    )
    plan = plan_camera_work(shot)

    assert (plan.camera.zoom_start, plan.camera.zoom_end) == (1.1, 1.3)
    assert plan.camera.movement == "pan"
    assert plan.effects.motion_blur == 0.0
    assert plan.effects.vignette == 0.2
    assert plan.effects.glow is True
    assert plan.effects.color_grade == "warm"
    assert plan.target.interaction == "click"
    assert plan.framing.composition.y == pytest.approx(0.66)
    assert plan.beat == "cta"


def test_zoom_movements_get_motion_blur() -> None:
    plan = plan_camera_work(
        NarrativeShot(type="establishing_wide", target="hero", duration=3, camera_move="push_smooth")
    )
    assert plan.effects.motion_blur == 0.3


@pytest.mark.parametrize(
    ("target", "expected"),
    [
        ("hero", (0.5, 0.33)),
        ("Headline text", (0.5, 0.33)),
        ("feature-grid", (0.33, 0.5)),
        ("metrics", (0.66, 0.33)),
        ("footer", (0.5, 0.5)),
        (None, (0.5, 0.5)),
    ],
)
def test_calculate_composition(target, expected) -> None:
    point = calculate_composition(target)
    assert (point.x, point.y) == expected


def test_apply_easing_endpoints_and_linear() -> None:
    assert apply_easing(0.0, (0.4, 0.0, 0.2, 1.0)) == pytest.approx(0.0)
    assert apply_easing(1.0, (0.4, 0.0, 0.2, 1.0)) == pytest.approx(1.0)
    assert apply_easing(0.37, (0.0, 0.0, 0.0, 0.0)) == 0.37

    values = apply_easing(np.linspace(0, 1, 11), (0.0, 0.0, 0.2, 1.0))
    assert values[0] == pytest.approx(0.0)
    assert values[-1] == pytest.approx(1.0)
    assert np.all(np.diff(values) >= 0)


def test_camera_path_length_and_zoom_endpoints() -> None:
    plan = plan_camera_work(
        NarrativeShot(type="establishing_wide", target="hero", duration=2.5, camera_move="zoom_in",
                      zoom=ZoomRange(1.0, 1.4))
    )
    path = generate_camera_path(plan, fps=10)

    assert len(path) == 25
    assert [f.frame for f in path] == list(range(25))
    assert path[0].zoom == pytest.approx(1.0)
    assert path[-1].zoom == pytest.approx(1.4)
    assert all(f.rotation == 0 for f in path)
    assert (path[0].x, path[0].y) == (0.5, 0.33)


def test_camera_path_single_frame_and_empty() -> None:
    short = plan_camera_work(NarrativeShot(type="orbit_focus", target="x", duration=0.1, camera_move="subtle_orbit"))
    path = generate_camera_path(short, fps=10)
    assert len(path) == 1
    assert path[0].zoom == pytest.approx(short.camera.zoom_start)

    assert generate_camera_path(short, fps=5) == []


def test_orbit_rotation_reaches_max_angle() -> None:
    plan = plan_camera_work(NarrativeShot(type="orbit_focus", target="x", duration=2, camera_move="subtle_orbit"))
    path = generate_camera_path(plan, fps=10)
    assert path[0].rotation == pytest.approx(0.0)
    assert path[-1].rotation == pytest.approx(ORBIT_MAX_ANGLE)


def test_zoompan_filter_emits_one_frame_per_input() -> None:
    plan = plan_camera_work(
        NarrativeShot(type="establishing_wide", target="hero", duration=2, camera_move="zoom_in",
                      zoom=ZoomRange(1.0, 1.5))
    )
    filt = generate_zoompan_filter(generate_camera_path(plan), 1080, 1920, fps=30)

    assert filt is not None
    assert filt.startswith("zoompan=")
    assert ":d=1:" in filt
    assert "s=1080x1920" in filt
    assert "fps=30" in filt
    assert "1+(1.5-1)*on/20" in filt
    assert "iw*0.5-iw/zoom/2" in filt
    assert "ih*0.33-ih/zoom/2" in filt


def test_zoompan_filter_empty_path() -> None:
    assert generate_zoompan_filter([], 1080, 1920) is None


@pytest.mark.asyncio
async def test_execute_camera_move_resolves_semantic_target() -> None:
    page = _FakePage()
    plan = plan_camera_work(
        NarrativeShot(type="establishing_wide", target="footer", duration=0.05, camera_move="push_smooth")
    )
    duration = await execute_camera_move(page, plan)

    assert duration == 0.05
    assert (page_scripts.ELEMENT_EXISTS, SELECTOR_MAP["footer"]) in page.calls
    assert (page_scripts.SCROLL_INTO_VIEW, SELECTOR_MAP["footer"]) in page.calls


@pytest.mark.asyncio
async def test_execute_camera_move_scroll_uses_viewport_height() -> None:
    page = _FakePage()
    plan = plan_camera_work(
        NarrativeShot(type="scroll_reveal", target="content", duration=0.05, camera_move="scroll_smooth",
                      zoom=ZoomRange(1.0, 1.0))
    )
    await execute_camera_move(page, plan)

    scroll_args = [arg for script, arg in page.calls if script == page_scripts.ANIMATE_SCROLL]
    assert scroll_args == [{"distance": 2000.0, "seconds": 0.05}]


@pytest.mark.asyncio
async def test_pan_falls_back_to_viewport_scroll_when_target_missing() -> None:
    page = _FakePage(found=False)
    plan = plan_camera_work(
        NarrativeShot(type="feature_medium", target=".missing", duration=0.05, camera_move="pan_smooth")
    )
    await execute_camera_move(page, plan)
    assert (page_scripts.SCROLL_BY_VIEWPORT, 0.8) in page.calls


@pytest.mark.asyncio
async def test_click_interaction_runs_ripple_and_click() -> None:
    page = _FakePage()
    plan = plan_camera_work(
        NarrativeShot(type="detail_closeup", target="a, button", duration=0.05, camera_move="zoom_dramatic",
                      interaction="click", highlight=True)
    )
    await execute_camera_move(page, plan)

    scripts = page.scripts()
    assert page_scripts.HIGHLIGHT_ELEMENT in scripts
    assert page_scripts.MOVE_CURSOR in scripts
    assert page_scripts.CLICK_RIPPLE in scripts
    assert page.clicked == ["a, button"]


@pytest.mark.asyncio
async def test_interaction_failure_does_not_abort_shot() -> None:
    page = _FakePage(click_error=RuntimeError("element detached"))
    plan = plan_camera_work(
        NarrativeShot(type="detail_closeup", target="a, button", duration=0.05, camera_move="zoom_dramatic",
                      interaction="click")
    )
    assert await execute_camera_move(page, plan) == 0.05
    assert page.clicked == []
