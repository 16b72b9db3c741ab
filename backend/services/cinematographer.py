"""Camera planning: shot archetypes, movements, framing and zoom-pan paths."""

from __future__ import annotations

import asyncio
import logging
import secrets
import string
import time
from dataclasses import dataclass
from typing import Any

import numpy as np

from models.narrative import NarrativeShot
from models.shot import (
    CameraFrame,
    CameraSettings,
    Effects,
    ExecutionPlan,
    FocusPoint,
    Framing,
    TargetSpec,
)

from . import page_scripts

logger = logging.getLogger(__name__)

ORBIT_MAX_ANGLE = 15.0
INTERACTION_FRACTION = 0.4
MIN_INTERACTION_DELAY = 0.3
CURSOR_SETTLE_SECONDS = 0.15
INTERACTION_TIMEOUT_MS = 2000
SCROLL_VIEWPORTS = 2.5
PAN_FALLBACK_VIEWPORTS = 0.8

_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class ShotType:
    zoom_min: float
    zoom_max: float
    duration_min: float
    duration_max: float
    movement: str
    framing: str


@dataclass(frozen=True)
class CameraMovement:
    type: str
    easing: str
    curve: tuple[float, float, float, float]


SHOT_LIBRARY: dict[str, ShotType] = {
    "establishing_wide": ShotType(0.8, 1.2, 2, 4, "smooth_push_in", "full_viewport"),
    "feature_medium": ShotType(1.2, 1.5, 3, 5, "gentle_pan", "rule_of_thirds"),
    "detail_closeup": ShotType(1.5, 2.5, 1.5, 3, "dramatic_zoom", "center_focus"),
    "interaction_pov": ShotType(1.3, 1.6, 2, 4, "follow_cursor", "dynamic"),
    "scroll_reveal": ShotType(1.0, 1.1, 3, 6, "smooth_scroll", "vertical_flow"),
    "orbit_focus": ShotType(1.3, 1.4, 3, 5, "subtle_orbit", "center_focus"),
}
DEFAULT_SHOT_TYPE = "feature_medium"

_EASE_IN_OUT = (0.4, 0.0, 0.2, 1.0)
_EASE_IN = (0.4, 0.0, 1.0, 1.0)
_EASE_OUT = (0.0, 0.0, 0.2, 1.0)
_LINEAR = (0.0, 0.0, 1.0, 1.0)

CAMERA_MOVEMENTS: dict[str, CameraMovement] = {
    "smooth_push_in": CameraMovement("zoom", "ease-in-out", _EASE_IN_OUT),
    "dramatic_zoom": CameraMovement("zoom", "ease-in", _EASE_IN),
    "gentle_pan": CameraMovement("pan", "linear", _LINEAR),
    "smooth_scroll": CameraMovement("scroll", "ease-out", _EASE_OUT),
    "follow_cursor": CameraMovement("track", "ease-in-out", _EASE_IN_OUT),
    "subtle_orbit": CameraMovement("orbit", "linear", _LINEAR),
    "static_focus": CameraMovement("static", "none", (0.0, 0.0, 0.0, 0.0)),
    # tags emitted by the narrative planner
    "pan_smooth": CameraMovement("pan", "ease-in-out", _EASE_IN_OUT),
    "zoom_dramatic": CameraMovement("zoom", "ease-in", _EASE_IN),
    "scroll_smooth": CameraMovement("scroll", "ease-out", _EASE_OUT),
    "push_smooth": CameraMovement("zoom", "ease-out", _EASE_OUT),
    "zoom_in": CameraMovement("zoom", "ease-in", _EASE_IN),
    "zoom_out": CameraMovement("zoom", "ease-out", _EASE_OUT),
}
DEFAULT_MOVEMENT = "smooth_push_in"

# Rule-of-thirds focus points, first keyword contained in the target wins.
COMPOSITIONS: tuple[tuple[str, FocusPoint], ...] = (
    ("hero", FocusPoint(0.5, 0.33)),
    ("headline", FocusPoint(0.5, 0.33)),
    ("feature", FocusPoint(0.33, 0.5)),
    ("cta", FocusPoint(0.5, 0.66)),
    ("testimonial", FocusPoint(0.5, 0.5)),
    ("logo", FocusPoint(0.5, 0.5)),
    ("metrics", FocusPoint(0.66, 0.33)),
)
CENTER = FocusPoint(0.5, 0.5)

SELECTOR_MAP: dict[str, str] = {
    "hero": 'section:first-of-type, header, [class*="hero"]',
    "hero_headline": "h1",
    "testimonials": '[class*="testimonial"], [class*="review"]',
    "stats": '[class*="stat"], [class*="metric"]',
    "footer": "footer",
    "logo": 'img[alt*="logo" i], [class*="logo"]',
    "content": "main, body",
}


def _generate_shot_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"shot_{int(time.time() * 1000)}_{suffix}"


def calculate_composition(target: str | None) -> FocusPoint:
    if isinstance(target, str):
        lowered = target.lower()
        for keyword, point in COMPOSITIONS:
            if keyword in lowered:
                return point
    return CENTER


def plan_camera_work(shot: NarrativeShot) -> ExecutionPlan:
    """Resolve a narrative shot into concrete camera, framing and effect parameters."""
    shot_type = SHOT_LIBRARY.get(shot.type, SHOT_LIBRARY[DEFAULT_SHOT_TYPE])
    movement = CAMERA_MOVEMENTS.get(shot.camera_move, CAMERA_MOVEMENTS[DEFAULT_MOVEMENT])

    zoom_start = shot.zoom.start if shot.zoom and shot.zoom.start else shot_type.zoom_min
    zoom_end = shot.zoom.end if shot.zoom and shot.zoom.end else shot_type.zoom_max

    return ExecutionPlan(
        shot_id=_generate_shot_id(),
        type=shot.type,
        duration=shot.duration or shot_type.duration_min,
        camera=CameraSettings(
            zoom_start=zoom_start,
            zoom_end=zoom_end,
            movement=movement.type,
            easing=movement.easing,
            easing_curve=movement.curve,
        ),
        framing=Framing(
            type=shot_type.framing,
            composition=calculate_composition(shot.target),
            focus_point=shot.focus or "element",
        ),
        target=TargetSpec(
            selector=shot.target,
            highlight=shot.highlight,
            overlay=shot.overlay,
            interaction=shot.interaction,
        ),
        effects=Effects(
            motion_blur=0.3 if movement.type == "zoom" else 0.0,
            vignette=0.2 if "closeup" in shot.type else 0.0,
            glow=shot.highlight == "pulse_glow",
            color_grade=shot.overlay or "none",
        ),
        beat=shot.beat or "unknown",
        feature=shot.feature,
        cta=shot.cta,
    )


def apply_easing(t, curve):
    """
    Eased progress for t in [0, 1] (float or numpy array).

    Samples the bezier y polynomial at t directly instead of solving x(t) = t,
    an approximation that matches the curve for symmetric timing functions.
    An all-zero curve is linear.
    """
    if all(v == 0 for v in curve):
        return t
    _, y1, _, y2 = curve
    cy = 3.0 * y1
    by = 3.0 * (y2 - y1) - cy
    ay = 1.0 - cy - by
    return ((ay * t + by) * t + cy) * t


def generate_camera_path(plan: ExecutionPlan, fps: int = 10) -> list[CameraFrame]:
    frames = int(np.floor(plan.duration * fps))
    if frames <= 0:
        return []
    progress = np.linspace(0.0, 1.0, frames) if frames > 1 else np.zeros(1)
    eased = np.asarray(apply_easing(progress, plan.camera.easing_curve), dtype=float)
    zooms = plan.camera.zoom_start + (plan.camera.zoom_end - plan.camera.zoom_start) * eased
    if plan.camera.movement == "orbit":
        rotations = eased * ORBIT_MAX_ANGLE
    else:
        rotations = np.zeros(frames)
    focus = plan.framing.composition
    return [
        CameraFrame(frame=i, zoom=float(zooms[i]), x=focus.x, y=focus.y, rotation=float(rotations[i]))
        for i in range(frames)
    ]


def _fmt(value: float) -> str:
    return f"{value:.4f}".rstrip("0").rstrip(".") or "0"


def generate_zoompan_filter(
    path: list[CameraFrame],
    width: int,
    height: int,
    fps: int = 30,
) -> str | None:
    """
    ffmpeg zoompan filter for a camera path.

    Each input frame produces exactly one output frame (d=1); zoom advances
    with the output frame counter over the path length and the crop window is
    centred on the composition focus point, clamped to the frame.
    """
    if not path:
        return None
    count = len(path)
    z0 = _fmt(path[0].zoom)
    z1 = _fmt(path[-1].zoom)
    cx = _fmt(path[0].x)
    cy = _fmt(path[0].y)
    zoom = f"if(lte(on,0),{z0},{z0}+({z1}-{z0})*on/{count})"
    x = f"max(0,min(iw-iw/zoom,iw*{cx}-iw/zoom/2))"
    y = f"max(0,min(ih-ih/zoom,ih*{cy}-ih/zoom/2))"
    return f"zoompan=z='{zoom}':x='{x}':y='{y}':d=1:s={width}x{height}:fps={fps}"


async def find_target_element(page: Any, target: str) -> str:
    """Resolve a semantic target key to a CSS selector; raw selectors pass through."""
    selector = SELECTOR_MAP.get(target, target)
    try:
        exists = await page.evaluate(page_scripts.ELEMENT_EXISTS, selector)
        if not exists:
            logger.info("[cinematographer] No element matches %s yet", selector)
    except Exception as exc:
        logger.warning("[cinematographer] Selector check failed for %s: %s", selector, exc)
    return selector


async def _scroll_into_view(page: Any, selector: str | None) -> bool:
    if not selector:
        return False
    try:
        return bool(await page.evaluate(page_scripts.SCROLL_INTO_VIEW, selector))
    except Exception as exc:
        logger.warning("[cinematographer] Could not focus %s: %s", selector, exc)
        return False


async def _smooth_scroll(page: Any, duration: float, factor: float) -> None:
    try:
        viewport = await page.evaluate(page_scripts.VIEWPORT_HEIGHT)
        distance = float(viewport) * SCROLL_VIEWPORTS * factor
        logger.info("[cinematographer] Scrolling %.0fpx over %.1fs", distance, duration)
        await page.evaluate(page_scripts.ANIMATE_SCROLL, {"distance": distance, "seconds": duration})
    except Exception as exc:
        logger.warning("[cinematographer] Scroll failed: %s", exc)
    await asyncio.sleep(duration)


async def _smooth_pan(page: Any, selector: str | None, duration: float) -> None:
    if selector and not await _scroll_into_view(page, selector):
        logger.info("[cinematographer] %s not found, panning one viewport down", selector)
        try:
            await page.evaluate(page_scripts.SCROLL_BY_VIEWPORT, PAN_FALLBACK_VIEWPORTS)
        except Exception as exc:
            logger.warning("[cinematographer] Pan failed: %s", exc)
    await asyncio.sleep(duration)


async def _run_movement(page: Any, plan: ExecutionPlan, selector: str | None) -> None:
    movement = plan.camera.movement
    if movement == "scroll":
        await _smooth_scroll(page, plan.duration, plan.camera.zoom_end)
    elif movement == "pan":
        await _smooth_pan(page, selector, plan.duration)
    elif movement in ("zoom", "track", "static"):
        # magnification happens later in the zoompan filter; only framing here
        await _scroll_into_view(page, selector)
        await asyncio.sleep(plan.duration)
    else:
        await asyncio.sleep(plan.duration)


async def _perform_interaction(page: Any, plan: ExecutionPlan, selector: str) -> None:
    await asyncio.sleep(max(MIN_INTERACTION_DELAY, plan.duration * INTERACTION_FRACTION))
    interaction = plan.target.interaction
    logger.info("[cinematographer] Performing %s on %s", interaction, selector)
    try:
        await page.evaluate(page_scripts.MOVE_CURSOR, selector)
        await asyncio.sleep(CURSOR_SETTLE_SECONDS)
        if interaction == "click":
            await page.evaluate(page_scripts.CLICK_RIPPLE, selector)
            await page.click(selector, timeout=INTERACTION_TIMEOUT_MS)
        elif interaction == "hover":
            await page.hover(selector, timeout=INTERACTION_TIMEOUT_MS)
    except Exception as exc:
        logger.warning("[cinematographer] Interaction %s failed: %s", interaction, exc)


async def execute_camera_move(page: Any, plan: ExecutionPlan) -> float:
    """
    Drive the live page for one shot.

    Runs the movement behaviour for the plan's movement class and, when an
    interaction is requested, fires it part-way through the shot concurrently.
    Interaction failures are logged and never abort the shot. Returns the
    shot duration.
    """
    logger.info("[cinematographer] Executing %s shot (%s)", plan.type, plan.camera.movement)

    selector: str | None = None
    if plan.target.selector and plan.target.selector != "viewport":
        selector = await find_target_element(page, plan.target.selector)

    if plan.target.highlight and selector:
        try:
            await page.evaluate(
                page_scripts.HIGHLIGHT_ELEMENT, {"sel": selector, "glow": plan.effects.glow}
            )
        except Exception as exc:
            logger.warning("[cinematographer] Highlight failed for %s: %s", selector, exc)

    if plan.target.interaction and selector:
        await asyncio.gather(
            _run_movement(page, plan, selector),
            _perform_interaction(page, plan, selector),
        )
    else:
        await _run_movement(page, plan, selector)
    return plan.duration
