"""Storyboards: ordered, timed shot lists built from a narrative or a page scan."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import replace
from urllib.parse import urlparse

from models.narrative import Narrative
from models.shot import TIMELINE_FPS, StoryboardShot, frame_at
from models.snapshot import Interaction, ScannedCta, ScannedPage

from .cinematographer import plan_camera_work

logger = logging.getLogger(__name__)

HOOK_SECONDS = 3
INTRO_MIN_SECONDS = 7
INTRO_MAX_SECONDS = 9
FEATURE_MIN_SECONDS = 6
CTA_RESERVE_SECONDS = 8
CTA_MIN_SECONDS = 5
MAX_FEATURE_SHOTS = 3

_FALLBACK_INTERACTIONS = (
    Interaction(selector="body > section:nth-of-type(2)", text="Discover", intent="navigate"),
    Interaction(selector="footer", text="Contact", intent="navigate"),
)


def _place_all(shots: list[StoryboardShot], fps: int = TIMELINE_FPS) -> float:
    """Lay shots end to end with every boundary snapped to the frame grid."""
    elapsed = 0.0
    start_frame = 0
    for shot in shots:
        elapsed += shot.duration
        end_frame = frame_at(elapsed, fps)
        # rounding drift is absorbed by the next boundary, so the total stays on target
        shot.duration = (end_frame - start_frame) / fps
        shot.place(start_frame / fps, fps)
        start_frame = end_frame
    return start_frame / fps


def build_narrative_storyboard(narrative: Narrative) -> list[StoryboardShot]:
    """Flatten narrative beats into shots with execution plans and cumulative timing."""
    shots: list[StoryboardShot] = []
    for beat in narrative.beats:
        logger.info("[storyboard] Beat %s: %d shots", beat.name, len(beat.shots))
        for index, narrative_shot in enumerate(beat.shots):
            shots.append(
                StoryboardShot(
                    id=len(shots) + 1,
                    type=narrative_shot.type,
                    duration=narrative_shot.duration,
                    target=narrative_shot.target,
                    camera_move=narrative_shot.camera_move,
                    action=narrative_shot.interaction,
                    beat=beat.name,
                    # the beat's lead caption rides on its first shot only
                    caption=beat.captions[0] if index == 0 and beat.captions else None,
                    narrative_shot=narrative_shot,
                    tempo=beat.tempo,
                    music=beat.music,
                )
            )
    total = _place_all(shots)
    for shot in shots:
        shot.narrative_shot = replace(shot.narrative_shot, duration=shot.duration)
        shot.execution_plan = plan_camera_work(shot.narrative_shot)
    logger.info("[storyboard] Narrative storyboard: %d shots, %.1fs", len(shots), total)
    return shots


def build_scanner_storyboard(scanned: ScannedPage, target_duration: float = 45) -> list[StoryboardShot]:
    """
    Legacy storyboard from a structural page scan.

    Hook (3 s static) and intro (7-9 s slow pan) on the hero, up to three
    feature shots of at least 6 s each, then a CTA shot of at least 5 s.
    """
    shots: list[StoryboardShot] = [
        StoryboardShot(
            id=1,
            type="hook",
            duration=HOOK_SECONDS,
            target=scanned.hero.selector,
            camera_move="static",
            caption=hook_caption(scanned),
        ),
        StoryboardShot(
            id=2,
            type="intro",
            duration=min(max(INTRO_MIN_SECONDS, math.floor(target_duration * 0.2)), INTRO_MAX_SECONDS),
            target=scanned.hero.selector,
            camera_move="slow_pan_down",
            caption=intro_caption(scanned),
        ),
    ]
    used = sum(s.duration for s in shots)

    interactions = list(scanned.interactions) or list(_FALLBACK_INTERACTIONS)
    count = min(len(interactions), MAX_FEATURE_SHOTS)
    per_feature = max(FEATURE_MIN_SECONDS, math.floor((target_duration - used - CTA_RESERVE_SECONDS) / count))
    for interaction in interactions[:count]:
        navigate = interaction.intent == "navigate"
        shots.append(
            StoryboardShot(
                id=len(shots) + 1,
                type="discovery" if navigate else "feature",
                duration=per_feature,
                target=interaction.selector,
                camera_move="slow_pan_down" if navigate else "zoom_to_action",
                action=None if navigate else "click",
                caption=feature_caption(interaction),
            )
        )
        used += per_feature

    cta = scanned.hero.cta
    shots.append(
        StoryboardShot(
            id=len(shots) + 1,
            type="cta",
            duration=max(CTA_MIN_SECONDS, target_duration - used),
            target=cta.selector if cta else "body",
            camera_move="zoom_to_cta",
            caption=cta_caption(cta),
        )
    )
    total = _place_all(shots)
    logger.info("[storyboard] Scanner storyboard: %d shots, %.1fs", len(shots), total)
    return shots


def product_name(scanned: ScannedPage) -> str:
    if scanned.title:
        name = re.split(r"\s*[-|–—•]\s*", scanned.title, maxsplit=1)[0].strip()
        if name:
            return name
    host = urlparse(scanned.url).hostname or ""
    host = host.removeprefix("www.")
    return host.split(".")[0] if host else "This product"


def hook_caption(scanned: ScannedPage) -> str:
    return f"Meet {product_name(scanned)}"


def intro_caption(scanned: ScannedPage) -> str:
    if 0 < len(scanned.hero.h1) < 60:
        return scanned.hero.h1
    if 0 < len(scanned.description) < 80:
        return scanned.description.split(".")[0]
    return "The modern way to create videos"


def feature_caption(interaction: Interaction) -> str:
    text = re.sub(r"click|here", "", interaction.text, flags=re.IGNORECASE).strip()
    text = text[:1].upper() + text[1:]
    return text[:37] + "..." if len(text) > 40 else text


def cta_caption(cta: ScannedCta | None) -> str:
    if cta is None:
        return "Try it for free"
    text = cta.text.strip()
    if re.search(r"try|start|sign|get|create", text, re.IGNORECASE):
        return text[:1].upper() + text[1:]
    return "Try it free"
