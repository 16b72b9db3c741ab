"""Story engine: turn a page's semantic snapshot into a timed sequence of narrative beats."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable

from models.narrative import (
    BeatName,
    Caption,
    Narrative,
    NarrativeBeat,
    NarrativeCopy,
    NarrativeMetadata,
    NarrativeShot,
    ZoomRange,
)
from models.snapshot import PageType, SemanticSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BeatConfig:
    proportion: float          # share of the target duration
    tempo: str
    music: str


@dataclass(frozen=True)
class NarrativeTemplate:
    structure: tuple[str, ...]
    beats: dict[str, BeatConfig]


_HOOK = BeatConfig(0.10, "fast", "intense_build")
_CTA = BeatConfig(0.20, "medium", "resolution")

NARRATIVE_TEMPLATES: dict[PageType, NarrativeTemplate] = {
    PageType.SAAS_LANDING: NarrativeTemplate(
        structure=("hook", "solution", "cta"),
        beats={"hook": _HOOK, "solution": BeatConfig(0.70, "dynamic", "uplifting"), "cta": _CTA},
    ),
    PageType.PRODUCT: NarrativeTemplate(
        structure=("hook", "features", "cta"),
        beats={"hook": _HOOK, "features": BeatConfig(0.70, "dynamic", "uplifting"), "cta": _CTA},
    ),
    PageType.PRICING: NarrativeTemplate(
        structure=("hook", "plans", "cta"),
        beats={
            "hook": _HOOK,
            "plans": BeatConfig(0.67, "dynamic", "uplifting"),
            "cta": BeatConfig(0.23, "medium", "resolution"),
        },
    ),
}
DEFAULT_TEMPLATE = NARRATIVE_TEMPLATES[PageType.SAAS_LANDING]

MAX_FEATURE_SHOTS = 2
MAX_FEATURE_CAPTIONS = 3


def plan_narrative(snapshot: SemanticSnapshot, target_duration: float = 50) -> Narrative:
    """
    Build the narrative beats for a snapshot and normalize them to `target_duration`.

    Beats are generated independently from their template proportion (rounded to whole
    seconds, at least 1s each), then every beat, shot and caption is rescaled by one
    common ratio so the finished timeline sums exactly to the target.
    """
    template = NARRATIVE_TEMPLATES.get(snapshot.page_type, DEFAULT_TEMPLATE)
    logger.info(
        "[narrative_planner] Planning %s narrative (%s) for %.1fs",
        snapshot.page_type.value,
        " -> ".join(template.structure),
        target_duration,
    )

    beats = [
        create_beat(name, template.beats[name], snapshot, index, target_duration)
        for index, name in enumerate(template.structure)
    ]
    beats = normalize_timing(beats, target_duration)

    logger.info(
        "[narrative_planner] Created %d beats with %d shots",
        len(beats),
        sum(len(b.shots) for b in beats),
    )
    return Narrative(
        structure=template.structure,
        beats=tuple(beats),
        total_duration=target_duration,
        metadata=NarrativeMetadata(
            page_type=snapshot.page_type,
            has_testimonials=bool(snapshot.social_proof.testimonials),
            has_metrics=bool(snapshot.social_proof.metrics),
            value_props_count=len(snapshot.value_props),
        ),
    )


def create_beat(
    name: str,
    config: BeatConfig,
    snapshot: SemanticSnapshot,
    index: int,
    target_duration: float,
) -> NarrativeBeat:
    duration = float(max(1, _round_half_up(config.proportion * target_duration)))
    shot_builder, caption_builder = BEAT_BUILDERS.get(name, (generic_shots, generic_captions))
    shots = tuple(replace(shot, beat=name) for shot in shot_builder(snapshot, duration))
    return NarrativeBeat(
        name=name,
        index=index,
        duration=duration,
        tempo=config.tempo,
        music=config.music,
        shots=shots,
        captions=tuple(caption_builder(snapshot)),
    )


def normalize_timing(beats: list[NarrativeBeat], target_duration: float) -> list[NarrativeBeat]:
    """Rescale beats, their shots and captions by `target / sum(beat durations)`."""
    current_total = sum(beat.duration for beat in beats)
    if current_total <= 0:
        return beats
    ratio = target_duration / current_total
    return [
        replace(
            beat,
            duration=beat.duration * ratio,
            shots=tuple(replace(shot, duration=shot.duration * ratio) for shot in beat.shots),
            captions=tuple(
                replace(c, start_time=c.start_time * ratio, duration=c.duration * ratio)
                for c in beat.captions
            ),
        )
        for beat in beats
    ]


# --- hook ---


def hook_shots(data: SemanticSnapshot, duration: float) -> list[NarrativeShot]:
    if data.hero.headline:
        return [
            NarrativeShot(
                type="establishing_wide",
                target="hero",
                duration=duration,
                camera_move="push_smooth",
                zoom=ZoomRange(0.9, 1.1),
                focus="headline",
            )
        ]
    return [
        NarrativeShot(
            type="establishing_wide",
            target="viewport",
            duration=duration,
            camera_move="static",
            zoom=ZoomRange(1.0, 1.0),
        )
    ]


def hook_captions(data: SemanticSnapshot) -> list[Caption]:
    text = data.hero.headline or data.hero.subheadline or "See what's possible"
    return [
        Caption(
            text=text,
            start_time=0.5,
            duration=2.0,
            position="center",
            animation="scale_bounce",
            style="headline",
        )
    ]


# --- problem ---


def problem_shots(data: SemanticSnapshot, duration: float) -> list[NarrativeShot]:
    pains = data.pain_points[:2]
    if not pains:
        return [
            NarrativeShot(
                type="scroll_reveal",
                target="features",
                duration=duration,
                camera_move="scroll_smooth",
                scroll_amount=0.3,
            )
        ]
    return [
        NarrativeShot(
            type="feature_medium",
            target="problem_section",
            duration=duration / len(pains),
            camera_move="pan_right",
            zoom=ZoomRange(1.1, 1.2),
            overlay="subtle_red_tint",
        )
        for _ in pains
    ]


def problem_captions(data: SemanticSnapshot) -> list[Caption]:
    if data.pain_points:
        return [
            Caption(
                text=data.pain_points[0].text,
                start_time=1.0,
                duration=3.0,
                position="lower_third",
                animation="fade_slide_up",
                style="problem",
            )
        ]
    return [
        Caption(
            text="Looking for a better solution?",
            start_time=1.0,
            duration=2.5,
            position="center",
            animation="fade_slide_up",
            style="question",
        )
    ]


# --- solution / features / plans ---


def solution_shots(data: SemanticSnapshot, duration: float) -> list[NarrativeShot]:
    props = data.value_props[:MAX_FEATURE_SHOTS]
    if not props:
        return [
            NarrativeShot(
                type="scroll_tour",
                target="content",
                duration=duration,
                camera_move="scroll_smooth",
                scroll_amount=0.5,
            )
        ]
    per_feature = duration / len(props)
    shots = []
    for idx, prop in enumerate(props):
        # Skip the first section, which is usually the hero.
        selectors = (
            f"section:nth-of-type({idx + 2})",
            f"div[class]:nth-of-type({idx + 3})",
            f"article:nth-of-type({idx + 1})",
        )
        shots.append(
            NarrativeShot(
                type="feature_showcase",
                target=", ".join(selectors),
                duration=per_feature,
                camera_move="pan_smooth",
                zoom=ZoomRange(1.0, 1.2),
                feature=prop,
            )
        )
    return shots


def solution_captions(data: SemanticSnapshot) -> list[Caption]:
    captions = []
    current = 0.5
    for prop in data.value_props[:MAX_FEATURE_CAPTIONS]:
        captions.append(
            Caption(
                text=prop.title,
                description=prop.description[:80],
                start_time=current,
                duration=3.5,
                position="lower_third",
                animation="kinetic_split",
                style="feature",
            )
        )
        current += 4.0
    if not captions:
        captions.append(
            Caption(
                text="Everything you need in one place",
                start_time=0.5,
                duration=3.0,
                position="lower_third",
                animation="fade",
                style="feature",
            )
        )
    return captions


# --- proof ---


def proof_shots(data: SemanticSnapshot, duration: float) -> list[NarrativeShot]:
    has_testimonials = bool(data.social_proof.testimonials)
    has_metrics = bool(data.social_proof.metrics)
    shots = []
    if has_testimonials:
        shots.append(
            NarrativeShot(
                type="testimonial_carousel",
                target="testimonials",
                duration=duration * 0.6 if has_metrics else duration,
                camera_move="pan_smooth",
                zoom=ZoomRange(1.1, 1.2),
            )
        )
    if has_metrics:
        shots.append(
            NarrativeShot(
                type="metrics_display",
                target="stats",
                duration=duration * 0.4 if has_testimonials else duration,
                camera_move="static_focus",
                zoom=ZoomRange(1.3, 1.3),
                effect="counter_animation",
            )
        )
    if not shots:
        shots.append(
            NarrativeShot(
                type="brand_trust",
                target="footer",
                duration=duration,
                camera_move="slow_pan",
                zoom=ZoomRange(1.0, 1.1),
            )
        )
    return shots


def proof_captions(data: SemanticSnapshot) -> list[Caption]:
    captions = []
    if data.social_proof.testimonials:
        testimonial = data.social_proof.testimonials[0]
        captions.append(
            Caption(
                text=f'"{testimonial.text}"',
                author=testimonial.author,
                start_time=1.0,
                duration=4.0,
                position="center",
                animation="fade",
                style="testimonial",
            )
        )
    if data.social_proof.metrics:
        metric = data.social_proof.metrics[0]
        captions.append(
            Caption(
                text=metric.value,
                description=metric.label,
                start_time=5.0,
                duration=3.0,
                position="center",
                animation="scale_bounce",
                style="metric",
            )
        )
    if not captions:
        captions.append(
            Caption(
                text="Trusted by teams everywhere",
                start_time=1.0,
                duration=3.0,
                position="center",
                animation="fade",
                style="testimonial",
            )
        )
    return captions


# --- cta ---


def cta_shots(data: SemanticSnapshot, duration: float) -> list[NarrativeShot]:
    if data.ctas.primary:
        return [
            NarrativeShot(
                type="cta_focus",
                target="a, button",
                duration=duration,
                camera_move="zoom_dramatic",
                zoom=ZoomRange(1.0, 1.4),
                interaction="click",
                cta=data.ctas.primary,
            )
        ]
    return [
        NarrativeShot(
            type="scroll_to_footer",
            target="footer",
            duration=duration,
            camera_move="scroll_smooth",
            scroll_amount=0.3,
        )
    ]


def cta_captions(data: SemanticSnapshot) -> list[Caption]:
    if data.ctas.primary:
        return [
            Caption(
                text=data.ctas.primary.text,
                start_time=1.0,
                duration=3.0,
                position="center",
                animation="scale_bounce",
                style="cta",
                callout=True,
            )
        ]
    return [
        Caption(
            text="Get Started Today",
            start_time=1.0,
            duration=2.5,
            position="center",
            animation="fade",
            style="cta",
        )
    ]


# --- benefits ---


def benefits_shots(data: SemanticSnapshot, duration: float) -> list[NarrativeShot]:
    return [replace(shot, overlay="success_green_tint") for shot in solution_shots(data, duration)]


def benefits_captions(data: SemanticSnapshot) -> list[Caption]:
    return [replace(caption, style="benefit") for caption in solution_captions(data)]


# --- fallback ---


def generic_shots(data: SemanticSnapshot, duration: float) -> list[NarrativeShot]:
    return [
        NarrativeShot(
            type="scroll_tour",
            target="content",
            duration=duration,
            camera_move="scroll_smooth",
            scroll_amount=0.5,
        )
    ]


def generic_captions(data: SemanticSnapshot) -> list[Caption]:
    return [
        Caption(
            text=data.hero.headline or "Discover more",
            start_time=0.5,
            duration=2.5,
            position="lower_third",
            animation="fade",
            style="feature",
        )
    ]


ShotBuilder = Callable[[SemanticSnapshot, float], list[NarrativeShot]]
CaptionBuilder = Callable[[SemanticSnapshot], list[Caption]]

BEAT_BUILDERS: dict[str, tuple[ShotBuilder, CaptionBuilder]] = {
    BeatName.HOOK: (hook_shots, hook_captions),
    BeatName.PROBLEM: (problem_shots, problem_captions),
    BeatName.SOLUTION: (solution_shots, solution_captions),
    BeatName.FEATURES: (solution_shots, solution_captions),
    BeatName.PLANS: (solution_shots, solution_captions),
    BeatName.PROOF: (proof_shots, proof_captions),
    BeatName.SOCIAL_PROOF: (proof_shots, proof_captions),
    BeatName.CTA: (cta_shots, cta_captions),
    BeatName.BENEFITS: (benefits_shots, benefits_captions),
}


def generate_narrative_copy(snapshot: SemanticSnapshot) -> NarrativeCopy:
    """Pick one line of copy per narrative phase from the snapshot."""
    problem = ""
    if snapshot.pain_points:
        problem = snapshot.pain_points[0].text
    elif snapshot.value_props:
        problem = f"Looking for {snapshot.value_props[0].title.lower()}?"

    proof = ""
    if snapshot.social_proof.testimonials:
        proof = snapshot.social_proof.testimonials[0].text
    elif snapshot.social_proof.metrics:
        proof = f"Join {snapshot.social_proof.metrics[0].value} satisfied users"

    return NarrativeCopy(
        hook=snapshot.hero.headline,
        problem=problem,
        solution=". ".join(p.title for p in snapshot.value_props[:3]),
        proof=proof,
        cta=snapshot.ctas.primary.text if snapshot.ctas.primary else "Get Started Today",
    )


def _round_half_up(value: float) -> int:
    return int(value + 0.5)
