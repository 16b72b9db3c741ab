from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from .snapshot import CallToAction, PageType, ValueProp


class BeatName(StrEnum):
    HOOK = "hook"
    PROBLEM = "problem"
    SOLUTION = "solution"
    FEATURES = "features"
    PLANS = "plans"
    PROOF = "proof"
    SOCIAL_PROOF = "social_proof"
    CTA = "cta"
    BENEFITS = "benefits"


@dataclass(frozen=True)
class ZoomRange:
    start: float
    end: float


@dataclass(frozen=True)
class NarrativeShot:
    type: str                              # shot archetype, e.g. "establishing_wide"
    target: str                            # semantic key ("hero") or raw CSS selector
    duration: float                        # seconds
    camera_move: str                       # movement tag, e.g. "push_smooth"
    zoom: ZoomRange | None = None
    focus: str | None = None
    highlight: bool | str = False          # False, True or "pulse_glow"
    interaction: str | None = None         # "click" | "hover"
    overlay: str | None = None             # colour grade tag
    scroll_amount: float | None = None
    effect: str | None = None
    feature: ValueProp | None = None
    cta: CallToAction | None = None
    beat: str | None = None


@dataclass(frozen=True)
class Caption:
    text: str
    start_time: float                      # seconds from beat (or timeline) start
    duration: float
    position: str = "center"               # center | lower_third
    animation: str = "fade"
    style: str = "feature"
    description: str | None = None
    author: str | None = None
    callout: bool = False


@dataclass(frozen=True)
class NarrativeBeat:
    name: str
    index: int
    duration: float
    tempo: str
    music: str
    shots: tuple[NarrativeShot, ...] = ()
    captions: tuple[Caption, ...] = ()


@dataclass(frozen=True)
class NarrativeMetadata:
    page_type: PageType
    has_testimonials: bool
    has_metrics: bool
    value_props_count: int


@dataclass(frozen=True)
class Narrative:
    structure: tuple[str, ...]
    beats: tuple[NarrativeBeat, ...]
    total_duration: float
    metadata: NarrativeMetadata


@dataclass(frozen=True)
class NarrativeCopy:
    """One-line marketing copy per narrative phase, used for caption overlays."""

    hook: str = ""
    problem: str = ""
    solution: str = ""
    proof: str = ""
    cta: str = "Get Started Today"
