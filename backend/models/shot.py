from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path

from .narrative import Caption, NarrativeCopy, NarrativeShot
from .snapshot import CallToAction, ValueProp

CAPTURE_FPS = 8            # professional shots
LEGACY_CAPTURE_FPS = 10    # scanner storyboard and basic mode
TIMELINE_FPS = 10          # storyboard frame numbering


def frame_at(seconds: float, fps: int = TIMELINE_FPS) -> int:
    """Timeline frame index for a time offset (half-up rounding)."""
    return int(math.floor(seconds * fps + 0.5))


@dataclass(frozen=True)
class FocusPoint:
    x: float                   # fraction of viewport width
    y: float                   # fraction of viewport height


@dataclass(frozen=True)
class CameraSettings:
    zoom_start: float
    zoom_end: float
    movement: str              # zoom | pan | scroll | track | orbit | static
    easing: str
    easing_curve: tuple[float, float, float, float]


@dataclass(frozen=True)
class Framing:
    type: str
    composition: FocusPoint
    focus_point: str = "element"


@dataclass(frozen=True)
class TargetSpec:
    selector: str
    highlight: bool | str = False
    overlay: str | None = None
    interaction: str | None = None


@dataclass(frozen=True)
class Effects:
    motion_blur: float = 0.0
    vignette: float = 0.0
    glow: bool = False
    color_grade: str = "none"


@dataclass(frozen=True)
class ExecutionPlan:
    shot_id: str
    type: str
    duration: float
    camera: CameraSettings
    framing: Framing
    target: TargetSpec
    effects: Effects
    beat: str = "unknown"
    feature: ValueProp | None = None
    cta: CallToAction | None = None


@dataclass(frozen=True)
class CameraFrame:
    frame: int
    zoom: float
    x: float
    y: float
    rotation: float = 0.0


@dataclass
class StoryboardShot:
    id: int
    type: str
    duration: float
    target: str | None = None
    camera_move: str = "static"
    action: str | None = None              # legacy interaction ("click")
    beat: str | None = None
    caption: Caption | str | None = None
    execution_plan: ExecutionPlan | None = None
    narrative_shot: NarrativeShot | None = None
    tempo: str | None = None
    music: str | None = None
    start_time: float = 0.0
    end_time: float = 0.0
    start_frame: int = 0
    end_frame: int = 0

    def place(self, start_time: float, fps: int = TIMELINE_FPS) -> None:
        """Position the shot on the timeline; frames always derive from time."""
        self.start_time = start_time
        self.end_time = start_time + self.duration
        self.start_frame = frame_at(self.start_time, fps)
        self.end_frame = frame_at(self.end_time, fps)

    @property
    def frame_count(self) -> int:
        return self.end_frame - self.start_frame


@dataclass(frozen=True)
class ShotResult:
    frame_count: int = 0
    change_score: float = 0.0
    skipped: bool = False


@dataclass
class ExecutedShot:
    shot: StoryboardShot
    shot_dir: Path
    frame_count: int
    change_score: float = 1.0
    capture_fps: int = CAPTURE_FPS
    frame_pattern: str = "frame_%04d.jpg"

    @property
    def duration(self) -> float:
        return self.shot.duration

    @property
    def input_pattern(self) -> str:
        return str(self.shot_dir / self.frame_pattern)


@dataclass
class CaptureResult:
    metadata: dict[str, str] = field(default_factory=dict)
    shots: list[ExecutedShot] = field(default_factory=list)
    copy: NarrativeCopy | None = None
    captions: list[Caption] = field(default_factory=list)
    fallback_to_basic: bool = False
