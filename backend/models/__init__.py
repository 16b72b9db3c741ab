from .job import (
    DEFAULT_DURATION_SECONDS,
    MAX_DURATION_SECONDS,
    MIN_DURATION_SECONDS,
    Credentials,
    EncoderSettings,
    JobOptions,
    JobRecord,
    JobRequest,
    JobStatus,
)
from .narrative import BeatName, Caption, Narrative, NarrativeBeat, NarrativeCopy, NarrativeShot
from .shot import CaptureResult, ExecutedShot, ExecutionPlan, ShotResult, StoryboardShot
from .snapshot import PageType, ScannedPage, SemanticSnapshot

__all__ = [
    "JobRequest",
    "JobOptions",
    "JobRecord",
    "JobStatus",
    "Credentials",
    "EncoderSettings",
    "MIN_DURATION_SECONDS",
    "MAX_DURATION_SECONDS",
    "DEFAULT_DURATION_SECONDS",
    "SemanticSnapshot",
    "ScannedPage",
    "PageType",
    "Narrative",
    "NarrativeBeat",
    "NarrativeShot",
    "NarrativeCopy",
    "BeatName",
    "Caption",
    "StoryboardShot",
    "ExecutionPlan",
    "ExecutedShot",
    "ShotResult",
    "CaptureResult",
]
