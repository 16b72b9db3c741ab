"""Worker settings read from the environment (after `.env` is loaded by the entry point)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from models.job import EncoderSettings

_BACKEND_DIR = Path(__file__).resolve().parents[1]


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    return int(raw) if raw else default


@dataclass(frozen=True)
class Settings:
    redis_url: str | None = None
    rate_limit_hours: int = 1
    max_video_duration: int = 60
    work_dir: Path = Path("/tmp/autopromo")
    music_dir: Path = _BACKEND_DIR / "public" / "music"
    public_videos_dir: Path = _BACKEND_DIR / "public" / "videos"
    capture_budget_seconds: float = 90.0
    worker_poll_timeout: int = 5
    encoder: EncoderSettings = field(default_factory=EncoderSettings)

    @property
    def rate_limit_seconds(self) -> int:
        return self.rate_limit_hours * 3600

    @classmethod
    def from_env(cls) -> Settings:
        defaults = cls()
        encoder_overrides: dict[str, object] = {}
        if os.environ.get("ENCODER_PRESET", "").strip():
            encoder_overrides["preset"] = os.environ["ENCODER_PRESET"].strip()
        if os.environ.get("ENCODER_CRF", "").strip():
            encoder_overrides["crf"] = int(os.environ["ENCODER_CRF"])
        return cls(
            redis_url=os.environ.get("REDIS_URL", "").strip() or None,
            rate_limit_hours=_env_int("RATE_LIMIT_HOURS", defaults.rate_limit_hours),
            max_video_duration=_env_int("MAX_VIDEO_DURATION", defaults.max_video_duration),
            work_dir=Path(os.environ.get("WORK_DIR", "").strip() or defaults.work_dir),
            music_dir=Path(os.environ.get("MUSIC_DIR", "").strip() or defaults.music_dir),
            public_videos_dir=Path(
                os.environ.get("PUBLIC_VIDEOS_DIR", "").strip() or defaults.public_videos_dir
            ),
            capture_budget_seconds=float(
                _env_int("CAPTURE_BUDGET_SECONDS", int(defaults.capture_budget_seconds))
            ),
            worker_poll_timeout=_env_int("WORKER_POLL_TIMEOUT", defaults.worker_poll_timeout),
            encoder=EncoderSettings(**encoder_overrides),
        )
