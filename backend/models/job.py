from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_DURATION_SECONDS = 5
MAX_DURATION_SECONDS = 60
DEFAULT_DURATION_SECONDS = 15

VideoFormat = Literal["9:16", "16:9"]
JobMode = Literal["basic", "pro_director"]
LogoPosition = Literal["top-right", "top-left", "bottom-right", "bottom-left"]


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class Credentials(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    username: str
    password: str
    login_url: str | None = Field(default=None, alias="loginUrl")


class JobOptions(BaseModel):
    """Recognized per-job presentation options, validated once at intake."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    music_track: str | None = Field(default=None, alias="musicTrack")
    font_weight: str | None = Field(default=None, alias="fontWeight")
    text_color: str | None = Field(default=None, alias="textColor")
    logo_path: str | None = Field(default=None, alias="logoPath")
    logo_position: LogoPosition = Field(default="top-right", alias="logoPosition")
    logo_size: int = Field(default=120, ge=16, le=1080, alias="logoSize")
    logo_opacity: float = Field(default=0.8, ge=0.0, le=1.0, alias="logoOpacity")


class JobRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    url: str
    format: VideoFormat = "9:16"
    duration: int = Field(
        default=DEFAULT_DURATION_SECONDS, ge=MIN_DURATION_SECONDS, le=MAX_DURATION_SECONDS
    )
    mode: JobMode = "basic"
    options: JobOptions = Field(default_factory=JobOptions)
    credentials: Credentials | None = None

    @field_validator("url")
    @classmethod
    def _http_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Invalid URL provided")
        return value


class EncoderSettings(BaseModel):
    """Fixed, reproducible encode settings for the assembled video."""

    model_config = ConfigDict(frozen=True)

    pixel_format: str = "yuv420p"
    preset: str = "fast"
    crf: int = Field(default=23, ge=0, le=51)
    movflags: str = "+faststart"
    encode_fps: int = 30
    transition_duration: float = Field(default=1.0, gt=0)
    music_volume: float = Field(default=0.2, ge=0.0)
    logo_margin: int = 40
    captions_enabled: bool = False


@dataclass
class JobRecord:
    id: str
    url: str
    format: str = "9:16"
    duration: int = DEFAULT_DURATION_SECONDS
    mode: str = "basic"
    status: JobStatus = JobStatus.QUEUED
    progress: int = 0
    options: JobOptions = field(default_factory=JobOptions)
    credentials: Credentials | None = field(default=None, repr=False)
    client_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None
    video_url: str | None = None
    error: str | None = None

    @classmethod
    def from_request(cls, job_id: str, request: JobRequest, *, client_id: str | None = None) -> JobRecord:
        return cls(
            id=job_id,
            url=request.url,
            format=request.format,
            duration=request.duration,
            mode=request.mode,
            options=request.options,
            credentials=request.credentials,
            client_id=client_id,
        )

    def to_public_dict(self) -> dict[str, Any]:
        """Job state safe to hand to callers; credentials are never included."""
        return {
            "id": self.id,
            "url": self.url,
            "format": self.format,
            "duration": self.duration,
            "mode": self.mode,
            "status": self.status.value,
            "progress": self.progress,
            "options": self.options.model_dump(exclude_none=True),
            "videoUrl": self.video_url,
            "error": self.error,
            "created": self.created_at.isoformat(),
            "completed": self.completed_at.isoformat() if self.completed_at else None,
        }

    def to_store_fields(self) -> dict[str, str]:
        """Flat string hash for key-value stores (credentials stored separately)."""
        fields = {
            "url": self.url,
            "format": self.format,
            "duration": str(self.duration),
            "mode": self.mode,
            "status": self.status.value,
            "progress": str(self.progress),
            "options": self.options.model_dump_json(),
            "created": self.created_at.isoformat(),
        }
        if self.client_id:
            fields["clientId"] = self.client_id
        if self.credentials is not None:
            fields["hasCredentials"] = "true"
        if self.completed_at:
            fields["completed"] = self.completed_at.isoformat()
        if self.video_url:
            fields["videoUrl"] = self.video_url
        if self.error:
            fields["error"] = self.error
        return fields

    @classmethod
    def from_store_fields(
        cls,
        job_id: str,
        fields: dict[str, str],
        credentials: dict[str, str] | None = None,
    ) -> JobRecord:
        completed = fields.get("completed")
        return cls(
            id=job_id,
            url=fields["url"],
            format=fields.get("format", "9:16"),
            duration=int(fields.get("duration", DEFAULT_DURATION_SECONDS)),
            mode=fields.get("mode", "basic"),
            status=JobStatus(fields.get("status", JobStatus.QUEUED.value)),
            progress=int(fields.get("progress", 0)),
            options=JobOptions.model_validate(json.loads(fields.get("options") or "{}")),
            credentials=Credentials.model_validate(credentials) if credentials else None,
            client_id=fields.get("clientId"),
            created_at=datetime.fromisoformat(fields["created"]) if fields.get("created") else datetime.now(timezone.utc),
            completed_at=datetime.fromisoformat(completed) if completed else None,
            video_url=fields.get("videoUrl"),
            error=fields.get("error"),
        )
