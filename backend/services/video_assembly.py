"""Video assembly: ffmpeg filter graph, encode invocation and output probing."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import av
import numpy as np

from models.job import EncoderSettings, JobOptions
from models.narrative import Caption
from models.shot import CameraFrame, ExecutedShot

from .captions import caption_overlay
from .cinematographer import CENTER, generate_camera_path, generate_zoompan_filter
from .errors import EncoderError

logger = logging.getLogger(__name__)

OUTPUT_SIZES: dict[str, tuple[int, int]] = {
    "9:16": (1080, 1920),
    "16:9": (1920, 1080),
}
DEFAULT_MUSIC_TRACK = "professional-inspiring.mp3"
TRANSITION_EPSILON = 0.05
# gentle push-in for shots captured without a camera plan
DEFAULT_ZOOM_STEP = 0.0005
DEFAULT_ZOOM_MAX = 1.2
STDERR_TAIL_CHARS = 2000

_LOGO_POSITIONS = {
    "top-right": ("W-w-{m}", "{m}"),
    "top-left": ("{m}", "{m}"),
    "bottom-right": ("W-w-{m}", "H-h-{m}"),
    "bottom-left": ("{m}", "H-h-{m}"),
}


def output_size(video_format: str) -> tuple[int, int]:
    return OUTPUT_SIZES.get(video_format, OUTPUT_SIZES["9:16"])


def _num(value: float) -> str:
    return f"{value:.3f}".rstrip("0").rstrip(".") or "0"


@dataclass(frozen=True)
class Transition:
    duration: float
    offset: float


def plan_transitions(durations: Sequence[float], transition: float) -> tuple[list[Transition], float]:
    """
    Crossfade offsets for consecutive shots and the resulting timeline length.

    Each transition is clamped below the shorter of its two shots. The offset
    is the running timeline length minus the transition, and every transition
    reclaims its overlap from the running length.
    """
    if not durations:
        return [], 0.0
    cumulative = float(durations[0])
    transitions: list[Transition] = []
    for previous, current in zip(durations, durations[1:]):
        length = max(0.0, min(transition, min(previous, current) - TRANSITION_EPSILON))
        offset = max(0.0, cumulative - length)
        transitions.append(Transition(duration=length, offset=offset))
        cumulative += current - length
    return transitions, cumulative


def _camera_path(executed: ExecutedShot, fps: int) -> list[CameraFrame]:
    plan = executed.shot.execution_plan
    if plan is not None:
        return generate_camera_path(plan, fps)
    frames = int(np.floor(executed.duration * fps))
    if frames <= 0:
        return []
    end = min(1.0 + DEFAULT_ZOOM_STEP * frames, DEFAULT_ZOOM_MAX)
    zooms = np.linspace(1.0, end, frames)
    return [CameraFrame(frame=i, zoom=float(z), x=CENTER.x, y=CENTER.y) for i, z in enumerate(zooms)]


def resolve_music_track(music_dir: Path, options: JobOptions) -> Path | None:
    track = music_dir / (options.music_track or DEFAULT_MUSIC_TRACK)
    if track.is_file():
        return track
    logger.info("[video_assembly] Music track %s not found, encoding without audio", track)
    return None


def resolve_logo(options: JobOptions) -> Path | None:
    if not options.logo_path:
        return None
    logo = Path(options.logo_path)
    if logo.is_file():
        return logo
    logger.warning("[video_assembly] Logo %s not found, skipping overlay", logo)
    return None


def build_filter_graph(
    shots: Sequence[ExecutedShot],
    *,
    width: int,
    height: int,
    settings: EncoderSettings,
    options: JobOptions,
    music_input: int | None = None,
    logo_input: int | None = None,
    captions: Sequence[Caption] = (),
) -> tuple[list[str], str, str | None, float]:
    """
    Filter chains for the whole edit.

    Returns (filters, video label, audio label or None, timeline seconds).
    Shot i is read from input i; music and logo inputs follow the shots.
    """
    if not shots:
        raise EncoderError("No shots to assemble")
    fps = settings.encode_fps
    filters: list[str] = []
    for i, executed in enumerate(shots):
        seconds = _num(executed.duration)
        filters.append(
            f"[{i}:v]scale={width * 2}:{height * 2},setsar=1,fps={fps},format={settings.pixel_format},"
            f"tpad=stop_mode=clone:stop_duration={seconds},trim=duration={seconds},setpts=PTS-STARTPTS[t{i}]"
        )
        zoompan = generate_zoompan_filter(_camera_path(executed, fps), width, height, fps)
        if zoompan is None:
            filters.append(f"[t{i}]scale={width}:{height}[sz{i}]")
        else:
            filters.append(f"[t{i}]{zoompan}[sz{i}]")

    transitions, total = plan_transitions([s.duration for s in shots], settings.transition_duration)
    label = "sz0"
    for i, transition in enumerate(transitions, start=1):
        out = f"sxf{i}"
        filters.append(
            f"[{label}][sz{i}]xfade=transition=fade:duration={_num(transition.duration)}"
            f":offset={_num(transition.offset)}[{out}]"
        )
        label = out

    if settings.captions_enabled and captions:
        overlay = caption_overlay(
            captions, width=width, font_weight=options.font_weight, text_color=options.text_color
        )
        if overlay:
            filters.append(f"[{label}]{overlay}[vcap]")
            label = "vcap"

    if logo_input is not None:
        margin = settings.logo_margin
        x, y = (p.format(m=margin) for p in _LOGO_POSITIONS[options.logo_position])
        filters.append(
            f"[{logo_input}:v]scale={options.logo_size}:-1,format=rgba,"
            f"colorchannelmixer=aa={_num(options.logo_opacity)}[logo]"
        )
        filters.append(f"[{label}][logo]overlay=x={x}:y={y}[vout]")
        label = "vout"

    audio_label = None
    if music_input is not None:
        filters.append(f"[{music_input}:a]volume={_num(settings.music_volume)}[aa]")
        audio_label = "aa"
    return filters, label, audio_label, total


def build_ffmpeg_command(
    shots: Sequence[ExecutedShot],
    output_path: Path,
    *,
    video_format: str,
    options: JobOptions,
    settings: EncoderSettings,
    music_path: Path | None = None,
    logo_path: Path | None = None,
    captions: Sequence[Caption] = (),
) -> tuple[list[str], float]:
    width, height = output_size(video_format)
    args = ["ffmpeg", "-y", "-hide_banner", "-loglevel", "error"]
    for executed in shots:
        args += ["-framerate", str(executed.capture_fps), "-i", executed.input_pattern]
    music_input = logo_input = None
    next_input = len(shots)
    if music_path is not None:
        args += ["-i", str(music_path)]
        music_input = next_input
        next_input += 1
    if logo_path is not None:
        args += ["-i", str(logo_path)]
        logo_input = next_input

    filters, video_label, audio_label, total = build_filter_graph(
        shots,
        width=width,
        height=height,
        settings=settings,
        options=options,
        music_input=music_input,
        logo_input=logo_input,
        captions=captions,
    )
    args += ["-filter_complex", ";".join(filters), "-map", f"[{video_label}]"]
    if audio_label:
        args += ["-map", f"[{audio_label}]", "-shortest"]
    args += [
        "-c:v", "libx264",
        "-pix_fmt", settings.pixel_format,
        "-preset", settings.preset,
        "-crf", str(settings.crf),
        "-movflags", settings.movflags,
        "-t", _num(total),
        str(output_path),
    ]
    return args, total


async def run_ffmpeg(args: Sequence[str]) -> None:
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise EncoderError("ffmpeg executable not found") from exc
    _, stderr = await process.communicate()
    if process.returncode != 0:
        tail = stderr.decode("utf-8", errors="replace")[-STDERR_TAIL_CHARS:]
        logger.error("[video_assembly] ffmpeg failed (%s): %s", process.returncode, tail)
        raise EncoderError(f"Video encoding failed (ffmpeg exit code {process.returncode})", stderr=tail)


def probe_duration(path: Path) -> float:
    """Container duration in seconds, read with PyAV."""
    with av.open(str(path)) as container:
        if container.duration is not None:
            return container.duration / av.time_base
        stream = container.streams.video[0]
        if stream.duration is None or stream.time_base is None:
            return 0.0
        return float(stream.duration * stream.time_base)


async def assemble(
    shots: Sequence[ExecutedShot],
    output_path: Path,
    *,
    video_format: str,
    options: JobOptions,
    settings: EncoderSettings,
    music_dir: Path,
    captions: Sequence[Caption] = (),
) -> Path:
    """Encode the shots, in order, into one video file at output_path."""
    logger.info("[video_assembly] Assembling %d shots (%s)", len(shots), video_format)
    args, total = build_ffmpeg_command(
        shots,
        output_path,
        video_format=video_format,
        options=options,
        settings=settings,
        music_path=resolve_music_track(music_dir, options),
        logo_path=resolve_logo(options),
        captions=captions,
    )
    await run_ffmpeg(args)
    if not output_path.is_file():
        raise EncoderError(f"Encoder produced no output at {output_path}")
    try:
        actual = await asyncio.to_thread(probe_duration, output_path)
        logger.info("[video_assembly] Encoded %.2fs (timeline %.2fs) -> %s", actual, total, output_path)
    except av.error.FFmpegError as exc:
        logger.warning("[video_assembly] Could not probe %s: %s", output_path, exc)
    return output_path
