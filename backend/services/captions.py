"""Caption timeline and drawtext overlays for the assembled video."""

from __future__ import annotations

import re
from collections.abc import Sequence

from models.narrative import Caption, NarrativeCopy
from models.shot import ExecutedShot

HOOK_START = 0.5
DEFAULT_CAPTION_START = 0.5
DEFAULT_CAPTION_SECONDS = 2.5
CTA_LEAD_SECONDS = 4.0
CTA_CAPTION_SECONDS = 3.5
FADE_SECONDS = 0.3

_BOLD_WEIGHTS = {"bold", "bolder", "600", "700", "800", "900"}


def sanitize_caption(text: str | None) -> str:
    """Make text safe inside a single-quoted drawtext option."""
    if not text:
        return ""
    text = text.replace("\\", "\\\\")
    text = text.replace("'", "’")
    text = text.replace(":", "\\:").replace("%", "\\%")
    return re.sub(r"[\r\n]+", " ", text).strip()


def build_caption_timeline(
    shots: Sequence[ExecutedShot],
    copy: NarrativeCopy | None = None,
) -> list[Caption]:
    """
    Place captions on the final timeline.

    Narrative copy contributes a hook caption at the start and a CTA caption
    over the last seconds; every shot caption is offset by its shot's start.
    """
    captions: list[Caption] = []
    if copy and copy.hook:
        captions.append(Caption(copy.hook, HOOK_START, DEFAULT_CAPTION_SECONDS, style="headline"))

    for executed in shots:
        shot = executed.shot
        caption = shot.caption
        if isinstance(caption, Caption) and caption.text:
            captions.append(
                Caption(
                    text=caption.text,
                    start_time=shot.start_time + (caption.start_time or DEFAULT_CAPTION_START),
                    duration=min(caption.duration or DEFAULT_CAPTION_SECONDS, shot.duration),
                    position=caption.position,
                    animation=caption.animation,
                    style=caption.style,
                )
            )
        elif isinstance(caption, str) and caption:
            captions.append(
                Caption(
                    text=caption,
                    start_time=shot.start_time + DEFAULT_CAPTION_START,
                    duration=min(DEFAULT_CAPTION_SECONDS, shot.duration),
                    position="lower_third",
                )
            )

    if copy and copy.cta:
        total = sum(s.duration for s in shots)
        captions.append(
            Caption(copy.cta, max(0.0, total - CTA_LEAD_SECONDS), CTA_CAPTION_SECONDS, style="cta")
        )
    return captions


def drawtext_filter(
    caption: Caption,
    *,
    width: int,
    font_weight: str | None = None,
    text_color: str | None = None,
) -> str:
    start = caption.start_time
    end = caption.start_time + caption.duration
    large = caption.style in ("headline", "cta")
    fontsize = round(width * (0.06 if large else 0.045))
    border = 3 if (font_weight or "").lower() in _BOLD_WEIGHTS else 1
    y = "h*0.75-text_h/2" if caption.position == "lower_third" else "(h-text_h)/2"
    alpha = (
        f"if(lt(t,{start:.2f}+{FADE_SECONDS}),(t-{start:.2f})/{FADE_SECONDS},"
        f"if(gt(t,{end:.2f}-{FADE_SECONDS}),({end:.2f}-t)/{FADE_SECONDS},1))"
    )
    return (
        f"drawtext=text='{sanitize_caption(caption.text)}'"
        f":fontsize={fontsize}:fontcolor={text_color or 'white'}"
        f":borderw={border}:bordercolor=black@0.6"
        f":x=(w-text_w)/2:y={y}"
        f":alpha='{alpha}'"
        f":enable='between(t,{start:.2f},{end:.2f})'"
    )


def caption_overlay(
    captions: Sequence[Caption],
    *,
    width: int,
    font_weight: str | None = None,
    text_color: str | None = None,
) -> str | None:
    """Comma-joined drawtext chain for all captions, or None when there are none."""
    parts = [
        drawtext_filter(c, width=width, font_weight=font_weight, text_color=text_color)
        for c in captions
        if c.text
    ]
    return ",".join(parts) if parts else None
