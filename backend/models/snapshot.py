from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class PageType(StrEnum):
    SAAS_LANDING = "saas_landing"
    PRODUCT = "product"
    PRICING = "pricing"
    ABOUT = "about"
    MARKETING_SITE = "marketing_site"


@dataclass(frozen=True)
class CallToAction:
    text: str
    action: str = "click"          # href or "click"


@dataclass(frozen=True)
class Hero:
    headline: str = ""
    subheadline: str = ""
    cta: CallToAction | None = None


@dataclass(frozen=True)
class ValueProp:
    title: str
    description: str = ""


@dataclass(frozen=True)
class PainPoint:
    text: str


@dataclass(frozen=True)
class Testimonial:
    text: str
    author: str = "Customer"


@dataclass(frozen=True)
class Metric:
    value: str
    label: str = ""


@dataclass(frozen=True)
class SocialProof:
    testimonials: tuple[Testimonial, ...] = ()
    metrics: tuple[Metric, ...] = ()


@dataclass(frozen=True)
class Ctas:
    primary: CallToAction | None = None
    footer: CallToAction | None = None


@dataclass(frozen=True)
class SemanticSnapshot:
    """Structured description of a marketing page, read-only once observed."""

    hero: Hero = field(default_factory=Hero)
    value_props: tuple[ValueProp, ...] = ()
    pain_points: tuple[PainPoint, ...] = ()
    social_proof: SocialProof = field(default_factory=SocialProof)
    ctas: Ctas = field(default_factory=Ctas)
    page_type: PageType = PageType.MARKETING_SITE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SemanticSnapshot:
        """Build a snapshot from the raw payload returned by the in-page observer script."""
        hero = data.get("hero") or {}
        proof = data.get("socialProof") or {}
        ctas = data.get("ctas") or {}
        try:
            page_type = PageType(data.get("pageType") or PageType.MARKETING_SITE)
        except ValueError:
            page_type = PageType.MARKETING_SITE
        return cls(
            hero=Hero(
                headline=hero.get("headline") or "",
                subheadline=hero.get("subheadline") or "",
                cta=_cta(hero.get("cta")),
            ),
            value_props=tuple(
                ValueProp(title=p.get("title", ""), description=p.get("description") or "")
                for p in data.get("valueProps") or []
            ),
            pain_points=tuple(PainPoint(text=p.get("text", "")) for p in data.get("painPoints") or []),
            social_proof=SocialProof(
                testimonials=tuple(
                    Testimonial(text=t.get("text", ""), author=t.get("author") or "Customer")
                    for t in proof.get("testimonials") or []
                ),
                metrics=tuple(
                    Metric(value=m.get("value", ""), label=m.get("label") or "")
                    for m in proof.get("metrics") or []
                ),
            ),
            ctas=Ctas(primary=_cta(ctas.get("primary")), footer=_cta(ctas.get("footer"))),
            page_type=page_type,
        )


def _cta(raw: dict[str, Any] | None) -> CallToAction | None:
    if not raw or not raw.get("text"):
        return None
    return CallToAction(text=raw["text"], action=raw.get("action") or "click")


@dataclass(frozen=True)
class ScannedCta:
    text: str
    selector: str


@dataclass(frozen=True)
class ScannedHero:
    selector: str = "body"
    h1: str = ""
    cta: ScannedCta | None = None


@dataclass(frozen=True)
class Scene:
    type: str                      # features | pricing | demo | about | content
    title: str
    selector: str


@dataclass(frozen=True)
class Interaction:
    selector: str
    text: str
    intent: str = "navigate"       # navigate | show_demo | signup
    score: float = 0.5


@dataclass(frozen=True)
class ScannedPage:
    """Structural scan of a page used by the scanner storyboard."""

    url: str
    hero: ScannedHero = field(default_factory=ScannedHero)
    scenes: tuple[Scene, ...] = ()
    interactions: tuple[Interaction, ...] = ()
    title: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, url: str, data: dict[str, Any]) -> ScannedPage:
        hero = data.get("hero") or {}
        cta = hero.get("cta")
        metadata = data.get("metadata") or {}
        return cls(
            url=url,
            hero=ScannedHero(
                selector=hero.get("selector") or "body",
                h1=hero.get("h1") or "",
                cta=ScannedCta(text=cta.get("text", ""), selector=cta["selector"]) if cta and cta.get("selector") else None,
            ),
            scenes=tuple(
                Scene(type=s.get("type", "content"), title=s.get("title", ""), selector=s["selector"])
                for s in data.get("scenes") or []
                if s.get("selector")
            ),
            interactions=tuple(
                Interaction(
                    selector=i["selector"],
                    text=i.get("text", ""),
                    intent=i.get("intent") or "navigate",
                    score=float(i.get("score", 0.5)),
                )
                for i in data.get("interactions") or []
                if i.get("selector")
            ),
            title=metadata.get("title") or "",
            description=metadata.get("description") or "",
        )
