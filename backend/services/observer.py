"""Semantic observer: reads marketing structure out of a live page."""

from __future__ import annotations

import logging
from typing import Any

from models.snapshot import PageType, ScannedPage, SemanticSnapshot

from . import page_scripts

logger = logging.getLogger(__name__)

_URL_PAGE_TYPES = (
    ("product", PageType.PRODUCT),
    ("pricing", PageType.PRICING),
    ("about", PageType.ABOUT),
)


def detect_page_type(url: str, payload: dict[str, Any]) -> PageType:
    lowered = url.lower()
    for keyword, page_type in _URL_PAGE_TYPES:
        if keyword in lowered:
            return page_type
    headline = (payload.get("hero") or {}).get("headline")
    if len(payload.get("valueProps") or []) > 2 and headline:
        return PageType.SAAS_LANDING
    return PageType.MARKETING_SITE


async def analyze_page_semantics(page: Any, url: str) -> SemanticSnapshot:
    """
    Evaluate the observer script in the page and build a SemanticSnapshot.

    Errors propagate: a page that cannot be observed sends the job to basic mode.
    """
    logger.info("[observer] Analyzing page semantics for %s", url)
    payload = await page.evaluate(page_scripts.SEMANTIC_SNAPSHOT)
    payload = dict(payload or {})
    payload["pageType"] = detect_page_type(url, payload).value
    snapshot = SemanticSnapshot.from_dict(payload)
    logger.info(
        "[observer] Detected page_type=%s value_props=%d testimonials=%d cta=%s",
        snapshot.page_type,
        len(snapshot.value_props),
        len(snapshot.social_proof.testimonials),
        bool(snapshot.ctas.primary),
    )
    return snapshot


async def scan_page(page: Any, url: str) -> ScannedPage:
    """Structural scan (hero, sections, ranked interactions) for the scanner storyboard."""
    logger.info("[observer] Scanning page structure for %s", url)
    try:
        payload = await page.evaluate(page_scripts.SCAN_PAGE)
    except Exception as exc:
        logger.warning("[observer] Page scan failed, using empty structure: %s", exc)
        return ScannedPage(url=url)
    scanned = ScannedPage.from_dict(url, payload or {})
    logger.info(
        "[observer] Found %d scenes, %d interactions", len(scanned.scenes), len(scanned.interactions)
    )
    return scanned
