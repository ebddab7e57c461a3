# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Noise classification: separate site chrome from flow-relevant links.

Heuristics, each computed over the whole crawl:
  1. Global navigation: href present on >= 85% of pages
  2. Hub pages: target linked from >= 90% of pages (boosted later, never removed)
  3. Structural noise: href that only ever appears in the footer
  4. Low-value links: logout, social media, pseudo-schemes, feeds
  5. Repetitive text: one anchor text spread over many hrefs (reported only)

Removal set = 1 ∪ 3 ∪ 4.  If that strips more than 90% of all links the
result is discarded and only low-value links are removed (safety fallback).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import replace

from flowmap import STRUCTURAL_POSITIONS, LinkPosition, PageRecord
from flowmap.analysis import NavigationInfo, NoiseCategory, NoiseReductionResult
from flowmap.config import AnalyzerConfig
from flowmap.events import (
    GLOBAL_NAV_DETECTED,
    HUB_PAGES_DETECTED,
    NOISE_FALLBACK_APPLIED,
    NOISE_REDUCED,
    AnalysisEvent,
    TopLinkPayload,
    global_nav_detected,
    hub_pages_detected,
    noise_fallback_applied,
    noise_reduced,
)

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = AnalyzerConfig()

# Anchor texts shorter than this are too generic to compare ("Go", ">").
_MIN_REPETITIVE_TEXT_LEN = 3

# Number of global-nav links reported in the detection event.
_TOP_GLOBAL_NAV_REPORTED = 10

# ---------------------------------------------------------------------------
# Low-value denylist (matched case-insensitively against the href)
# ---------------------------------------------------------------------------

LOW_VALUE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"logout",
        r"sign-?out",
        r"log-?out",
        r"twitter\.com",
        r"facebook\.com",
        r"linkedin\.com",
        r"instagram\.com",
        r"youtube\.com",
        r"(?:^|//|\.)t\.co(?:/|$)",
        r"#$",
        r"^\s*javascript:",
        r"^\s*mailto:",
        r"^\s*tel:",
        r"\.rss$",
        r"\.xml$",
        r"/feed",
    )
)


def is_low_value_href(href: str) -> bool:
    return any(pattern.search(href) for pattern in LOW_VALUE_PATTERNS)


def count_links(pages: Mapping[str, PageRecord]) -> int:
    return sum(len(page.outgoing_links) for page in pages.values())


# ---------------------------------------------------------------------------
# Individual heuristics
# ---------------------------------------------------------------------------


def _is_structural(positions: tuple[LinkPosition, ...], ratio: float) -> bool:
    if not positions:
        return False
    structural = sum(1 for pos in positions if pos in STRUCTURAL_POSITIONS)
    return structural / len(positions) > ratio


def _scan_link_frequency(
    pages: Mapping[str, PageRecord],
) -> tuple[dict[str, set[str]], dict[str, list[LinkPosition]], dict[str, str]]:
    """Per href: pages it appears on, first position per page, first non-empty text."""
    appearing: dict[str, set[str]] = {}
    positions: dict[str, list[LinkPosition]] = {}
    texts: dict[str, str] = {}

    for page_url, page in pages.items():
        seen: set[str] = set()
        for link in page.outgoing_links:
            if link.href in seen:
                continue
            seen.add(link.href)
            appearing.setdefault(link.href, set()).add(page_url)
            positions.setdefault(link.href, []).append(link.position)
            if link.href not in texts and link.text:
                texts[link.href] = link.text

    return appearing, positions, texts


def identify_global_navigation(
    pages: Mapping[str, PageRecord],
    config: AnalyzerConfig = _DEFAULT_CONFIG,
) -> dict[str, NavigationInfo]:
    """Links present on at least ``global_nav_threshold`` of all pages.

    Returns an ordered mapping href -> NavigationInfo (first-seen order).
    """
    total_pages = len(pages)
    appearing, positions, texts = _scan_link_frequency(pages)

    global_nav: dict[str, NavigationInfo] = {}
    for href, page_set in appearing.items():
        frequency = len(page_set) / total_pages
        if frequency < config.global_nav_threshold:
            continue
        link_positions = tuple(positions[href])
        global_nav[href] = NavigationInfo(
            url=href,
            frequency=frequency,
            appearing_on_pages=len(page_set),
            total_pages=total_pages,
            link_text=texts.get(href, ""),
            positions=link_positions,
            is_structural=_is_structural(link_positions, config.structural_position_ratio),
        )
    return global_nav


def identify_hub_pages(
    pages: Mapping[str, PageRecord],
    config: AnalyzerConfig = _DEFAULT_CONFIG,
) -> frozenset[str]:
    """Targets linked from at least ``hub_page_threshold`` of all pages."""
    total_pages = len(pages)
    sources: dict[str, set[str]] = {}
    for source_url, page in pages.items():
        for link in page.outgoing_links:
            sources.setdefault(link.href, set()).add(source_url)

    return frozenset(
        target for target, linking in sources.items() if len(linking) / total_pages >= config.hub_page_threshold
    )


def identify_structural_noise(pages: Mapping[str, PageRecord]) -> frozenset[str]:
    """Hrefs whose every occurrence sits in the footer.

    Header and navigation links are left to the global-navigation check.
    """
    footer_only: dict[str, bool] = {}
    for page in pages.values():
        for link in page.outgoing_links:
            in_footer = link.position == LinkPosition.FOOTER
            footer_only[link.href] = footer_only.get(link.href, True) and in_footer
    return frozenset(href for href, only in footer_only.items() if only)


def identify_low_value_links(pages: Mapping[str, PageRecord]) -> frozenset[str]:
    """Hrefs matching the low-value denylist."""
    hrefs = {link.href for page in pages.values() for link in page.outgoing_links}
    return frozenset(href for href in hrefs if is_low_value_href(href))


def identify_repetitive_links(
    pages: Mapping[str, PageRecord],
    config: AnalyzerConfig = _DEFAULT_CONFIG,
) -> frozenset[str]:
    """Hrefs sharing an anchor text that is spread over too many targets.

    For each normalized text, the number of distinct hrefs carrying it is
    compared to the page count.
    """
    total_pages = len(pages)
    by_text: dict[str, set[str]] = {}
    for page in pages.values():
        for link in page.outgoing_links:
            text = link.text.strip().lower()
            if len(text) < _MIN_REPETITIVE_TEXT_LEN:
                continue
            by_text.setdefault(text, set()).add(link.href)

    repetitive: set[str] = set()
    for hrefs in by_text.values():
        if len(hrefs) / total_pages >= config.repetitive_text_threshold:
            repetitive.update(hrefs)
    return frozenset(repetitive)


# ---------------------------------------------------------------------------
# Combination
# ---------------------------------------------------------------------------


def _strip_links(pages: Mapping[str, PageRecord], noise: frozenset[str]) -> dict[str, PageRecord]:
    """Copy *pages* with every link whose href is in *noise* removed (order kept)."""
    cleaned: dict[str, PageRecord] = {}
    for url, page in pages.items():
        kept = tuple(link for link in page.outgoing_links if link.href not in noise)
        cleaned[url] = page if len(kept) == len(page.outgoing_links) else replace(page, outgoing_links=kept)
    return cleaned


def _categorize(
    global_nav: Mapping[str, NavigationInfo],
    structural: frozenset[str],
    low_value: frozenset[str],
) -> dict[str, list[NoiseCategory]]:
    categories: dict[str, list[NoiseCategory]] = {}
    for href in global_nav:
        categories.setdefault(href, []).append(NoiseCategory.GLOBAL_NAVIGATION)
    for href in sorted(structural):
        categories.setdefault(href, []).append(NoiseCategory.STRUCTURAL)
    for href in sorted(low_value):
        categories.setdefault(href, []).append(NoiseCategory.LOW_VALUE)
    return categories


def _global_nav_event(
    unique_links: int, global_nav: Mapping[str, NavigationInfo], config: AnalyzerConfig
) -> AnalysisEvent:
    top = sorted(global_nav.values(), key=lambda info: info.frequency, reverse=True)[:_TOP_GLOBAL_NAV_REPORTED]
    top_links = [
        TopLinkPayload(url=info.url, link_text=info.link_text, frequency=round(info.frequency, 3)) for info in top
    ]
    return AnalysisEvent(
        GLOBAL_NAV_DETECTED,
        dict(
            global_nav_detected(
                unique_links=unique_links,
                threshold=config.global_nav_threshold,
                global_nav_links=len(global_nav),
                top_links=top_links,
            )
        ),
    )


def reduce_noise(
    pages: Mapping[str, PageRecord],
    config: AnalyzerConfig = _DEFAULT_CONFIG,
) -> NoiseReductionResult:
    """Classify noise across the crawl and return cleaned pages.

    Never raises; an empty crawl yields an empty result.
    """
    if not pages:
        return NoiseReductionResult(
            cleaned_pages={},
            noise_links=frozenset(),
            noise_categories={},
            global_navigation={},
            hub_pages=frozenset(),
        )

    global_nav = identify_global_navigation(pages, config)
    hub_pages = identify_hub_pages(pages, config)
    structural = identify_structural_noise(pages)
    low_value = identify_low_value_links(pages)
    repetitive = identify_repetitive_links(pages, config)

    unique_links = len({link.href for page in pages.values() for link in page.outgoing_links})
    events = [
        _global_nav_event(unique_links, global_nav, config),
        AnalysisEvent(
            HUB_PAGES_DETECTED,
            dict(hub_pages_detected(hub_pages=len(hub_pages), threshold=config.hub_page_threshold)),
        ),
    ]

    # Repetitive links only count when they are also global navigation,
    # which the union below already covers.
    noise_links = frozenset(global_nav) | structural | low_value
    noise_categories = _categorize(global_nav, structural, low_value)
    cleaned = _strip_links(pages, noise_links)

    links_before = count_links(pages)
    links_after = count_links(cleaned)
    events.append(
        AnalysisEvent(
            NOISE_REDUCED,
            dict(
                noise_reduced(
                    links_before=links_before,
                    links_after=links_after,
                    global_navigation=len(global_nav),
                    structural=len(structural),
                    low_value=len(low_value),
                    repetitive=len(repetitive),
                    hub_pages=len(hub_pages),
                )
            ),
        )
    )
    logger.info(
        "Noise reduction: %d -> %d links (global_nav=%d structural=%d low_value=%d hubs=%d)",
        links_before,
        links_after,
        len(global_nav),
        len(structural),
        len(low_value),
        len(hub_pages),
    )

    fallback = links_after < links_before * config.min_link_retention
    if fallback:
        aggressive_after = links_after
        noise_links = low_value
        cleaned = _strip_links(pages, noise_links)
        links_after = count_links(cleaned)
        events.append(
            AnalysisEvent(
                NOISE_FALLBACK_APPLIED,
                dict(
                    noise_fallback_applied(
                        links_before=links_before,
                        aggressive_after=aggressive_after,
                        conservative_after=links_after,
                    )
                ),
            )
        )
        logger.warning(
            "Noise reduction too aggressive (%d of %d links left); kept only low-value filtering (%d left)",
            aggressive_after,
            links_before,
            links_after,
        )

    return NoiseReductionResult(
        cleaned_pages=cleaned,
        noise_links=noise_links,
        noise_categories=noise_categories,
        global_navigation=global_nav,
        hub_pages=hub_pages,
        structural_noise=structural,
        low_value_links=low_value,
        repetitive_links=repetitive,
        links_before=links_before,
        links_after=links_after,
        fallback_applied=fallback,
        events=tuple(events),
    )
