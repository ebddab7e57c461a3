# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Flow analysis engine.

Core data structures shared by the noise classifier, scorer, selector and
graph builder.  All results are frozen; page mappings are plain dicts whose
insertion order is the crawl discovery order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from flowmap import LinkPosition, PageRecord
from flowmap.events import AnalysisEvent


class NoiseCategory(StrEnum):
    """Why an href was classified as removable noise."""

    GLOBAL_NAVIGATION = "global_navigation"
    STRUCTURAL = "structural"  # footer-only
    LOW_VALUE = "low_value"  # denylist match


@dataclass(frozen=True, slots=True)
class NavigationInfo:
    """Classification evidence for a link that appears site-wide."""

    url: str
    frequency: float  # share of pages containing the link
    appearing_on_pages: int
    total_pages: int
    link_text: str  # first non-empty anchor text seen
    positions: tuple[LinkPosition, ...]  # one entry per page, first occurrence
    is_structural: bool
    is_global_nav: bool = True


@dataclass(frozen=True)
class NoiseReductionResult:
    """Cleaned pages plus the classification sets that produced them."""

    cleaned_pages: dict[str, PageRecord]
    noise_links: frozenset[str]
    noise_categories: dict[str, list[NoiseCategory]]
    global_navigation: dict[str, NavigationInfo]
    hub_pages: frozenset[str]
    structural_noise: frozenset[str] = frozenset()
    low_value_links: frozenset[str] = frozenset()
    repetitive_links: frozenset[str] = frozenset()  # reported, never removed on its own
    links_before: int = 0
    links_after: int = 0
    fallback_applied: bool = False
    events: tuple[AnalysisEvent, ...] = field(default=(), repr=False)

    def is_noise(self, href: str) -> bool:
        return href in self.noise_links

    def is_global_nav(self, href: str) -> bool:
        return href in self.global_navigation
