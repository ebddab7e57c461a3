# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page importance scoring.

Additive composition, evaluated in this order:

  popularity   hub page: +40, otherwise +15 per distinct linking page
  depth        +10 x (6 - min(depth, 6))
  richness     +4 x min(cleaned outgoing links, 15)
  url pattern  every matching row of URL_PATTERN_BONUSES adds its bonus
  title        every matching row of TITLE_KEYWORD_BONUSES adds its bonus
  penalty      running total x 0.7 when the page itself is global navigation
  base         +10

Pattern tables are all-match-additive: a path such as ``/account/orders``
collects both the account and the order bonus.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from flowmap import PageRecord
from flowmap.analysis import NoiseReductionResult
from flowmap.config import AnalyzerConfig
from flowmap.url_utils import get_path

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = AnalyzerConfig()

HUB_PAGE_BONUS = 40
INCOMING_LINK_WEIGHT = 15
DEPTH_CAP = 6
DEPTH_WEIGHT = 10
OUTGOING_LINK_CAP = 15
OUTGOING_LINK_WEIGHT = 4
BASE_SCORE = 10


@dataclass(frozen=True, slots=True)
class PatternBonus:
    """One row of a bonus table: regex on a lowercased string -> points."""

    name: str
    pattern: re.Pattern[str]
    bonus: int

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


def _row(name: str, regex: str, bonus: int) -> PatternBonus:
    return PatternBonus(name, re.compile(regex), bonus)


# Matched against the lowercased URL path.
URL_PATTERN_BONUSES: tuple[PatternBonus, ...] = (
    _row("url_home", r"/(home|index|dashboard|main)$", 100),
    _row("url_auth", r"/(login|signup|register|auth)", 80),
    _row("url_transaction", r"/(checkout|cart|payment|order)", 80),
    _row("url_product", r"/(product|item|detail)", 60),
    _row("url_account", r"/(profile|account|settings)", 60),
    _row("url_support", r"/(contact|support|help)", 50),
    _row("url_search", r"/(search|results)", 50),
    _row("url_category", r"/(category|collection|browse)", 45),
    _row("url_about", r"/(about|info)", 35),
)

# Matched against the lowercased page title.
TITLE_KEYWORD_BONUSES: tuple[PatternBonus, ...] = (
    _row("title_home", r"(home|dashboard|main|overview)", 40),
    _row("title_auth", r"(login|sign in|register|sign up)", 40),
    _row("title_transaction", r"(checkout|cart|payment)", 40),
    _row("title_product", r"(product|item|detail)", 30),
    _row("title_category", r"(category|collection)", 25),
)


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    """Per-factor contributions of a page score."""

    url: str
    total: float
    popularity: int = 0
    depth: int = 0
    richness: int = 0
    pattern_bonus: int = 0
    title_bonus: int = 0
    penalized: bool = False
    signals: tuple[str, ...] = field(default=())  # names of matched bonus rows


def build_incoming_link_counts(noise_result: NoiseReductionResult) -> dict[str, int]:
    """Number of other pages whose cleaned links point at each target.

    Targets that are global navigation are not counted, so chrome cannot
    inflate popularity even when the safety fallback kept those links.
    """
    sources: dict[str, set[str]] = {}
    for source_url, page in noise_result.cleaned_pages.items():
        for link in page.outgoing_links:
            if link.href == source_url or noise_result.is_global_nav(link.href):
                continue
            sources.setdefault(link.href, set()).add(source_url)
    return {target: len(linking) for target, linking in sources.items()}


def score_breakdown(
    url: str,
    page: PageRecord,
    noise_result: NoiseReductionResult,
    incoming_counts: Mapping[str, int],
    config: AnalyzerConfig = _DEFAULT_CONFIG,
) -> ScoreBreakdown:
    """Compute the importance score of *url* with its factor breakdown."""
    cleaned = noise_result.cleaned_pages.get(url)
    if cleaned is None:
        return ScoreBreakdown(url=url, total=0.0)

    if url in noise_result.hub_pages:
        popularity = HUB_PAGE_BONUS
    else:
        popularity = INCOMING_LINK_WEIGHT * incoming_counts.get(url, 0)

    depth = DEPTH_WEIGHT * (DEPTH_CAP - min(max(page.depth, 0), DEPTH_CAP))
    richness = OUTGOING_LINK_WEIGHT * min(len(cleaned.outgoing_links), OUTGOING_LINK_CAP)

    signals: list[str] = []
    path = get_path(url)
    pattern_bonus = 0
    for row in URL_PATTERN_BONUSES:
        if row.matches(path):
            pattern_bonus += row.bonus
            signals.append(row.name)

    title = page.title.lower()
    title_bonus = 0
    for row in TITLE_KEYWORD_BONUSES:
        if row.matches(title):
            title_bonus += row.bonus
            signals.append(row.name)

    total: float = popularity + depth + richness + pattern_bonus + title_bonus
    penalized = noise_result.is_global_nav(url)
    if penalized:
        total *= config.global_nav_penalty
    total += BASE_SCORE

    return ScoreBreakdown(
        url=url,
        total=total,
        popularity=popularity,
        depth=depth,
        richness=richness,
        pattern_bonus=pattern_bonus,
        title_bonus=title_bonus,
        penalized=penalized,
        signals=tuple(signals),
    )


def score(
    url: str,
    page: PageRecord,
    noise_result: NoiseReductionResult,
    incoming_counts: Mapping[str, int],
    config: AnalyzerConfig = _DEFAULT_CONFIG,
) -> float:
    """Importance score of a single page (pure, deterministic)."""
    return score_breakdown(url, page, noise_result, incoming_counts, config).total


def score_pages(
    noise_result: NoiseReductionResult,
    config: AnalyzerConfig = _DEFAULT_CONFIG,
) -> dict[str, float]:
    """Score every page that survived noise reduction, in crawl order."""
    incoming = build_incoming_link_counts(noise_result)
    scores = {
        url: score(url, page, noise_result, incoming, config) for url, page in noise_result.cleaned_pages.items()
    }
    logger.debug("Scored %d pages", len(scores))
    return scores
