# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Adaptive key-page selection.

Algorithm:
  1. Rank scored pages by score, descending (ties keep crawl order)
  2. Target N = clamp(ceil(ratio x total pages), min_key_pages, max_key_pages)
  3. Take the top N
  4. Force the crawl start page (first inserted) into the set; at the
     max_key_pages cap it displaces the lowest-ranked pick
  5. Fewer than safety_min_key_pages picked on a crawl of at least that
     size -> replace with the top min(safety_expand_key_pages, total)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field

from flowmap import PageRecord
from flowmap.config import AnalyzerConfig
from flowmap.events import (
    KEY_PAGES_EXPANDED,
    KEY_PAGES_SELECTED,
    PAGES_SCORED,
    AnalysisEvent,
    ScoredPagePayload,
    key_pages_expanded,
    key_pages_selected,
    pages_scored,
)

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = AnalyzerConfig()

# Ranked pages reported in the scoring event.
_TOP_SCORED_REPORTED = 15


@dataclass(frozen=True, slots=True)
class KeySelection:
    """Selected key pages, in rank order (a forced start page comes last)."""

    key_pages: tuple[str, ...]
    ranked: tuple[tuple[str, float], ...]
    target: int
    expanded: bool = False
    events: tuple[AnalysisEvent, ...] = field(default=(), repr=False)

    def __contains__(self, url: object) -> bool:
        return url in self.key_pages

    def __len__(self) -> int:
        return len(self.key_pages)


def target_key_page_count(total_pages: int, config: AnalyzerConfig = _DEFAULT_CONFIG) -> int:
    proportional = math.ceil(total_pages * config.key_page_ratio)
    return max(config.min_key_pages, min(config.max_key_pages, proportional))


def rank_pages(scores: Mapping[str, float]) -> list[tuple[str, float]]:
    """Sort by score descending; Python's sort is stable so ties keep insertion order."""
    return sorted(scores.items(), key=lambda item: item[1], reverse=True)


def _with_start_page(selected: list[str], start_page: str, cap: int) -> tuple[list[str], bool]:
    if start_page in selected:
        return selected, False
    if len(selected) >= cap:
        selected = selected[: cap - 1]
    return [*selected, start_page], True


def _scored_event(pages: Mapping[str, PageRecord], ranked: list[tuple[str, float]]) -> AnalysisEvent:
    top = [
        ScoredPagePayload(url=url, title=pages[url].title if url in pages else "", score=round(value, 1))
        for url, value in ranked[:_TOP_SCORED_REPORTED]
    ]
    return AnalysisEvent(PAGES_SCORED, dict(pages_scored(scored_pages=len(ranked), top_pages=top)))


def select_key_pages(
    pages: Mapping[str, PageRecord],
    scores: Mapping[str, float],
    config: AnalyzerConfig = _DEFAULT_CONFIG,
) -> KeySelection:
    """Choose the bounded set of pages that become flow nodes.

    Never raises; an empty crawl yields an empty selection.
    """
    total = len(pages)
    if total == 0:
        return KeySelection(key_pages=(), ranked=(), target=0)

    ranked = rank_pages(scores)
    target = target_key_page_count(total, config)
    start_page = next(iter(pages))

    selected = [url for url, _ in ranked[:target]]
    selected, forced = _with_start_page(selected, start_page, config.max_key_pages)

    events = [
        _scored_event(pages, ranked),
        AnalysisEvent(
            KEY_PAGES_SELECTED,
            dict(
                key_pages_selected(
                    target=target,
                    selected=len(selected),
                    total_pages=total,
                    start_page_forced=forced,
                )
            ),
        ),
    ]

    expanded = False
    if len(selected) < config.safety_min_key_pages and total >= config.safety_min_key_pages:
        before = len(selected)
        widened = [url for url, _ in ranked[: min(config.safety_expand_key_pages, total)]]
        selected, _ = _with_start_page(widened, start_page, len(widened) + 1)
        expanded = True
        events.append(
            AnalysisEvent(
                KEY_PAGES_EXPANDED,
                dict(key_pages_expanded(selected_before=before, selected_after=len(selected))),
            )
        )
        logger.warning("Too few key pages selected (%d); widened to %d", before, len(selected))

    logger.info("Key pages selected: %d of %d (target %d)", len(selected), total, target)
    return KeySelection(
        key_pages=tuple(selected),
        ranked=tuple(ranked),
        target=target,
        expanded=expanded,
        events=tuple(events),
    )
