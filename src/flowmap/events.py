# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Analysis event types, TypedDict payload definitions, and builder functions.

Stages return events as values (``AnalysisEvent``) next to their results
instead of printing progress.  Callers decide whether to log, assert on, or
drop them; ``log_events`` is the default sink used by the pipeline.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, TypedDict

# ── Event type constants ─────────────────────────────────────────

# Noise classification
GLOBAL_NAV_DETECTED = "flowmap.noise.global_nav_detected"
HUB_PAGES_DETECTED = "flowmap.noise.hub_pages_detected"
NOISE_REDUCED = "flowmap.noise.reduced"
NOISE_FALLBACK_APPLIED = "flowmap.noise.fallback_applied"

# Scoring & selection
PAGES_SCORED = "flowmap.select.pages_scored"
KEY_PAGES_SELECTED = "flowmap.select.key_pages_selected"
KEY_PAGES_EXPANDED = "flowmap.select.key_pages_expanded"

# Graph assembly
EDGES_BUILT = "flowmap.graph.edges_built"

# Whole run
ANALYSIS_COMPLETED = "flowmap.analysis.completed"

# LogRecord attribute carrying an event payload (see log_events)
PAYLOAD_FIELD = "payload"


@dataclass(frozen=True, slots=True)
class AnalysisEvent:
    """A single diagnostic event produced by a pipeline stage."""

    name: str
    payload: dict[str, Any]


# ── TypedDict payload definitions ────────────────────────────────


class TopLinkPayload(TypedDict):
    url: str
    link_text: str
    frequency: float


class GlobalNavDetectedPayload(TypedDict):
    unique_links: int
    threshold: float
    global_nav_links: int
    top_links: list[TopLinkPayload]


class HubPagesDetectedPayload(TypedDict):
    hub_pages: int
    threshold: float


class NoiseReducedPayload(TypedDict):
    links_before: int
    links_after: int
    removed_pct: float
    global_navigation: int
    structural: int
    low_value: int
    repetitive: int
    hub_pages: int


class NoiseFallbackAppliedPayload(TypedDict):
    aggressive_removed_pct: float
    links_retained: int
    conservative_removed_pct: float


class ScoredPagePayload(TypedDict):
    url: str
    title: str
    score: float


class PagesScoredPayload(TypedDict):
    scored_pages: int
    top_pages: list[ScoredPagePayload]


class KeyPagesSelectedPayload(TypedDict):
    target: int
    selected: int
    total_pages: int
    start_page_forced: bool


class KeyPagesExpandedPayload(TypedDict):
    selected_before: int
    selected_after: int


class EdgesBuiltPayload(TypedDict):
    edges: int
    key_pages: int
    avg_edges_per_node: float


class AnalysisCompletedPayload(TypedDict):
    total_pages: int
    nodes: int
    edges: int
    noise_filtered: int
    stage_timings: dict[str, float]
    total_ms: float


# ── Payload builder functions ────────────────────────────────────


def _pct(part: int, whole: int) -> float:
    return round((1.0 - part / whole) * 100, 1) if whole else 0.0


def global_nav_detected(
    *, unique_links: int, threshold: float, global_nav_links: int, top_links: list[TopLinkPayload]
) -> GlobalNavDetectedPayload:
    return GlobalNavDetectedPayload(
        unique_links=unique_links,
        threshold=threshold,
        global_nav_links=global_nav_links,
        top_links=top_links,
    )


def hub_pages_detected(*, hub_pages: int, threshold: float) -> HubPagesDetectedPayload:
    return HubPagesDetectedPayload(hub_pages=hub_pages, threshold=threshold)


def noise_reduced(
    *,
    links_before: int,
    links_after: int,
    global_navigation: int,
    structural: int,
    low_value: int,
    repetitive: int,
    hub_pages: int,
) -> NoiseReducedPayload:
    return NoiseReducedPayload(
        links_before=links_before,
        links_after=links_after,
        removed_pct=_pct(links_after, links_before),
        global_navigation=global_navigation,
        structural=structural,
        low_value=low_value,
        repetitive=repetitive,
        hub_pages=hub_pages,
    )


def noise_fallback_applied(
    *, links_before: int, aggressive_after: int, conservative_after: int
) -> NoiseFallbackAppliedPayload:
    return NoiseFallbackAppliedPayload(
        aggressive_removed_pct=_pct(aggressive_after, links_before),
        links_retained=conservative_after,
        conservative_removed_pct=_pct(conservative_after, links_before),
    )


def pages_scored(*, scored_pages: int, top_pages: list[ScoredPagePayload]) -> PagesScoredPayload:
    return PagesScoredPayload(scored_pages=scored_pages, top_pages=top_pages)


def key_pages_selected(
    *, target: int, selected: int, total_pages: int, start_page_forced: bool
) -> KeyPagesSelectedPayload:
    return KeyPagesSelectedPayload(
        target=target,
        selected=selected,
        total_pages=total_pages,
        start_page_forced=start_page_forced,
    )


def key_pages_expanded(*, selected_before: int, selected_after: int) -> KeyPagesExpandedPayload:
    return KeyPagesExpandedPayload(selected_before=selected_before, selected_after=selected_after)


def edges_built(*, edges: int, key_pages: int) -> EdgesBuiltPayload:
    avg = round(edges / key_pages, 2) if key_pages else 0.0
    return EdgesBuiltPayload(edges=edges, key_pages=key_pages, avg_edges_per_node=avg)


def analysis_completed(
    *,
    total_pages: int,
    nodes: int,
    edges: int,
    noise_filtered: int,
    stage_timings: dict[str, float],
    total_ms: float,
) -> AnalysisCompletedPayload:
    return AnalysisCompletedPayload(
        total_pages=total_pages,
        nodes=nodes,
        edges=edges,
        noise_filtered=noise_filtered,
        stage_timings=stage_timings,
        total_ms=total_ms,
    )


# ── Sink ─────────────────────────────────────────────────────────


def log_events(events: Iterable[AnalysisEvent], logger: logging.Logger) -> None:
    """Write events to *logger* at DEBUG, the payload attached as ``extra``.

    Stages log their own human-readable warnings (fallback, widening); this
    sink is the machine-readable trail and never repeats them above DEBUG.
    """
    for event in events:
        logger.debug(event.name, extra={PAYLOAD_FIELD: event.payload})
