# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Flow analysis pipeline orchestration.

Flow:
  ordered pages (crawl discovery order)
    → noise reduction (global nav, hubs, footer-only, low-value, fallback)
    → importance scoring on cleaned pages
    → adaptive key-page selection (+ start page, + safety widening)
    → node / edge assembly
    → FlowAnalysis (UserFlow + every intermediate result + events)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field

from flowmap import PageRecord, UserFlow
from flowmap.analysis import NoiseReductionResult
from flowmap.analysis.flow_builder import build_user_flow
from flowmap.analysis.noise_reducer import reduce_noise
from flowmap.analysis.scorer import score_pages
from flowmap.analysis.selector import KeySelection, select_key_pages
from flowmap.config import AnalyzerConfig
from flowmap.events import ANALYSIS_COMPLETED, AnalysisEvent, analysis_completed, log_events
from flowmap.pipeline_timer import PipelineTimer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlowAnalysis:
    """Result of one analysis run."""

    flow: UserFlow
    noise: NoiseReductionResult
    scores: dict[str, float]
    selection: KeySelection
    stage_timings: dict[str, float] = field(default_factory=dict)
    total_ms: float = 0.0
    events: tuple[AnalysisEvent, ...] = field(default=(), repr=False)


def _resolve_timestamp(pages: Mapping[str, PageRecord], crawl_timestamp: int | None) -> int:
    """Explicit value, else the latest page timestamp, else now (epoch ms)."""
    if crawl_timestamp is not None:
        return crawl_timestamp
    latest = max((page.timestamp for page in pages.values()), default=0)
    return latest if latest > 0 else int(time.time() * 1000)


def analyze(
    pages: Mapping[str, PageRecord],
    start_url: str,
    *,
    config: AnalyzerConfig | None = None,
    crawl_timestamp: int | None = None,
    emit_events: bool = True,
) -> FlowAnalysis:
    """Run the full analysis pipeline on a crawl.

    Args:
        pages: Ordered mapping url -> PageRecord; the first key is the start page
        start_url: Crawl start URL, reported in the flow metadata
        config: Thresholds (defaults when None)
        crawl_timestamp: Epoch ms for the metadata (defaults to the latest page timestamp)
        emit_events: Forward collected events to this module's logger

    Returns:
        FlowAnalysis with the UserFlow and all intermediate results
    """
    config = config or AnalyzerConfig()
    timer = PipelineTimer()
    logger.info("Analyzing %d pages from %s", len(pages), start_url)

    with timer.stage("noise_reduction"):
        noise = reduce_noise(pages, config)

    with timer.stage("scoring"):
        scores = score_pages(noise, config)

    with timer.stage("selection"):
        selection = select_key_pages(pages, scores, config)

    with timer.stage("graph"):
        flow, edges_event = build_user_flow(
            pages,
            noise.cleaned_pages,
            selection.key_pages,
            start_url=start_url,
            noise_filtered=len(noise.noise_links),
            crawl_timestamp=_resolve_timestamp(pages, crawl_timestamp),
        )

    timings = timer.as_dict()
    total_ms = timer.total_ms
    slowest = timer.slowest()
    logger.info(
        "Analysis finished in %.1f ms (slowest stage: %s)",
        total_ms,
        slowest.name if slowest else "-",
    )
    completed = AnalysisEvent(
        ANALYSIS_COMPLETED,
        dict(
            analysis_completed(
                total_pages=len(pages),
                nodes=len(flow.nodes),
                edges=len(flow.edges),
                noise_filtered=flow.metadata.noise_filtered,
                stage_timings=timings,
                total_ms=total_ms,
            )
        ),
    )
    events = (*noise.events, *selection.events, edges_event, completed)
    if emit_events:
        log_events(events, logger)

    return FlowAnalysis(
        flow=flow,
        noise=noise,
        scores=scores,
        selection=selection,
        stage_timings=timings,
        total_ms=total_ms,
        events=events,
    )
