# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Flow graph assembly: key pages -> typed nodes, cleaned links -> weighted edges."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from flowmap import FlowEdge, FlowMetadata, FlowNode, NodeType, PageRecord, UserFlow
from flowmap.events import EDGES_BUILT, AnalysisEvent, edges_built
from flowmap.url_utils import get_path, get_path_segments

logger = logging.getLogger(__name__)

# Titles at or above this length fall back to a URL-derived label.
MAX_TITLE_LABEL_LEN = 50

# ---------------------------------------------------------------------------
# Node type rules, evaluated top to bottom, first match wins
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NodeTypeRule:
    node_type: NodeType
    check_path: Callable[[str], bool]


def _path_has(*keywords: str) -> Callable[[str], bool]:
    needles = tuple(f"/{kw}" for kw in keywords)
    return lambda path: any(n in path for n in needles)


_has_entry_keyword = _path_has("home", "index", "dashboard")

NODE_TYPE_RULES: tuple[NodeTypeRule, ...] = (
    NodeTypeRule(NodeType.ENTRY, lambda p: p in ("", "/") or _has_entry_keyword(p)),
    NodeTypeRule(NodeType.FORM, _path_has("login", "signup", "register", "contact")),
    NodeTypeRule(NodeType.TRANSACTION, _path_has("checkout", "payment", "cart", "order")),
    NodeTypeRule(NodeType.EXIT, _path_has("thank", "success", "confirm", "complete")),
)


def infer_node_type(url: str) -> NodeType:
    """Classify a page by its lowercased path; CONTENT when no rule fires."""
    path = get_path(url)
    return next((rule.node_type for rule in NODE_TYPE_RULES if rule.check_path(path)), NodeType.CONTENT)


def generate_node_label(url: str, page_title: str) -> str:
    """Short human-readable label: the title when short, else the last path segment."""
    if page_title and len(page_title) < MAX_TITLE_LABEL_LEN:
        return page_title

    segments = get_path_segments(url)
    if not segments:
        return "Home"
    words = segments[-1].split("-")
    return " ".join(word[:1].upper() + word[1:] for word in words)


# ---------------------------------------------------------------------------
# Graph assembly
# ---------------------------------------------------------------------------


def build_nodes(pages: Mapping[str, PageRecord], key_pages: Iterable[str]) -> list[FlowNode]:
    """One node per key page present in *pages*, in key-page order."""
    nodes: list[FlowNode] = []
    for url in key_pages:
        page = pages.get(url)
        if page is None:
            continue
        nodes.append(
            FlowNode(
                id=url,
                label=generate_node_label(url, page.title),
                url=url,
                type=infer_node_type(url),
                depth=page.depth,
                page_title=page.title,
                path_segments=tuple(get_path_segments(url)),
            )
        )
    return nodes


def build_edges(cleaned_pages: Mapping[str, PageRecord], key_pages: Iterable[str]) -> list[FlowEdge]:
    """Aggregate cleaned links between key pages into weighted edges.

    Every qualifying link occurrence adds 1 to the pair's weight, including
    repeated anchors on the same page.  The label is the shortest non-empty
    anchor text (first seen wins ties).
    """
    keys = set(key_pages)
    weights: dict[tuple[str, str], int] = {}
    labels: dict[tuple[str, str], str] = {}

    for source, page in cleaned_pages.items():
        if source not in keys:
            continue
        for link in page.outgoing_links:
            if link.href not in keys:
                continue
            pair = (source, link.href)
            weights[pair] = weights.get(pair, 0) + 1
            current = labels.get(pair, "")
            if link.text and (not current or len(link.text) < len(current)):
                labels[pair] = link.text

    return [
        FlowEdge(source=source, target=target, weight=weight, label=labels.get((source, target), ""))
        for (source, target), weight in weights.items()
    ]


def build_user_flow(
    pages: Mapping[str, PageRecord],
    cleaned_pages: Mapping[str, PageRecord],
    key_pages: Iterable[str],
    *,
    start_url: str,
    noise_filtered: int,
    crawl_timestamp: int,
) -> tuple[UserFlow, AnalysisEvent]:
    """Build the final flow graph and its edge-creation event."""
    key_list = list(key_pages)
    nodes = build_nodes(pages, key_list)
    node_ids = {node.id for node in nodes}
    # Edges may only join nodes that were actually built.
    edges = build_edges(cleaned_pages, [url for url in key_list if url in node_ids])

    logger.info("Flow graph: %d nodes, %d edges", len(nodes), len(edges))
    flow = UserFlow(
        nodes=tuple(nodes),
        edges=tuple(edges),
        metadata=FlowMetadata(
            start_url=start_url,
            total_pages=len(pages),
            noise_filtered=noise_filtered,
            crawl_timestamp=crawl_timestamp,
        ),
    )
    event = AnalysisEvent(EDGES_BUILT, dict(edges_built(edges=len(edges), key_pages=len(nodes))))
    return flow, event
