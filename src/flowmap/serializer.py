# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""UserFlow serialization: visualization JSON and text outline.

Two output formats:
- Visualization: ``graph`` / ``metadata`` / ``statistics`` document for graph
  front-ends (D3, Cytoscape, React Flow)
- Text outline: indented trace of the flows starting at each entry node
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any

from . import FlowNode, NodeType, UserFlow

_RULE_HEAVY = "═" * 47
_RULE_LIGHT = "─" * 47
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def format_timestamp(epoch_ms: int) -> str:
    """Epoch milliseconds -> ISO-8601 UTC with millisecond precision (``...Z``)."""
    dt = _EPOCH + timedelta(milliseconds=epoch_ms)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def compute_statistics(flow: UserFlow) -> dict[str, Any]:
    """Node-type counts, depth figures and edge count for a flow."""
    depths = [node.depth for node in flow.nodes]
    average = sum(depths) / len(depths) if depths else 0.0
    return {
        "nodesByType": flow.nodes_by_type,
        "averageDepth": round(average, 2),
        "maxDepth": max(depths, default=0),
        "totalEdges": len(flow.edges),
    }


def to_visualization(flow: UserFlow, crawl_duration_ms: int = 0) -> dict[str, Any]:
    """Convert a UserFlow into the visualization document."""
    nodes = [
        {
            "id": node.id,
            "label": node.label,
            "url": node.url,
            "type": node.type.value,
            "depth": node.depth,
            "pageTitle": node.page_title,
        }
        for node in flow.nodes
    ]
    edges = [
        {
            "id": f"edge-{index}",
            "source": edge.source,
            "target": edge.target,
            "weight": edge.weight,
            "label": edge.label,
        }
        for index, edge in enumerate(flow.edges)
    ]
    meta = flow.metadata
    return {
        "graph": {"nodes": nodes, "edges": edges},
        "metadata": {
            "startUrl": meta.start_url,
            "totalPages": meta.total_pages,
            "noiseFiltered": meta.noise_filtered,
            "crawlTimestamp": format_timestamp(meta.crawl_timestamp),
            "crawlDuration": crawl_duration_ms,
        },
        "statistics": compute_statistics(flow),
    }


def to_json(flow: UserFlow, crawl_duration_ms: int = 0, indent: int = 2) -> str:
    """Serialize a UserFlow to the visualization JSON string."""
    return json.dumps(to_visualization(flow, crawl_duration_ms), ensure_ascii=False, indent=indent)


def _trace(node: FlowNode, flow: UserFlow, lines: list[str], indent: int, visited: set[str]) -> None:
    if node.id in visited:
        return
    visited.add(node.id)
    for edge in flow.outgoing(node.id):
        target = flow.get_node(edge.target)
        if target is None:
            continue
        label = f" [{edge.label}]" if edge.label else ""
        lines.append(f"{'  ' * indent}↓ {target.label}{label}")
        _trace(target, flow, lines, indent + 1, visited)


def to_text_outline(flow: UserFlow) -> str:
    """Render the flows reachable from each entry node as an indented outline."""
    lines = [
        _RULE_HEAVY,
        "         USER FLOW MAP",
        _RULE_HEAVY,
        "",
        f"Total Nodes: {len(flow.nodes)}",
        f"Total Edges: {len(flow.edges)}",
        f"Start URL: {flow.metadata.start_url}",
        "",
        _RULE_LIGHT,
        "USER FLOWS:",
        _RULE_LIGHT,
        "",
    ]

    entries = [node for node in flow.nodes if node.type == NodeType.ENTRY]
    for index, entry in enumerate(entries, start=1):
        lines.append(f"Flow {index}: {entry.label}")
        _trace(entry, flow, lines, 1, set())
        lines.append("")

    return "\n".join(lines)
