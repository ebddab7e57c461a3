# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Flow Map: condensed user-flow graphs from crawled page records.

Turns a crawl (pages with titles, depths and positioned outgoing links) into a
small graph of key pages:
- nodes: the highest-scoring pages, typed as entry/content/form/transaction/exit
- edges: aggregated navigation between key pages, chrome and noise removed
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class LinkPosition(StrEnum):
    """Layout region a link was extracted from."""

    HEADER = "header"
    NAVIGATION = "navigation"
    CONTENT = "content"
    FOOTER = "footer"
    SIDEBAR = "sidebar"


STRUCTURAL_POSITIONS: frozenset[LinkPosition] = frozenset(
    {LinkPosition.HEADER, LinkPosition.NAVIGATION, LinkPosition.FOOTER, LinkPosition.SIDEBAR}
)


class NodeType(StrEnum):
    """Role of a page within a user flow."""

    ENTRY = "entry"
    CONTENT = "content"
    FORM = "form"
    TRANSACTION = "transaction"
    EXIT = "exit"


@dataclass(frozen=True, slots=True)
class LinkRecord:
    """A single outgoing link extracted from a crawled page."""

    href: str  # normalized target URL
    text: str = ""
    position: LinkPosition = LinkPosition.CONTENT
    context: str = ""  # surrounding text, bounded by the crawler


@dataclass(frozen=True, slots=True)
class PageRecord:
    """A crawled page as delivered by the crawler."""

    url: str  # normalized, unique key
    title: str = ""
    depth: int = 0
    outgoing_links: tuple[LinkRecord, ...] = ()  # extraction order
    timestamp: int = 0  # epoch milliseconds


@dataclass(frozen=True, slots=True)
class FlowNode:
    """A key page rendered as a graph node."""

    id: str
    label: str
    url: str
    type: NodeType
    depth: int
    page_title: str
    path_segments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class FlowEdge:
    """Aggregated navigation between two key pages."""

    source: str
    target: str
    weight: int
    label: str = ""

    def __str__(self) -> str:
        suffix = f" [{self.label}]" if self.label else ""
        return f"{self.source} -> {self.target} (x{self.weight}){suffix}"


@dataclass(frozen=True, slots=True)
class FlowMetadata:
    start_url: str
    total_pages: int
    noise_filtered: int
    crawl_timestamp: int  # epoch milliseconds


@dataclass(frozen=True)
class UserFlow:
    """Final output of the analysis pipeline."""

    nodes: tuple[FlowNode, ...]
    edges: tuple[FlowEdge, ...]
    metadata: FlowMetadata
    node_ids: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "node_ids", frozenset(n.id for n in self.nodes))

    @property
    def nodes_by_type(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for node in self.nodes:
            counts[node.type.value] = counts.get(node.type.value, 0) + 1
        return counts

    def get_node(self, node_id: str) -> FlowNode | None:
        return next((n for n in self.nodes if n.id == node_id), None)

    def outgoing(self, node_id: str) -> list[FlowEdge]:
        return [e for e in self.edges if e.source == node_id]
