# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Pydantic schemas for the crawler's JSON export.

The crawler writes camelCase keys (``startUrl``, ``outgoingLinks``); snake_case
is accepted too.  ``pages`` is either a list in discovery order or an object
keyed by URL (a dump of the crawler's ordered page map)::

    {
      "startUrl": "https://shop.example/",
      "crawlDuration": 5120,
      "pages": [
        {"url": "https://shop.example/", "title": "Shop", "depth": 0, "timestamp": 1718000000000,
         "outgoingLinks": [{"href": "https://shop.example/cart", "text": "Cart", "position": "header"}]}
      ]
    }
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from flowmap import LinkPosition, LinkRecord, PageRecord
from flowmap.errors import CrawlInputError
from flowmap.url_utils import normalize

# Validation errors listed in a CrawlInputError message.
_MAX_REPORTED_ERRORS = 5
# 9999-12-31T23:59:59.999Z, the last instant a datetime can represent
_MAX_EPOCH_MS = 253_402_300_799_999


class LinkModel(BaseModel):
    """An outgoing link as exported by the crawler."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    href: str
    text: str = Field("", description="Anchor text")
    position: LinkPosition = Field(LinkPosition.CONTENT, description="Layout region of the link")
    context: str = Field("", description="Surrounding text")

    @field_validator("text", "context", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("position", mode="before")
    @classmethod
    def _lower_position(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    def to_record(self) -> LinkRecord:
        return LinkRecord(href=normalize(self.href), text=self.text, position=self.position, context=self.context)


class PageModel(BaseModel):
    """A crawled page as exported by the crawler."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: str
    title: str = ""
    depth: int = Field(0, ge=0)
    timestamp: int = Field(0, ge=0, le=_MAX_EPOCH_MS, description="Epoch milliseconds")
    outgoing_links: list[LinkModel] = Field(default_factory=list, alias="outgoingLinks")

    @field_validator("title", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    def to_record(self) -> PageRecord:
        return PageRecord(
            url=normalize(self.url),
            title=self.title,
            depth=self.depth,
            outgoing_links=tuple(link.to_record() for link in self.outgoing_links),
            timestamp=self.timestamp,
        )


class CrawlExport(BaseModel):
    """Top-level crawl export document."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    start_url: str | None = Field(None, alias="startUrl")
    crawl_duration: int = Field(0, ge=0, alias="crawlDuration", description="Milliseconds")
    pages: list[PageModel] = Field(default_factory=list)

    @field_validator("pages", mode="before")
    @classmethod
    def _pages_from_mapping(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        pages = []
        for url, page in v.items():
            if isinstance(page, dict) and "url" not in page:
                page = {"url": url, **page}
            pages.append(page)
        return pages

    def to_crawl_input(self) -> CrawlInput:
        """Normalize URLs and build the ordered page mapping (first occurrence wins)."""
        pages: dict[str, PageRecord] = {}
        for model in self.pages:
            record = model.to_record()
            if record.url not in pages:
                pages[record.url] = record
        if self.start_url:
            start_url = normalize(self.start_url)
        else:
            start_url = next(iter(pages), "")
        return CrawlInput(pages=pages, start_url=start_url, crawl_duration_ms=self.crawl_duration)


@dataclass(frozen=True)
class CrawlInput:
    """Analysis input: ordered pages plus crawl-level facts."""

    pages: dict[str, PageRecord]
    start_url: str
    crawl_duration_ms: int = 0


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors()[:_MAX_REPORTED_ERRORS]:
        loc = ".".join(str(p) for p in item["loc"]) or "<root>"
        parts.append(f"{loc}: {item['msg']}")
    if error.error_count() > _MAX_REPORTED_ERRORS:
        parts.append(f"... {error.error_count() - _MAX_REPORTED_ERRORS} more")
    return "; ".join(parts)


def parse_crawl(data: dict | str | bytes, *, source: str = "<data>") -> CrawlInput:
    """Validate a crawl export given as a parsed dict or raw JSON text."""
    try:
        if isinstance(data, dict):
            export = CrawlExport.model_validate(data)
        else:
            export = CrawlExport.model_validate_json(data)
    except ValidationError as e:
        raise CrawlInputError(f"Invalid crawl export {source}: {_describe(e)}", source=source) from e
    return export.to_crawl_input()


def load_crawl_file(path: str | Path) -> CrawlInput:
    """Read and validate a crawl export JSON file.

    Raises:
        CrawlInputError: file unreadable, not JSON, or not a crawl export.
    """
    p = Path(path)
    try:
        raw = p.read_bytes()
    except OSError as e:
        raise CrawlInputError(f"Cannot read crawl file {p}: {e.strerror or e}", source=str(p)) from e
    return parse_crawl(raw, source=str(p))
