# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""FlowMap exception hierarchy.

The analysis core is total over well-formed page records and raises none of
these. They belong to the boundaries: configuration loading, crawl-export
parsing and the CLI. Callers can catch FlowMapError for any of them.
"""

from __future__ import annotations


class FlowMapError(Exception):
    """Base exception for all FlowMap errors."""


class ConfigError(FlowMapError):
    """Analyzer configuration file or value is invalid."""

    def __init__(self, message: str, *, key: str = "") -> None:
        super().__init__(message)
        self.key = key


class CrawlInputError(FlowMapError):
    """Crawl export could not be read or does not match the expected schema."""

    def __init__(self, message: str, *, source: str = "") -> None:
        super().__init__(message)
        self.source = source


class EmptyCrawlError(CrawlInputError):
    """Crawl export contains no pages to analyze."""
