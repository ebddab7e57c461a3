# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import flowmap  # noqa: F401
except ImportError:
    raise ImportError("flowmap is not installed. Run: pip install -e '.[dev]'") from None

import logging

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_logging():
    """Restore root handlers/level after tests that call logging_config.configure().

    The CLI configures logging on every run; without this, its stderr handler
    would leak into later tests and shadow caplog.
    """
    root = logging.getLogger()
    old_handlers = root.handlers[:]
    old_level = root.level
    yield
    root.handlers = old_handlers
    root.setLevel(old_level)
    structlog.reset_defaults()
