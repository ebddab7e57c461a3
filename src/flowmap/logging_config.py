# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Log output for the flowmap CLI, rendered by structlog.

Analysis modules log through plain ``logging.getLogger(__name__)`` loggers and
never install handlers.  ``configure()`` gives the root logger one stderr
handler whose formatter runs every stdlib record through structlog:

- console (default): ``2026-01-01T00:00:00Z [warning] Noise reduction ...``
- ``--json-logs``: one JSON object per line

Analysis events (``flowmap.events.log_events``) attach their payload to the
record; it is lifted into the rendered entry under ``payload``, so JSON
consumers get the event fields as an object rather than a repr string.
"""

from __future__ import annotations

import logging
import sys

import structlog

from flowmap.events import PAYLOAD_FIELD


def _pre_chain() -> list:
    """Processors shared by stdlib records and structlog-native calls."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(allow=(PAYLOAD_FIELD,)),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]


def _renderer(json_output: bool):
    if json_output:
        return structlog.processors.JSONRenderer()
    # stderr is often a CI log or a pipe; keep it free of ANSI codes
    return structlog.dev.ConsoleRenderer(colors=False)


def configure(*, json_output: bool = False, level: str = "INFO") -> None:
    """Route all logging to stderr through structlog.

    Safe to call repeatedly: previous root handlers are replaced, not stacked.

    Args:
        json_output: JSON lines instead of console text.
        level: Root level name; unknown names fall back to INFO.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer(json_output)],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
