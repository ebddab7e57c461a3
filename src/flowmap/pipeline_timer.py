# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Wall-clock timings for the analysis stages.

``analyze()`` wraps each stage in ``with timer.stage(name):``.  The recorded
durations become ``FlowAnalysis.stage_timings`` and, with ``total_ms``, part
of the ``analysis_completed`` event payload.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

_NS_PER_MS = 1_000_000


def _to_ms(elapsed_ns: int) -> float:
    return round(elapsed_ns / _NS_PER_MS, 1)


@dataclass(frozen=True, slots=True)
class StageTiming:
    name: str
    elapsed_ms: float


class PipelineTimer:
    """Times one analysis run, stage by stage.

    Stages do not nest.  A stage that raises is still recorded, so a failed
    run reports how far it got.
    """

    __slots__ = ("_clock", "_started_ns", "_timings", "_active")

    def __init__(self, clock: Callable[[], int] = time.monotonic_ns) -> None:
        self._clock = clock
        self._started_ns = clock()
        self._timings: list[StageTiming] = []
        self._active: str | None = None

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        if self._active is not None:
            raise RuntimeError(f"Stage {name!r} started inside running stage {self._active!r}")
        self._active = name
        begin = self._clock()
        try:
            yield
        finally:
            self._timings.append(StageTiming(name, _to_ms(self._clock() - begin)))
            self._active = None

    @property
    def active_stage(self) -> str | None:
        return self._active

    @property
    def total_ms(self) -> float:
        """Milliseconds since the timer was created, including time between stages."""
        return _to_ms(self._clock() - self._started_ns)

    @property
    def timings(self) -> tuple[StageTiming, ...]:
        return tuple(self._timings)

    def as_dict(self) -> dict[str, float]:
        """{stage: ms} in run order; a stage run twice reports the sum."""
        result: dict[str, float] = {}
        for timing in self._timings:
            result[timing.name] = round(result.get(timing.name, 0.0) + timing.elapsed_ms, 1)
        return result

    def slowest(self) -> StageTiming | None:
        """First stage with the largest duration, or None before any stage ran."""
        return max(self._timings, key=lambda t: t.elapsed_ms, default=None)
