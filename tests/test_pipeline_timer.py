# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for flowmap.pipeline_timer, driven by a scripted clock."""

from __future__ import annotations

import pytest

from flowmap.pipeline_timer import PipelineTimer, StageTiming

MS = 1_000_000


def _clock(*readings_ms: float):
    """Clock returning the given readings (in ms) as nanoseconds, in order."""
    it = iter(readings_ms)
    return lambda: int(next(it) * MS)


class TestStages:
    def test_analysis_stages_in_run_order(self):
        timer = PipelineTimer(clock=_clock(0, 1, 4, 4, 4.5, 5, 12, 12, 20))
        for name in ("noise_reduction", "scoring", "selection", "graph"):
            with timer.stage(name):
                pass
        assert timer.as_dict() == {"noise_reduction": 3.0, "scoring": 0.5, "selection": 7.0, "graph": 8.0}
        assert [t.name for t in timer.timings] == ["noise_reduction", "scoring", "selection", "graph"]

    def test_repeated_stage_accumulates(self):
        timer = PipelineTimer(clock=_clock(0, 0, 2, 2, 3.5))
        with timer.stage("scoring"):
            pass
        with timer.stage("scoring"):
            pass
        assert timer.as_dict() == {"scoring": 3.5}
        assert len(timer.timings) == 2

    def test_failed_stage_recorded(self):
        timer = PipelineTimer(clock=_clock(0, 1, 6))
        with pytest.raises(ValueError):
            with timer.stage("graph"):
                raise ValueError("bad page")
        assert timer.as_dict() == {"graph": 5.0}
        assert timer.active_stage is None

    def test_nested_stage_rejected(self):
        timer = PipelineTimer(clock=_clock(0, 1, 2))
        with timer.stage("selection"):
            assert timer.active_stage == "selection"
            with pytest.raises(RuntimeError, match="inside running stage 'selection'"):
                with timer.stage("graph"):
                    pass
        assert list(timer.as_dict()) == ["selection"]


class TestTotals:
    def test_total_includes_gaps_between_stages(self):
        timer = PipelineTimer(clock=_clock(0, 2, 3, 10, 11, 15))
        with timer.stage("noise_reduction"):
            pass
        with timer.stage("scoring"):
            pass
        assert sum(timer.as_dict().values()) == 2.0
        assert timer.total_ms == 15.0

    def test_slowest_first_wins_tie(self):
        timer = PipelineTimer(clock=_clock(0, 0, 4, 4, 8, 8, 9))
        for name in ("noise_reduction", "scoring", "selection"):
            with timer.stage(name):
                pass
        assert timer.slowest() == StageTiming("noise_reduction", 4.0)

    def test_empty_timer(self):
        timer = PipelineTimer(clock=_clock(0))
        assert timer.as_dict() == {}
        assert timer.slowest() is None
        assert timer.active_stage is None

    def test_default_clock_is_monotonic(self):
        timer = PipelineTimer()
        with timer.stage("noise_reduction"):
            pass
        assert timer.as_dict()["noise_reduction"] >= 0
        assert timer.total_ms >= timer.as_dict()["noise_reduction"]
