# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for flowmap.analysis.scorer."""

from __future__ import annotations

import pytest

from flowmap import LinkPosition
from flowmap.analysis import NavigationInfo, NoiseReductionResult
from flowmap.analysis.noise_reducer import reduce_noise
from flowmap.analysis.scorer import (
    TITLE_KEYWORD_BONUSES,
    URL_PATTERN_BONUSES,
    build_incoming_link_counts,
    score,
    score_breakdown,
    score_pages,
)
from flowmap.config import AnalyzerConfig
from tests._flow_helpers import link, page, pages_of, url


def _noise(pages: dict, *, global_nav: tuple[str, ...] = (), hubs: tuple[str, ...] = ()) -> NoiseReductionResult:
    """Hand-built noise result: pages are taken as already cleaned."""
    nav = {
        href: NavigationInfo(
            url=href,
            frequency=1.0,
            appearing_on_pages=len(pages),
            total_pages=len(pages),
            link_text="",
            positions=(),
            is_structural=False,
        )
        for href in global_nav
    }
    return NoiseReductionResult(
        cleaned_pages=dict(pages),
        noise_links=frozenset(nav),
        noise_categories={},
        global_navigation=nav,
        hub_pages=frozenset(hubs),
    )


def _shop() -> dict:
    return pages_of(
        page("/", [link("/shop", "Shop")], title="Home", depth=0),
        page("/shop", [link("/", "Home"), link("/checkout", "Checkout")], title="Shop", depth=1),
        page("/checkout", title="Checkout", depth=2),
    )


class TestIncomingCounts:
    def test_distinct_other_pages(self) -> None:
        pages = pages_of(
            page("/a", [link("/t"), link("/t"), link("/a")]),
            page("/b", [link("/t")]),
        )
        counts = build_incoming_link_counts(_noise(pages))
        assert counts[url("/t")] == 2
        assert url("/a") not in counts

    def test_global_nav_targets_excluded(self) -> None:
        pages = pages_of(page("/a", [link("/menu"), link("/t")]), page("/b", [link("/menu")]))
        counts = build_incoming_link_counts(_noise(pages, global_nav=(url("/menu"),)))
        assert url("/menu") not in counts
        assert counts[url("/t")] == 1


class TestScoreComposition:
    def test_small_shop_scores(self) -> None:
        noise = reduce_noise(_shop())
        scores = score_pages(noise)
        # 15 incoming + 60 depth + 4 richness + 40 title + 10 base
        assert scores[url("/")] == 129
        # 15 + 50 + 8 + 10
        assert scores[url("/shop")] == 83
        # 15 + 40 + 0 + 80 url + 40 title + 10
        assert scores[url("/checkout")] == 185

    def test_scores_follow_crawl_order(self) -> None:
        assert list(score_pages(reduce_noise(_shop()))) == [url("/"), url("/shop"), url("/checkout")]

    def test_hub_bonus_replaces_incoming(self) -> None:
        pages = pages_of(page("/a", [link("/h")]), page("/b", [link("/h")]), page("/h"))
        noise = _noise(pages, hubs=(url("/h"),))
        breakdown = score_breakdown(url("/h"), pages[url("/h")], noise, build_incoming_link_counts(noise))
        assert breakdown.popularity == 40

    def test_global_nav_penalty_before_base(self) -> None:
        pages = pages_of(page("/about", depth=1))
        noise = _noise(pages, global_nav=(url("/about"),), hubs=(url("/about"),))
        # (40 hub + 50 depth + 35 about) * 0.7 + 10
        assert score(url("/about"), pages[url("/about")], noise, {}) == pytest.approx(97.5)

    def test_penalty_is_configurable(self) -> None:
        pages = pages_of(page("/about", depth=1))
        noise = _noise(pages, global_nav=(url("/about"),))
        config = AnalyzerConfig(global_nav_penalty=0.5)
        # (50 + 35) * 0.5 + 10
        assert score(url("/about"), pages[url("/about")], noise, {}, config) == pytest.approx(52.5)

    def test_missing_page_scores_zero(self) -> None:
        noise = _noise(pages_of(page("/a")))
        stray = page("/gone")
        assert score(stray.url, stray, noise, {}) == 0.0

    @pytest.mark.parametrize(
        "depth,expected",
        [(0, 60), (3, 30), (6, 0), (12, 0), (-2, 60)],
        ids=["root", "mid", "cap", "beyond_cap", "negative_clamped"],
    )
    def test_depth_factor(self, depth: int, expected: int) -> None:
        record = page("/x", depth=depth)
        noise = _noise(pages_of(record))
        assert score_breakdown(record.url, record, noise, {}).depth == expected

    def test_richness_capped(self) -> None:
        record = page("/x", [link(f"/t{i}") for i in range(20)])
        noise = _noise(pages_of(record))
        assert score_breakdown(record.url, record, noise, {}).richness == 60

    def test_richness_uses_cleaned_links(self) -> None:
        original = page("/x", [link(f"/t{i}") for i in range(5)])
        cleaned = page("/x", [link("/t0")])
        noise = _noise(pages_of(cleaned))
        assert score_breakdown(original.url, original, noise, {}).richness == 4


class TestPatternBonuses:
    @pytest.mark.parametrize(
        "path,expected_bonus",
        [
            ("/home", 100),
            ("/main", 100),
            ("/homepage", 0),
            ("/login", 80),
            ("/cart", 80),
            ("/products/42", 60),
            ("/settings", 60),
            ("/help", 50),
            ("/search", 50),
            ("/browse/shoes", 45),
            ("/info", 35),
            ("/account/orders", 140),
            ("/blog/post", 0),
        ],
    )
    def test_url_patterns(self, path: str, expected_bonus: int) -> None:
        record = page(path)
        noise = _noise(pages_of(record))
        assert score_breakdown(record.url, record, noise, {}).pattern_bonus == expected_bonus

    def test_url_pattern_case_insensitive(self) -> None:
        record = page("/Checkout")
        noise = _noise(pages_of(record))
        assert score_breakdown(record.url, record, noise, {}).pattern_bonus == 80

    @pytest.mark.parametrize(
        "title,expected_bonus",
        [
            ("Welcome Home", 40),
            ("Sign In", 40),
            ("Your Cart", 40),
            ("Product detail", 30),
            ("Shoe Collection", 25),
            ("Dashboard overview", 40),
            ("Blog", 0),
            ("", 0),
        ],
    )
    def test_title_keywords(self, title: str, expected_bonus: int) -> None:
        record = page("/x", title=title)
        noise = _noise(pages_of(record))
        assert score_breakdown(record.url, record, noise, {}).title_bonus == expected_bonus

    def test_signals_name_matched_rows(self) -> None:
        record = page("/checkout", title="Checkout")
        noise = _noise(pages_of(record))
        assert score_breakdown(record.url, record, noise, {}).signals == ("url_transaction", "title_transaction")

    def test_table_names_unique(self) -> None:
        names = [row.name for row in (*URL_PATTERN_BONUSES, *TITLE_KEYWORD_BONUSES)]
        assert len(names) == len(set(names))


class TestDeterminism:
    def test_repeatable(self) -> None:
        noise = reduce_noise(_shop())
        assert score_pages(noise) == score_pages(noise)

    def test_link_position_irrelevant_to_score(self) -> None:
        a = pages_of(page("/a", [link("/t", "T", LinkPosition.CONTENT)]), page("/t"))
        b = pages_of(page("/a", [link("/t", "T", LinkPosition.HEADER)]), page("/t"))
        assert score_pages(_noise(a)) == score_pages(_noise(b))
