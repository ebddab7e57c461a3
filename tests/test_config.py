# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for flowmap.config: AnalyzerConfig validation and YAML loading."""

from __future__ import annotations

import pytest

from flowmap.config import CONFIG_ENV_VAR, AnalyzerConfig, load_config
from flowmap.errors import ConfigError, FlowMapError


class TestDefaults:
    def test_default_values(self) -> None:
        config = AnalyzerConfig()
        assert config.global_nav_threshold == 0.85
        assert config.hub_page_threshold == 0.90
        assert config.repetitive_text_threshold == 0.75
        assert config.structural_position_ratio == 0.70
        assert config.min_link_retention == 0.10
        assert config.key_page_ratio == 0.30
        assert (config.min_key_pages, config.max_key_pages) == (10, 30)
        assert (config.safety_min_key_pages, config.safety_expand_key_pages) == (5, 15)
        assert config.global_nav_penalty == 0.7

    def test_frozen(self) -> None:
        config = AnalyzerConfig()
        with pytest.raises(AttributeError):
            config.max_key_pages = 5  # type: ignore[misc]

    def test_to_dict_round_trip(self) -> None:
        config = AnalyzerConfig(max_key_pages=20)
        assert AnalyzerConfig.from_mapping(config.to_dict()) == config


class TestValidation:
    @pytest.mark.parametrize(
        "kwargs,key",
        [
            ({"global_nav_threshold": 1.5}, "global_nav_threshold"),
            ({"hub_page_threshold": -0.1}, "hub_page_threshold"),
            ({"key_page_ratio": "0.3"}, "key_page_ratio"),
            ({"global_nav_penalty": True}, "global_nav_penalty"),
            ({"min_key_pages": 0}, "min_key_pages"),
            ({"max_key_pages": 2.5}, "max_key_pages"),
            ({"safety_min_key_pages": False}, "safety_min_key_pages"),
            ({"min_key_pages": 40}, "min_key_pages"),
        ],
        ids=[
            "ratio_above_one",
            "ratio_negative",
            "ratio_string",
            "ratio_bool",
            "count_zero",
            "count_float",
            "count_bool",
            "min_above_max",
        ],
    )
    def test_rejected(self, kwargs: dict, key: str) -> None:
        with pytest.raises(ConfigError) as exc_info:
            AnalyzerConfig(**kwargs)
        assert exc_info.value.key == key

    def test_integer_ratio_accepted(self) -> None:
        assert AnalyzerConfig(global_nav_penalty=1).global_nav_penalty == 1

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigError, match="global_nav_treshold"):
            AnalyzerConfig.from_mapping({"global_nav_treshold": 0.9})

    @pytest.mark.parametrize(
        "data,listed",
        [({1: 2}, "1"), ({1: 2, "foo": 3}, "1, foo"), ({True: 1, "max_key_pages": 5}, "True")],
        ids=["int_key", "int_and_str_keys", "bool_key"],
    )
    def test_non_string_keys(self, data: dict, listed: str) -> None:
        with pytest.raises(ConfigError) as exc_info:
            AnalyzerConfig.from_mapping(data)
        assert str(exc_info.value) == f"Unknown config keys: {listed}"

    def test_is_flowmap_error(self) -> None:
        with pytest.raises(FlowMapError):
            AnalyzerConfig(max_key_pages=0)


class TestLoadConfig:
    def test_no_path_no_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert load_config() == AnalyzerConfig()

    def test_partial_override(self, tmp_path) -> None:
        path = tmp_path / "flowmap.yaml"
        path.write_text("global_nav_threshold: 0.9\nmax_key_pages: 20\n", encoding="utf-8")
        config = load_config(path)
        assert config.global_nav_threshold == 0.9
        assert config.max_key_pages == 20
        assert config.min_key_pages == 10

    def test_env_var(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "env.yaml"
        path.write_text("key_page_ratio: 0.5\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_config().key_page_ratio == 0.5

    def test_explicit_path_beats_env(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        env_file = tmp_path / "env.yaml"
        env_file.write_text("max_key_pages: 11\n", encoding="utf-8")
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text("max_key_pages: 12\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(env_file))
        assert load_config(explicit).max_key_pages == 12

    def test_empty_file_is_defaults(self, tmp_path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == AnalyzerConfig()

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigError, match="Cannot read config file"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("max_key_pages: [1, 2\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_config(path)

    def test_non_string_key_in_file(self, tmp_path) -> None:
        path = tmp_path / "numeric.yaml"
        path.write_text("1: 2\nfoo: 3\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Unknown config keys: 1, foo"):
            load_config(path)

    def test_invalid_value_in_file(self, tmp_path) -> None:
        path = tmp_path / "bad_value.yaml"
        path.write_text("hub_page_threshold: 2\n", encoding="utf-8")
        with pytest.raises(ConfigError) as exc_info:
            load_config(path)
        assert exc_info.value.key == "hub_page_threshold"
