# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Analyzer thresholds and their YAML loader.

Every field has a working default; a config file only needs
the keys it overrides::

    global_nav_threshold: 0.9
    max_key_pages: 20

Lookup order for the file: explicit path, then ``$FLOWMAP_CONFIG``, then none
(defaults).
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from flowmap.errors import ConfigError

CONFIG_ENV_VAR = "FLOWMAP_CONFIG"

# Keys whose value is a share of pages/links and must lie in [0, 1].
_RATIO_KEYS = (
    "global_nav_threshold",
    "hub_page_threshold",
    "repetitive_text_threshold",
    "structural_position_ratio",
    "min_link_retention",
    "key_page_ratio",
    "global_nav_penalty",
)
_COUNT_KEYS = (
    "min_key_pages",
    "max_key_pages",
    "safety_min_key_pages",
    "safety_expand_key_pages",
)


@dataclass(frozen=True, slots=True)
class AnalyzerConfig:
    """Immutable analyzer configuration."""

    # Noise classification
    global_nav_threshold: float = 0.85  # share of pages containing the href
    hub_page_threshold: float = 0.90  # share of pages linking to the target
    repetitive_text_threshold: float = 0.75  # distinct hrefs per anchor text / pages
    structural_position_ratio: float = 0.70  # strictly greater-than
    min_link_retention: float = 0.10  # below this, fall back to low-value only
    # Key-page selection
    key_page_ratio: float = 0.30
    min_key_pages: int = 10
    max_key_pages: int = 30
    safety_min_key_pages: int = 5
    safety_expand_key_pages: int = 15
    # Scoring
    global_nav_penalty: float = 0.7

    def __post_init__(self) -> None:
        for key in _RATIO_KEYS:
            value = getattr(self, key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{key} must be a number, got {value!r}", key=key)
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{key} must be between 0 and 1, got {value}", key=key)
        for key in _COUNT_KEYS:
            value = getattr(self, key)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{key} must be an integer, got {value!r}", key=key)
            if value < 1:
                raise ConfigError(f"{key} must be at least 1, got {value}", key=key)
        if self.min_key_pages > self.max_key_pages:
            raise ConfigError(
                f"min_key_pages ({self.min_key_pages}) exceeds max_key_pages ({self.max_key_pages})",
                key="min_key_pages",
            )

    @classmethod
    def from_mapping(cls, data: dict) -> AnalyzerConfig:
        known = {f.name for f in dataclasses.fields(cls)}
        # YAML keys need not be strings (``1: 2``); report them as written
        unknown = sorted(str(key) for key in data if key not in known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}", key=unknown[0])
        return cls(**data)

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


def load_config(path: str | Path | None = None) -> AnalyzerConfig:
    """Load an AnalyzerConfig from YAML, falling back to defaults.

    Raises:
        ConfigError: file unreadable, not a mapping, or holding invalid values.
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR, "").strip()
        if not env_path:
            return AnalyzerConfig()
        path = env_path

    config_path = Path(path)
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return AnalyzerConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping, got {type(data).__name__}")
    return AnalyzerConfig.from_mapping(data)
