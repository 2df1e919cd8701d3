"""Configuration defaults and YAML loading."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from niceframe.core.errors import ConfigError
from niceframe.core.frame import DEFAULT_FRAME_WIDTH
from niceframe.core.slices import STRATEGIES

DEFAULTS: Dict[str, Any] = {
    "frame_width": DEFAULT_FRAME_WIDTH,
    # Unique colors above which an opaque PNG is treated as a photograph.
    "color_threshold": 16000,
    "downsample": {
        "enabled": True,
        "source_dpi": 144,
        "target_dpi": 72,
    },
    "photo": {
        "enabled": True,
        "quality": 90,
    },
    "scan": {
        "strategy": "spool",
        "tmpdir": None,
    },
}


def merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def validate(cfg: Dict[str, Any]) -> Dict[str, Any]:
    frame_width = cfg.get("frame_width")
    if not isinstance(frame_width, int) or isinstance(frame_width, bool) or frame_width < 0:
        raise ConfigError(f"frame_width must be a non-negative integer, got {frame_width!r}")
    if int(cfg.get("color_threshold", 0)) < 0:
        raise ConfigError("color_threshold must not be negative")
    strategy = cfg["scan"].get("strategy")
    if strategy not in STRATEGIES:
        raise ConfigError(f"scan.strategy must be one of {STRATEGIES}, got {strategy!r}")
    downsample = cfg["downsample"]
    if downsample.get("enabled") and int(downsample.get("target_dpi", 0)) <= 0:
        raise ConfigError("downsample.target_dpi must be positive")
    quality = int(cfg["photo"].get("quality", 90))
    if not 1 <= quality <= 100:
        raise ConfigError(f"photo.quality must be between 1 and 100, got {quality}")
    return cfg


def load_config(path: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Defaults, then the YAML file at ``path``, then ``overrides``."""
    cfg = copy.deepcopy(DEFAULTS)
    if path is not None:
        try:
            with open(path, "r", encoding="utf-8") as handle:
                loaded = yaml.safe_load(handle) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read config {path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config {path} must contain a mapping")
        cfg = merge(cfg, loaded)
    if overrides:
        cfg = merge(cfg, overrides)
    return validate(cfg)
