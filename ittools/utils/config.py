# ittools/utils/config.py
"""
Minimal config loader with caching and gentle fallbacks.

- Reads ./config.yaml if present and merges it over DEFAULTS.
- Merges environment overrides (ITTOOLS_TOOLS_DIR, ITTOOLS_RATE_LIMIT_WINDOW_MS,
  ITTOOLS_RATE_LIMIT_MAX_REQUESTS, ITTOOLS_LOAD_TIMEOUT_S, ITTOOLS_ON_DUPLICATE,
  ITTOOLS_LOG_LEVEL).
- Returns a plain dict so callers can do .get(...) safely.
- Exposes reload_config() for tests.
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml

# The structured logger reads its level from this module, so this module logs
# through the stdlib logger; records still reach the JSON root handler.
logger = logging.getLogger(__name__)

DEFAULT_TOOLS_DIR = Path(__file__).resolve().parent.parent / "tools"

DEFAULTS: Dict[str, Any] = {
    "logging": {"level": "info"},
    "tools": {"dir": str(DEFAULT_TOOLS_DIR)},
    "loader": {"timeout_s": 10.0},
    "registry": {"on_duplicate": "replace"},
    "rate_limit": {"window_ms": 60000, "max_requests": 100},
    "manifest": {
        "sample_size": 3,
        "features": [
            "Dynamic tool discovery",
            "Per-client rate limiting",
            "Input validation and sanitization",
            "ReDoS-resistant regex handling",
        ],
    },
}

# env var -> (section, key, caster)
_ENV_OVERRIDES = {
    "ITTOOLS_TOOLS_DIR": ("tools", "dir", str),
    "ITTOOLS_RATE_LIMIT_WINDOW_MS": ("rate_limit", "window_ms", int),
    "ITTOOLS_RATE_LIMIT_MAX_REQUESTS": ("rate_limit", "max_requests", int),
    "ITTOOLS_LOAD_TIMEOUT_S": ("loader", "timeout_s", float),
    "ITTOOLS_ON_DUPLICATE": ("registry", "on_duplicate", str),
    "ITTOOLS_LOG_LEVEL": ("logging", "level", str),
}

_CONFIG_CACHE: Dict[str, Any] | None = None


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            return {}
        return data
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to parse %s: %s", path, e)
        return {}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if value is None:
            # an empty YAML section keeps the defaults
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for env_name, (section, key, cast) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if not raw:
            continue
        try:
            value = cast(raw)
        except ValueError:
            logger.warning("Ignoring %s=%r: not a valid %s", env_name, raw, cast.__name__)
            continue
        cfg.setdefault(section, {})[key] = value
    return cfg


def get_config() -> Dict[str, Any]:
    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    cfg = _merge(DEFAULTS, _read_yaml(Path("config.yaml")))
    cfg = _apply_env_overrides(cfg)
    _CONFIG_CACHE = cfg
    return _CONFIG_CACHE


def reload_config() -> Dict[str, Any]:
    """Clear cache and reload (primarily for tests)."""
    global _CONFIG_CACHE
    _CONFIG_CACHE = None
    return get_config()
