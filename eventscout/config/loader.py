"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  -- static defaults checked into the repo
#                             (tier order + weights, relaxation order,
#                             prompt sizes, fallback widening)
#   2. .env file           -- local developer overrides (not committed)
#   3. Environment vars    -- set at deploy time
#
# _deep_merge does recursive dict merging:
#   base = {"cache": {"ttl": 900, "max_size": 256}}
#   overrides = {"cache": {"ttl": 60}}
#   result = {"cache": {"ttl": 60, "max_size": 256}}
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pathlib import Path

import yaml

from eventscout.config.settings import Settings
from eventscout.config.domain_knowledge import RELAXABLE_FILTERS
from eventscout.utils.errors import ConfigurationError


def load_config(path: str | None = None, settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  Defaults to
              ``settings.config_path``.  A missing file yields an empty base.
        settings: Settings instance to take overrides from; a fresh one is
                  read from the environment when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If the YAML is malformed or names an unknown
            relaxation filter.
    """
    settings = settings or Settings()
    config_path = Path(path or settings.config_path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                yaml_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(
                    message=f"Invalid YAML in {config_path}: {exc}"
                ) from exc
    else:
        yaml_config = {}

    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "llm": {
            "available_providers": settings.get_available_llm_providers(),
        },
        "cache": {
            "ttl": settings.search_cache_ttl,
            "fallback_ttl": settings.search_cache_fallback_ttl,
            "max_size": settings.search_cache_max_size,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    _validate(yaml_config)
    return yaml_config


def relaxation_order(config: dict) -> tuple[str, ...]:
    """Return the configured relaxation order, defaulting to quality → date → country."""
    order = config.get("relaxation", {}).get("order") or list(RELAXABLE_FILTERS)
    return tuple(order)


def tier_weights(config: dict) -> dict[str, float]:
    """Return ``{tier name: weight}`` from the discovery section."""
    tiers = config.get("discovery", {}).get("tiers") or []
    return {t["name"]: float(t.get("weight", 1.0)) for t in tiers if "name" in t}


def _validate(config: dict) -> None:
    unknown = [name for name in relaxation_order(config) if name not in RELAXABLE_FILTERS]
    if unknown:
        raise ConfigurationError(
            message=f"Unknown relaxation filter(s) in config: {', '.join(unknown)}"
        )


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
