"""
Repair Desk — Config Loader

Three-tier configuration loading:
  1. Base file (workshop/config.yaml)
  2. Per-environment overlay files (config/{RD_ENV}.yaml merged over base)
  3. Environment variable overrides (RD_ prefixed)

Usage:
    from common.config import load_config, get_config_value

    cfg = load_config(base_path="workshop/config.yaml", env="dev")
    snapshot = get_config_value("storage.snapshot", cfg, "technical_support_data.snapshot")

Environment variables:
    RD_ENV         — active profile (dev, prod, ...)
    RD_CONFIG_DIR  — directory for overlay files (default: config/)
    RD_*           — flat overrides (e.g., RD_STORAGE_HISTORY=/var/log/shop.log)
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("repair_desk.config")

DEFAULTS: dict[str, Any] = {
    "storage": {
        "snapshot": "technical_support_data.snapshot",
        "history": "service_records.log",
    },
    "logging": {
        "level": "WARNING",
    },
    "console": {
        "clear": True,
    },
}


# ═══════════════════════════════════════════════════════════════════
# Deep Merge
# ═══════════════════════════════════════════════════════════════════

def deep_merge(base: dict, overlay: dict) -> dict:
    """
    Deep-merge overlay into base. Overlay values win.
    Lists are replaced (not appended). Dicts are recursed.
    """
    result = copy.deepcopy(base)
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _set_nested(d: dict, keys: list[str], value: Any):
    """Set a nested dict value from a list of keys."""
    for key in keys[:-1]:
        d = d.setdefault(key, {})
    d[keys[-1]] = value


# ═══════════════════════════════════════════════════════════════════
# Overlay Files
# ═══════════════════════════════════════════════════════════════════

def _load_overlay_file(
    base_path: str,
    env: str = "",
    config_dir: str = "",
) -> dict[str, Any]:
    """
    Load per-environment overlay file.
    Looks for config/{env}.yaml or {config_dir}/{env}.yaml.
    Returns empty dict if not found.
    """
    env = env or os.environ.get("RD_ENV", "")
    if not env:
        return {}

    config_dir = config_dir or os.environ.get("RD_CONFIG_DIR", "config")

    candidates = [
        Path(config_dir) / f"{env}.yaml",
        Path(config_dir) / f"{env}.yml",
        Path(os.path.dirname(base_path)) / "config" / f"{env}.yaml",
    ]

    for path in candidates:
        if path.exists():
            try:
                with open(path) as f:
                    overlay = yaml.safe_load(f) or {}
                logger.info("Loaded config overlay: %s (%d keys)", path, len(overlay))
                return overlay
            except (OSError, yaml.YAMLError) as e:
                logger.warning("Failed to load overlay %s: %s", path, e)

    logger.debug("No config overlay found for env=%s", env)
    return {}


# ═══════════════════════════════════════════════════════════════════
# Environment Variable Overrides
# ═══════════════════════════════════════════════════════════════════

def _load_env_overrides(prefix: str = "RD_") -> dict[str, Any]:
    """
    Load RD_ prefixed environment variables as config overrides.

    Naming convention:
      RD_SECTION_KEY=value → {"section": {"key": value}}

    Values are parsed as YAML scalars (numbers, booleans).
    RD_ENV, RD_CONFIG_DIR and RD_VERSION are meta config and skipped.
    """
    excluded = {"RD_ENV", "RD_CONFIG_DIR", "RD_VERSION"}
    overrides: dict[str, Any] = {}

    for key, value in os.environ.items():
        if not key.startswith(prefix) or key in excluded:
            continue

        path = key[len(prefix):].lower().split("_")
        try:
            parsed = yaml.safe_load(value)
        except yaml.YAMLError:
            parsed = value
        if not isinstance(parsed, (str, int, float, bool)):
            parsed = value

        _set_nested(overrides, path, parsed)

    if overrides:
        logger.debug("Loaded %d env var overrides", len(overrides))
    return overrides


# ═══════════════════════════════════════════════════════════════════
# Main Loader
# ═══════════════════════════════════════════════════════════════════

def load_config(
    base_path: str = "workshop/config.yaml",
    env: str = "",
    config_dir: str = "",
    include_env_vars: bool = True,
) -> dict[str, Any]:
    """
    Load configuration with three-tier merging.

    Priority (highest wins):
      1. Environment variable overrides (RD_*)
      2. Per-environment overlay file (config/{env}.yaml)
      3. Base config file
      4. Built-in DEFAULTS
    """
    config = copy.deepcopy(DEFAULTS)
    if os.path.exists(base_path):
        with open(base_path) as f:
            config = deep_merge(config, yaml.safe_load(f) or {})
        logger.debug("Loaded base config: %s", base_path)

    overlay = _load_overlay_file(base_path, env=env, config_dir=config_dir)
    if overlay:
        config = deep_merge(config, overlay)

    if include_env_vars:
        env_overrides = _load_env_overrides()
        if env_overrides:
            config = deep_merge(config, env_overrides)

    config["_active_env"] = env or os.environ.get("RD_ENV", "default")
    config["_config_source"] = base_path
    return config


def get_config_value(
    path: str,
    config: dict[str, Any] | None = None,
    default: Any = None,
) -> Any:
    """
    Get a nested config value by dotted path.

    Example:
        get_config_value("storage.history", cfg, "service_records.log")
    """
    if config is None:
        config = load_config()

    current = config
    for key in path.split("."):
        if isinstance(current, dict) and key in current:
            current = current[key]
        else:
            return default
    return current
