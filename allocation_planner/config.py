"""Configuration management for the allocation planner.

This module centralizes configuration values including paths, planner
defaults, and environment variable overrides. Defaults live in
``planner_defaults.json`` next to this file so they can be tuned without
code changes.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

# Base project root - assumes this file is in allocation_planner/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Configuration directory
CONFIG_DIR = Path(__file__).parent

# Data directories
DATA_DIR = Path(os.getenv("ALLOCATION_PLANNER_DATA_DIR", _PROJECT_ROOT / "data"))
PLANS_DIR = Path(os.getenv("ALLOCATION_PLANNER_PLANS_DIR", DATA_DIR / "plans"))


def load_config(config_name: str) -> Dict[str, Any]:
    """Load a configuration file by name.

    Args:
        config_name: Name of the config file (without .json extension)

    Returns:
        Dictionary containing the configuration

    Raises:
        FileNotFoundError: If the configuration file doesn't exist
        json.JSONDecodeError: If the configuration file is invalid JSON
    """
    config_path = CONFIG_DIR / f"{config_name}.json"

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        return json.load(f)


@lru_cache(maxsize=1)
def _planner_defaults_file() -> Dict[str, Any]:
    return load_config('planner_defaults')


def get_planner_defaults() -> Dict[str, Any]:
    """Get planner defaults with environment overrides applied.

    Returns:
        A fresh dictionary; callers may mutate it freely.

    Example:
        >>> get_planner_defaults()['savings']['horizon_months']
        24
    """
    config = json.loads(json.dumps(_planner_defaults_file()))

    horizon = os.getenv("ALLOCATION_PLANNER_SAVINGS_HORIZON")
    if horizon:
        config['savings']['horizon_months'] = int(horizon)

    tolerance = os.getenv("ALLOCATION_PLANNER_TOLERANCE")
    if tolerance:
        config['validation']['tolerance_percent'] = float(tolerance)

    return config


def get_config_value(*keys: str, default: Any = None) -> Any:
    """Get a nested planner default by key path.

    Example:
        >>> get_config_value('validation', 'tolerance_percent')
        0.1
    """
    value: Any = get_planner_defaults()
    try:
        for key in keys:
            value = value[key]
    except (KeyError, TypeError):
        return default
    return value


def savings_horizon_months() -> int:
    return int(get_config_value('savings', 'horizon_months', default=24))


def allowed_durations() -> tuple:
    return tuple(get_config_value('savings', 'allowed_durations', default=[3, 6, 12]))


def tolerance_percent() -> float:
    return float(get_config_value('validation', 'tolerance_percent', default=0.1))


def currency_precision() -> int:
    return int(get_config_value('rebalance', 'precision', default=2))
