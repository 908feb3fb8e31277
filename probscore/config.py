"""
Configuration loading.

Settings live in a YAML file (config/default_config.yml by default) and are
returned as a plain nested dict, with user values merged over the defaults.
"""

import copy
import logging
from pathlib import Path

import numpy as np
import yaml

from .errors import InvalidInputError
from .evaluation.quantiles import probability_grid

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = ROOT_DIR / 'config' / 'default_config.yml'

DEFAULTS = {
    'evaluation': {
        'grid': {'start': 0.01, 'stop': 0.99, 'step': 0.01},
        'quantiles': [0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9],
        'interpolation': 'linear',
        'baseline': 'naive',
        'interval_coverage': 0.8,
    },
    'ensemble': {
        'n_runs': None,
        'weights': None,
    },
    'simulation': {
        'horizon': 24,
        'n_runs': 1000,
        'seed': 42,
    },
    'logging': {
        'level': 'INFO',
    },
    'output': {
        'dir': 'results',
    },
}


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path=None) -> dict:
    """
    Load a YAML configuration file merged over the built-in defaults.

    Parameters
    ----------
    config_path : str or Path, optional
        Path to a YAML file. Uses config/default_config.yml when omitted,
        falling back to the built-in defaults if that file is absent.

    Returns
    -------
    dict
    """
    if config_path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            logger.debug(f"{DEFAULT_CONFIG_PATH} not found, using built-in defaults")
            return copy.deepcopy(DEFAULTS)
        config_path = DEFAULT_CONFIG_PATH

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        user_config = yaml.safe_load(f) or {}

    if not isinstance(user_config, dict):
        raise InvalidInputError(f"Config file {config_path} must contain a mapping at top level")

    logger.debug(f"Loaded configuration from {config_path}")
    return _merge(DEFAULTS, user_config)


def grid_from_config(config: dict) -> np.ndarray:
    """CRPS probability grid described by the evaluation.grid section"""
    grid = config['evaluation']['grid']
    return probability_grid(start=float(grid['start']), stop=float(grid['stop']), step=float(grid['step']))
