"""
Configuration management for SoftPOSIT pose estimation.

Two layers, like the rest of the project:
- SoftPositConfig: class-level constants consumed by the solver, overridable
  per instance.
- Dictionary configurations (defaults, presets, JSON files) used by scripts
  and the command line.
"""

import copy
import json
import math
import os
from typing import Any, Dict, List, Tuple

from .core.structures.geometry import SoftPositParams
from .logger import get_logger

logger = get_logger("config")


class SoftPositConfig:
    """Configuration for the SoftPOSIT annealing solver"""

    # Annealing schedule
    BETA_FINAL = 0.5                    # Terminate iteration when beta reaches this value
    BETA_UPDATE = 1.05                  # Geometric growth rate of beta
    EPSILON0 = 0.01                     # Initial assignment bias
    MIN_BETA_COUNT = 20                 # Outer iterations required before accepting a pose

    # POSIT refinement
    MAX_COUNT = 1                       # POSIT iterations per annealing step
    CONDITION_THRESHOLD = 1e10          # Abort when cond(L) exceeds this

    # Inlier model
    CHI_SQUARE_99 = 9.21                # 99% quantile of chi-square with 2 dof

    # Assignment normalization
    NORMALIZATION = 'slack_ratio'       # 'slack_ratio' or 'plain'
    SINKHORN_MAX_ITERATIONS = 60
    SINKHORN_TOLERANCE = 1e-3

    # Defaults for SoftPositParams
    DEFAULT_BETA0 = 0.0004
    DEFAULT_NOISE_STD = 1.0

    def __init__(self, **overrides):
        for key, value in overrides.items():
            attr = key.upper()
            if not hasattr(self, attr):
                raise ValueError(f"Unknown SoftPOSIT configuration option: {key}")
            setattr(self, attr, value)

    def to_dict(self) -> Dict[str, Any]:
        """Export all UPPER_CASE options as a lowercase dictionary"""
        return {
            name.lower(): getattr(self, name)
            for name in dir(self)
            if name.isupper()
        }

    def max_outer_iterations(self, beta0: float) -> int:
        """Worst-case number of annealing steps for a given starting beta"""
        if beta0 <= 0 or beta0 >= self.BETA_FINAL:
            return 0
        return int(math.ceil(math.log(self.BETA_FINAL / beta0) / math.log(self.BETA_UPDATE)))

    def __repr__(self) -> str:
        return f"SoftPositConfig({self.to_dict()})"


# =============================================================================
# Dictionary Configurations
# =============================================================================


DEFAULT_CONFIG = {
    'params': {
        'beta0': SoftPositConfig.DEFAULT_BETA0,
        'noise_std': SoftPositConfig.DEFAULT_NOISE_STD,
    },
    'solver': {
        'beta_final': SoftPositConfig.BETA_FINAL,
        'beta_update': SoftPositConfig.BETA_UPDATE,
        'min_beta_count': SoftPositConfig.MIN_BETA_COUNT,
        'max_count': SoftPositConfig.MAX_COUNT,
        'normalization': SoftPositConfig.NORMALIZATION,
    },
}


PRESET_CONFIGS = {
    'default': {},

    'fast': {
        'solver': {
            'beta_update': 1.1,
            'min_beta_count': 10,
        }
    },

    'thorough': {
        'solver': {
            'beta_update': 1.02,
            'min_beta_count': 40,
            'max_count': 2,
        }
    },

    'noisy': {
        'params': {
            'noise_std': 2.5,
        },
        'solver': {
            'min_beta_count': 30,
        }
    },
}


VALID_NORMALIZATIONS = ['slack_ratio', 'plain']


# =============================================================================
# Configuration Functions
# =============================================================================

def get_default_config() -> Dict[str, Any]:
    """Get a copy of the default configuration"""
    return copy.deepcopy(DEFAULT_CONFIG)


def create_config_from_preset(preset: str) -> Dict[str, Any]:
    """
    Create configuration from a preset

    Args:
        preset: Preset name ('default', 'fast', 'thorough', 'noisy')

    Returns:
        Configuration dictionary

    Raises:
        ValueError: If preset is not available
    """
    if preset not in PRESET_CONFIGS:
        available = ', '.join(PRESET_CONFIGS.keys())
        raise ValueError(f"Unknown preset: {preset}. Available: {available}")

    return merge_configs(DEFAULT_CONFIG, PRESET_CONFIGS[preset])


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge two configuration dictionaries

    Args:
        base_config: Base configuration
        override_config: Configuration to override base with

    Returns:
        Merged configuration
    """
    merged = copy.deepcopy(base_config)

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)

    return merged


def validate_config(config: Dict[str, Any]) -> Dict[str, List[str]]:
    """
    Validate configuration and return any issues

    Args:
        config: Configuration to validate

    Returns:
        {'errors': [...], 'warnings': [...]}
    """
    errors = []
    warnings = []

    params = config.get('params', {})
    solver = config.get('solver', {})

    if not isinstance(params, dict):
        errors.append("'params' must be a dictionary")
        params = {}
    if not isinstance(solver, dict):
        errors.append("'solver' must be a dictionary")
        solver = {}

    beta0 = params.get('beta0', SoftPositConfig.DEFAULT_BETA0)
    beta_final = solver.get('beta_final', SoftPositConfig.BETA_FINAL)
    if not isinstance(beta0, (int, float)) or beta0 <= 0:
        errors.append("'beta0' must be a positive number")
    elif beta0 >= beta_final:
        warnings.append(f"beta0 ({beta0}) >= beta_final ({beta_final}): no annealing step will run")

    noise_std = params.get('noise_std', SoftPositConfig.DEFAULT_NOISE_STD)
    if not isinstance(noise_std, (int, float)) or noise_std < 0:
        errors.append("'noise_std' must be a non-negative number")

    beta_update = solver.get('beta_update', SoftPositConfig.BETA_UPDATE)
    if not isinstance(beta_update, (int, float)) or beta_update <= 1.0:
        errors.append("'beta_update' must be greater than 1")
    elif beta_update > 1.5:
        warnings.append(f"beta_update {beta_update} anneals very quickly; correspondences may lock in early")

    for key in ('min_beta_count', 'max_count'):
        if key in solver and (not isinstance(solver[key], int) or solver[key] < 0):
            errors.append(f"'{key}' must be a non-negative integer")
    if solver.get('max_count', 1) == 0:
        errors.append("'max_count' must be at least 1")

    normalization = solver.get('normalization', SoftPositConfig.NORMALIZATION)
    if normalization not in VALID_NORMALIZATIONS:
        errors.append(f"'normalization' must be one of: {VALID_NORMALIZATIONS}")

    for key in solver:
        if not hasattr(SoftPositConfig, key.upper()):
            errors.append(f"Unknown solver option: {key}")

    return {'errors': errors, 'warnings': warnings}


def config_from_dict(config: Dict[str, Any]) -> Tuple[SoftPositConfig, SoftPositParams]:
    """
    Build solver objects from a dictionary configuration

    Raises:
        ValueError: If the configuration has errors
    """
    issues = validate_config(config)
    if issues['errors']:
        raise ValueError("Invalid configuration: " + '; '.join(issues['errors']))
    for warning in issues['warnings']:
        logger.warning(warning)

    params = config.get('params', {})
    solver_config = SoftPositConfig(**config.get('solver', {}))
    solver_params = SoftPositParams(
        beta0=float(params.get('beta0', solver_config.DEFAULT_BETA0)),
        noise_std=float(params.get('noise_std', solver_config.DEFAULT_NOISE_STD)),
    )
    return solver_config, solver_params


def save_config(config: Dict[str, Any], filepath: str):
    """
    Save configuration to JSON file

    Args:
        config: Configuration to save
        filepath: Path to save file
    """
    with open(filepath, 'w') as f:
        json.dump(config, f, indent=2)
    logger.info(f"Configuration saved to: {filepath}")


def load_config(filepath: str) -> Dict[str, Any]:
    """
    Load configuration from JSON file

    Args:
        filepath: Path to configuration file

    Returns:
        Loaded configuration, merged over the defaults

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file is not valid JSON
    """
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"Configuration file not found: {filepath}")

    with open(filepath, 'r') as f:
        config = json.load(f)

    logger.info(f"Configuration loaded from: {filepath}")
    return merge_configs(DEFAULT_CONFIG, config)
