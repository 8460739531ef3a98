"""Configuration parsing and validation for githubby.

This module reads the optional YAML configuration file holding defaults
for the command-line options.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from typing_extensions import TypedDict

from .models import PROTOCOLS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(".githubby.yaml")
DRY_RUN_DELAY = 0.25


class Config(TypedDict, total=False):
    """Settings that may be given in the configuration file.

    Every field is optional; command-line options take precedence.
    """

    token: str
    output: str
    protocol: str
    timeout: int
    allow_empty: bool
    dry_run_delay: float


DEFAULTS: Config = {
    "protocol": "https",
    "timeout": 30,
    "allow_empty": False,
    "dry_run_delay": DRY_RUN_DELAY,
}


def load_config(config_path: Path) -> Config:
    """Load and validate configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Validated configuration with defaults filled in

    Raises:
        FileNotFoundError: If the config file doesn't exist
        yaml.YAMLError: If the YAML is malformed
        ValueError: If the config structure is invalid

    Example:
        >>> config = load_config(Path(".githubby.yaml"))
        >>> print(config["protocol"])
        https
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML configuration: {e}") from e

    # An empty file is a valid, empty configuration
    if data is None:
        data = {}

    return validate_config(data)


def validate_config(data: Any) -> Config:
    """Validate configuration data and fill in defaults.

    Args:
        data: Raw configuration data

    Returns:
        Validated configuration

    Raises:
        ValueError: If the configuration structure is invalid
    """
    if not isinstance(data, dict):
        raise ValueError("Configuration must be a dictionary")

    unknown = sorted(set(data) - set(Config.__annotations__))
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

    for key in ("token", "output", "protocol"):
        if key in data and not isinstance(data[key], str):
            raise ValueError(f"'{key}' must be a string")

    if "protocol" in data and data["protocol"] not in PROTOCOLS:
        raise ValueError(f"'protocol' must be one of: {', '.join(PROTOCOLS)}")

    # bool is a subclass of int, so reject it explicitly
    timeout = data.get("timeout")
    if timeout is not None and (
        isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0
    ):
        raise ValueError("'timeout' must be a positive integer")

    if "allow_empty" in data and not isinstance(data["allow_empty"], bool):
        raise ValueError("'allow_empty' must be a boolean")

    delay = data.get("dry_run_delay")
    if delay is not None and (
        isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0
    ):
        raise ValueError("'dry_run_delay' must be a non-negative number")

    config: Config = {**DEFAULTS, **data}
    logger.debug(f"Configuration keys: {', '.join(sorted(config))}")
    return config
