# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader: reads YAML from disk and produces a validated, frozen ClipkgConfig.

The pipeline is linear:
  1. Read the file
  2. Parse it as YAML into a plain dict
  3. Hand the dict to pydantic for schema validation
  4. Return the frozen config object

Any failure stops here with a clear error. There's no partial config and no
silent fallback; running without a file at all is what `default_config` is for.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from clipkg.config.exceptions import ConfigLoadError, ConfigValidationError
from clipkg.config.schema import ClipkgConfig

DEFAULT_CONFIG_FILENAME = "clipkg.yaml"
_DEFAULT_CONFIG_VERSION = "1.0.0"


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return the parsed mapping.

    Raises:
        ConfigLoadError: If the file doesn't exist, isn't readable, or isn't a YAML mapping.
    """
    if not config_path.exists():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    if not config_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {config_path}")

    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err

    try:
        parsed = yaml.safe_load(raw_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )

    return parsed


def validate_config(raw_data: dict[str, Any], source: str = "<memory>") -> ClipkgConfig:
    """
    Validate an already-parsed mapping.

    Raises:
        ConfigValidationError: Schema violations (missing fields, wrong types, unknown keys).
    """
    try:
        return ClipkgConfig.model_validate(raw_data)
    except ValidationError as err:
        raise ConfigValidationError(f"Config validation failed for {source}:\n{err}") from err


def load_config(config_path: Path) -> ClipkgConfig:
    """
    Load, validate, and freeze a config file.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations.
    """
    return validate_config(_read_yaml_file(config_path), source=str(config_path))


def default_config() -> ClipkgConfig:
    """The config used when no file is given: every section at its defaults."""
    return validate_config({"global": {"config_version": _DEFAULT_CONFIG_VERSION}})
