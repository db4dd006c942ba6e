# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Exceptions for the configuration system.

Kept apart from clipkg.errors so the CLI can tell "your clipkg.yaml is wrong"
apart from "the build failed" and map them to different exit codes.
"""


class ConfigError(Exception):
    """Base for all configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when a config file cannot be read from disk or parsed as YAML."""


class ConfigValidationError(ConfigError):
    """
    Raised when a config file parses fine but fails schema validation:
    missing required fields, type mismatches, out-of-range values, unknown keys.
    """
