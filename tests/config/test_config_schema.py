# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Schema-level validation tests: defaults, bounds and unknown fields.
"""

import pytest
from pydantic import ValidationError

from clipkg.config.schema import (
    DEFAULT_ARCHIVE_URL,
    DirectoryConfig,
    GlobalConfig,
    PackageConfig,
    StandaloneConfig,
    ToolchainConfig,
)


class TestGlobalConfigSchema:
    def test_config_version_is_required(self) -> None:
        with pytest.raises(ValidationError):
            GlobalConfig()  # type: ignore[call-arg]

    def test_default_log_level_is_info(self) -> None:
        assert GlobalConfig(config_version="1.0.0").log_level == "INFO"

    def test_unknown_directory_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DirectoryConfig(build="build", cache="cache")  # type: ignore[call-arg]


class TestPackageConfigSchema:
    def test_defaults(self) -> None:
        config = PackageConfig()
        assert config.lock_file == "pubspec.lock"
        assert config.bin_directory == "bin"
        assert config.source_directories == ["lib"]
        assert config.executables is None


class TestToolchainConfigSchema:
    def test_default_commands_use_placeholders(self) -> None:
        config = ToolchainConfig()
        assert any("{output}" in part for part in config.snapshot_command)
        assert any("{defines}" in part for part in config.native_command)
        assert config.archive_url == DEFAULT_ARCHIVE_URL

    def test_empty_command_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ToolchainConfig(snapshot_command=[])


class TestStandaloneConfigSchema:
    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            StandaloneConfig(download_timeout_seconds=0)

    def test_mtime_must_be_non_negative(self) -> None:
        with pytest.raises(ValidationError):
            StandaloneConfig(mtime=-1)

    def test_offline_is_off_by_default(self) -> None:
        assert StandaloneConfig().offline is False
