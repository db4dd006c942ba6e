# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The local SDK installation: where it is, which version it is, what it can do.

The SDK directory is read-only from clipkg's point of view. We read runtime
binaries and the license out of it and run its compilers, nothing else.

Resolution order for the SDK directory:
  1. toolchain.sdk_dir from the config
  2. $CLIPKG_SDK_DIR
  3. the runtime executable found on PATH (its grandparent directory, since
     executables live in <sdk>/bin)
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from clipkg.config.schema import ToolchainConfig
from clipkg.errors import ClipkgError
from clipkg.logging.logger import get_logger
from clipkg.platforms.triple import Platform
from clipkg.toolchain.channel import SdkChannel

_logger: logging.Logger = get_logger(__name__)

SDK_DIR_ENV_VAR = "CLIPKG_SDK_DIR"
_VERSION_FILENAME = "version"


@dataclass(frozen=True)
class Toolchain:
    """A resolved SDK install plus the commands used to drive it."""

    sdk_dir: Path
    version: str
    channel: SdkChannel
    runtime_executable: str
    aot_runtime_executable: str
    license_path: Path
    snapshot_command: tuple[str, ...]
    native_command: tuple[str, ...]
    archive_url: str

    def bin_path(self, executable: str, host: Platform) -> Path:
        """Path of an SDK executable as installed for the host."""
        return self.sdk_dir / "bin" / f"{executable}{host.binary_extension}"

    def supports_native(self, host: Platform) -> bool:
        """
        Whether this SDK can produce native builds at all.

        32-bit SDKs don't ship the AOT runtime, and without it there's nothing
        to run a native snapshot with.
        """
        return self.bin_path(self.aot_runtime_executable, host).is_file()

    def archive_url_for(self, target: Platform) -> str:
        """URL of the SDK zip for `target` on the remote distribution store."""
        return self.archive_url.format(
            channel=self.channel.value,
            version=self.version,
            platform=str(target),
            os=target.os.value,
            arch=target.arch.value,
        )


def _locate_sdk_dir(config: ToolchainConfig, environ: Mapping[str, str]) -> Path:
    if config.sdk_dir:
        return Path(config.sdk_dir)

    from_env = environ.get(SDK_DIR_ENV_VAR)
    if from_env:
        return Path(from_env)

    on_path = shutil.which(config.runtime_executable)
    if on_path is not None:
        return Path(on_path).resolve().parent.parent

    raise ClipkgError(
        f"Cannot locate the SDK: set toolchain.sdk_dir, ${SDK_DIR_ENV_VAR}, or put "
        f"{config.runtime_executable} on PATH."
    )


def _read_sdk_version(sdk_dir: Path) -> str:
    version_file = sdk_dir / _VERSION_FILENAME
    try:
        version = version_file.read_text(encoding="utf-8").strip()
    except OSError as err:
        raise ClipkgError(
            f"Cannot determine SDK version: {version_file} is unreadable ({err}). "
            f"Set toolchain.version explicitly."
        ) from err
    if not version:
        raise ClipkgError(f"SDK version file {version_file} is empty")
    return version


def resolve_toolchain(
    config: ToolchainConfig, environ: Optional[Mapping[str, str]] = None
) -> Toolchain:
    """
    Turn the toolchain config section into a concrete Toolchain.

    Raises:
        ClipkgError: If the SDK directory or its version can't be determined.
    """
    env = os.environ if environ is None else environ
    sdk_dir = _locate_sdk_dir(config, env)
    version = config.version or _read_sdk_version(sdk_dir)
    channel = SdkChannel(config.channel) if config.channel else SdkChannel.from_version(version)

    toolchain = Toolchain(
        sdk_dir=sdk_dir,
        version=version,
        channel=channel,
        runtime_executable=config.runtime_executable,
        aot_runtime_executable=config.aot_runtime_executable,
        license_path=sdk_dir / config.license_file,
        snapshot_command=tuple(config.snapshot_command),
        native_command=tuple(config.native_command),
        archive_url=config.archive_url,
    )
    _logger.debug(
        "Resolved toolchain",
        extra={"sdk_dir": str(sdk_dir), "version": version, "channel": channel.value},
    )
    return toolchain
