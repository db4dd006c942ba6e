# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Native vs portable: which kind of build each target gets.

Native (ahead-of-time) builds are only possible for the host's own platform,
because the toolchain can't cross-compile machine code, and never for ia32,
which the AOT compiler doesn't support. Everything else ships a portable
snapshot plus a runtime for the target.

A native build may additionally be emitted as one self-contained executable
with no separate runtime. That's limited to an allow-list of operating systems
passed in from config (standalone.self_contained_os).
"""

from dataclasses import dataclass
from typing import Iterable

from clipkg.errors import UnsupportedPlatformError
from clipkg.platforms.enums import OperatingSystem
from clipkg.platforms.triple import Platform, all_platforms

DEFAULT_SELF_CONTAINED_OS: frozenset[OperatingSystem] = frozenset(
    {OperatingSystem.FUCHSIA, OperatingSystem.IOS}
)


def should_build_native(target: Platform, host: Platform) -> bool:
    """True iff `target` is the host and its architecture isn't ia32."""
    return target == host and not target.arch.is_ia32


def should_build_self_contained(
    target: Platform,
    host: Platform,
    allow_list: Iterable[OperatingSystem] = DEFAULT_SELF_CONTAINED_OS,
) -> bool:
    return should_build_native(target, host) and target.os in frozenset(allow_list)


@dataclass(frozen=True)
class CompilationPlan:
    """How one target gets built."""

    target: Platform
    native: bool
    self_contained: bool

    @property
    def artifact_suffix(self) -> str:
        """Suffix of the build/<entrypoint>.* file this target packages."""
        return ".native" if self.native else ".snapshot"


class CompilationStrategist:
    """Makes per-target build decisions against a fixed host."""

    def __init__(
        self,
        host: Platform,
        self_contained_os: Iterable[OperatingSystem] = DEFAULT_SELF_CONTAINED_OS,
    ) -> None:
        self.host = host
        self.self_contained_os = frozenset(self_contained_os)

    def validate_target(self, target: Platform | str) -> Platform:
        """
        Parse and check a target before anything gets compiled.

        Raises:
            UnsupportedPlatformError: If the target isn't in the catalog.
        """
        platform = Platform.parse(target) if isinstance(target, str) else target
        if platform not in all_platforms():
            raise UnsupportedPlatformError(f"Unknown or unsupported platform {platform}!")
        return platform

    def plan(self, target: Platform | str) -> CompilationPlan:
        platform = self.validate_target(target)
        return CompilationPlan(
            target=platform,
            native=should_build_native(platform, self.host),
            self_contained=should_build_self_contained(
                platform, self.host, self.self_contained_os
            ),
        )
