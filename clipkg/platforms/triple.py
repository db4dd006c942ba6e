# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Platform triples and the catalog of triples we can build archives for.

A Platform is (operating system, architecture, libc variant). The catalog is
derived from the (os, arch) pairs the runtime toolchain ships, minus the pairs
we know there's no distribution for, plus a musl duplicate of every Linux pair.

The exclusions live in data (UNSUPPORTED_ABIS, _OS_WITHOUT_DISTRIBUTION) rather
than in the construction logic so they can change without touching anything
else.
"""

from dataclasses import dataclass
from typing import Optional

from clipkg.errors import UnsupportedPlatformError
from clipkg.platforms.enums import Architecture, Libc, OperatingSystem

_OS = OperatingSystem
_ARCH = Architecture

# Every (os, arch) pair the runtime toolchain knows how to target.
KNOWN_ABIS: frozenset[tuple[OperatingSystem, Architecture]] = frozenset(
    {
        (_OS.ANDROID, _ARCH.ARM),
        (_OS.ANDROID, _ARCH.ARM64),
        (_OS.ANDROID, _ARCH.IA32),
        (_OS.ANDROID, _ARCH.X64),
        (_OS.ANDROID, _ARCH.RISCV64),
        (_OS.FUCHSIA, _ARCH.ARM64),
        (_OS.FUCHSIA, _ARCH.X64),
        (_OS.FUCHSIA, _ARCH.RISCV64),
        (_OS.IOS, _ARCH.ARM),
        (_OS.IOS, _ARCH.ARM64),
        (_OS.IOS, _ARCH.X64),
        (_OS.LINUX, _ARCH.ARM),
        (_OS.LINUX, _ARCH.ARM64),
        (_OS.LINUX, _ARCH.IA32),
        (_OS.LINUX, _ARCH.X64),
        (_OS.LINUX, _ARCH.RISCV32),
        (_OS.LINUX, _ARCH.RISCV64),
        (_OS.MACOS, _ARCH.ARM64),
        (_OS.MACOS, _ARCH.X64),
        (_OS.WINDOWS, _ARCH.ARM64),
        (_OS.WINDOWS, _ARCH.IA32),
        (_OS.WINDOWS, _ARCH.X64),
    }
)

# Known to the toolchain but still experimental; no SDK builds are published.
UNSUPPORTED_ABIS: frozenset[tuple[OperatingSystem, Architecture]] = frozenset(
    {(_OS.LINUX, _ARCH.RISCV32)}
)

# No SDK distribution exists for these, whatever the architecture.
_OS_WITHOUT_DISTRIBUTION: frozenset[OperatingSystem] = frozenset({_OS.IOS})

SUPPORTED_ABIS: frozenset[tuple[OperatingSystem, Architecture]] = frozenset(
    abi
    for abi in KNOWN_ABIS
    if abi not in UNSUPPORTED_ABIS and abi[0] not in _OS_WITHOUT_DISTRIBUTION
)


@dataclass(frozen=True)
class Platform:
    """
    A build target: operating system, CPU architecture, and libc variant.

    `libc` is None for the default C library. glibc is normalized to None so
    that `Platform(LINUX, X64)` and `Platform(LINUX, X64, Libc.GLIBC)` are the
    same triple. Any libc on a non-Linux OS is rejected.
    """

    os: OperatingSystem
    arch: Architecture
    libc: Optional[Libc] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "os", OperatingSystem.parse(self.os))
        object.__setattr__(self, "arch", Architecture.parse(self.arch))
        if self.libc is not None:
            object.__setattr__(self, "libc", Libc.parse(self.libc))
        if self.libc is not None and not self.os.is_linux:
            raise UnsupportedPlatformError(
                f"{self.libc} libc only applies to Linux, not {self.os.to_human_string()}."
            )
        if (self.os, self.arch) not in SUPPORTED_ABIS:
            raise UnsupportedPlatformError(
                f"Unknown or unsupported platform {self.os}-{self.arch}!"
            )
        if self.libc is Libc.GLIBC:
            object.__setattr__(self, "libc", None)

    @classmethod
    def parse(cls, value: str) -> "Platform":
        """
        Parse `<os>-<arch>` or `<os>-<arch>-<libc>`, the inverse of str().

        Raises:
            UnsupportedPlatformError: For malformed strings, unknown tokens or
                combinations outside the catalog.
        """
        parts = value.strip().split("-")
        if len(parts) not in (2, 3):
            raise UnsupportedPlatformError(
                f'Invalid platform "{value}": expected "<os>-<arch>" or "<os>-<arch>-<libc>"'
            )
        os_ = OperatingSystem.parse(parts[0])
        arch = Architecture.parse(parts[1])
        libc = Libc.parse(parts[2]) if len(parts) == 3 else None
        return cls(os_, arch, libc)

    @property
    def is_musl(self) -> bool:
        return self.libc is Libc.MUSL

    @property
    def binary_extension(self) -> str:
        """Extension for executables on this platform."""
        return ".exe" if self.os.is_windows else ""

    @property
    def archive_extension(self) -> str:
        """Extension for the archive built for this platform."""
        return ".zip" if self.os.is_windows else ".tar.gz"

    def to_human_string(self) -> str:
        suffix = " with musl libc" if self.is_musl else ""
        return f"{self.os.to_human_string()} {self.arch}{suffix}"

    def __str__(self) -> str:
        suffix = "-musl" if self.is_musl else ""
        return f"{self.os}-{self.arch}{suffix}"


def _build_catalog() -> frozenset[Platform]:
    platforms: set[Platform] = set()
    for os_, arch in SUPPORTED_ABIS:
        platforms.add(Platform(os_, arch))
        if os_.is_linux:
            platforms.add(Platform(os_, arch, Libc.MUSL))
    return frozenset(platforms)


_ALL_PLATFORMS: frozenset[Platform] = _build_catalog()


def all_platforms() -> frozenset[Platform]:
    """Every platform we can build a standalone archive for."""
    return _ALL_PLATFORMS


def sorted_platforms(platforms: frozenset[Platform] | set[Platform]) -> list[Platform]:
    """Platforms in a stable order (by their string form), for logs and CLI output."""
    return sorted(platforms, key=str)
