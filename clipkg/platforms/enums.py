# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Closed enumerations for the three axes of a build target.

Each enum has a single `parse` classmethod that maps the string token used in
archive names, URLs and config files to a member, and fails loudly on anything
it doesn't recognize.
"""

from enum import Enum

from clipkg.errors import UnsupportedPlatformError


class OperatingSystem(str, Enum):
    """Every operating system the runtime toolchain knows about."""

    ANDROID = "android"
    FUCHSIA = "fuchsia"
    IOS = "ios"
    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"

    @classmethod
    def parse(cls, name: str) -> "OperatingSystem":
        try:
            return cls(name)
        except ValueError:
            raise UnsupportedPlatformError(f'Unknown operating system "{name}"') from None

    @property
    def is_linux(self) -> bool:
        return self is OperatingSystem.LINUX

    @property
    def is_windows(self) -> bool:
        return self is OperatingSystem.WINDOWS

    def to_human_string(self) -> str:
        if self is OperatingSystem.IOS:
            return "iOS"
        if self is OperatingSystem.MACOS:
            return "macOS"
        return self.value.capitalize()

    def __str__(self) -> str:
        return self.value


class Architecture(str, Enum):
    """Every CPU architecture the runtime toolchain knows about."""

    ARM = "arm"
    ARM64 = "arm64"
    IA32 = "ia32"
    X64 = "x64"
    RISCV32 = "riscv32"
    RISCV64 = "riscv64"

    @classmethod
    def parse(cls, name: str) -> "Architecture":
        try:
            return cls(name)
        except ValueError:
            raise UnsupportedPlatformError(f'Unknown architecture "{name}"') from None

    @property
    def is_ia32(self) -> bool:
        """Legacy 32-bit x86, which the AOT compiler doesn't support."""
        return self is Architecture.IA32

    @property
    def is_32_bit(self) -> bool:
        return self in (Architecture.ARM, Architecture.IA32, Architecture.RISCV32)

    def __str__(self) -> str:
        return self.value


class Libc(str, Enum):
    """C library variant. Only meaningful on Linux."""

    GLIBC = "glibc"
    MUSL = "musl"

    @classmethod
    def parse(cls, name: str) -> "Libc":
        try:
            return cls(name)
        except ValueError:
            raise UnsupportedPlatformError(f'Unknown libc variant "{name}"') from None

    def __str__(self) -> str:
        return self.value
