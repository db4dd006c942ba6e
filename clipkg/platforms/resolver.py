# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Host platform resolution.

Works out which Platform the running process is. That isn't necessarily the
platform of the underlying machine: a 32-bit interpreter on a 64-bit OS
resolves to the 32-bit architecture, and the libc variant is whatever the
running executable was linked against.

On Linux the libc variant comes from the running executable's ELF `.interp`
section: a loader whose basename starts with `ld-musl-` means musl. That
check sits behind `detect_libc_variant` so tests can swap it out without a
real musl binary.

The resolved host is memoized per resolver. The module-level resolver backs
`current_platform()` and is initialized lazily under a lock.
"""

import logging
import platform as _stdlib_platform
import struct
import sys
import threading
from pathlib import Path, PurePosixPath
from typing import Callable, Optional

from clipkg.errors import UnsupportedPlatformError
from clipkg.logging.logger import get_logger
from clipkg.platforms.elf import read_interpreter
from clipkg.platforms.enums import Architecture, Libc, OperatingSystem
from clipkg.platforms.triple import Platform

_logger: logging.Logger = get_logger(__name__)

MUSL_LOADER_PREFIX = "ld-musl-"

LibcDetector = Callable[[Path], Optional[Libc]]

# sys.platform prefixes → OperatingSystem
_SYS_PLATFORM_PREFIXES: tuple[tuple[str, OperatingSystem], ...] = (
    ("linux", OperatingSystem.LINUX),
    ("darwin", OperatingSystem.MACOS),
    ("win32", OperatingSystem.WINDOWS),
    ("cygwin", OperatingSystem.WINDOWS),
    ("android", OperatingSystem.ANDROID),
    ("ios", OperatingSystem.IOS),
    ("fuchsia", OperatingSystem.FUCHSIA),
)

# platform.machine() spellings → Architecture
_MACHINE_ALIASES: dict[str, Architecture] = {
    "x86_64": Architecture.X64,
    "amd64": Architecture.X64,
    "x64": Architecture.X64,
    "i386": Architecture.IA32,
    "i486": Architecture.IA32,
    "i586": Architecture.IA32,
    "i686": Architecture.IA32,
    "x86": Architecture.IA32,
    "aarch64": Architecture.ARM64,
    "arm64": Architecture.ARM64,
    "armv7l": Architecture.ARM,
    "armv7": Architecture.ARM,
    "armv6l": Architecture.ARM,
    "arm": Architecture.ARM,
    "riscv64": Architecture.RISCV64,
    "riscv32": Architecture.RISCV32,
}

# What a 64-bit machine looks like to a 32-bit process running on it.
_NARROWED_ARCH: dict[Architecture, Architecture] = {
    Architecture.X64: Architecture.IA32,
    Architecture.ARM64: Architecture.ARM,
    Architecture.RISCV64: Architecture.RISCV32,
}


def detect_libc_variant(executable_path: Path) -> Optional[Libc]:
    """
    Return Libc.MUSL if `executable_path` is loaded by the musl dynamic loader.

    Returns None (the default libc) when the binary has no `.interp` section,
    isn't ELF, or can't be read.
    """
    interp = read_interpreter(executable_path)
    if interp is None:
        return None
    if PurePosixPath(interp).name.startswith(MUSL_LOADER_PREFIX):
        return Libc.MUSL
    return None


def parse_operating_system(sys_platform: str) -> OperatingSystem:
    for prefix, os_ in _SYS_PLATFORM_PREFIXES:
        if sys_platform.startswith(prefix):
            return os_
    raise UnsupportedPlatformError(f'Unrecognized host operating system "{sys_platform}"')


def parse_architecture(machine: str, pointer_bits: int = 64) -> Architecture:
    arch = _MACHINE_ALIASES.get(machine.lower())
    if arch is None:
        raise UnsupportedPlatformError(f'Unrecognized host architecture "{machine}"')
    if pointer_bits == 32:
        return _NARROWED_ARCH.get(arch, arch)
    return arch


class PlatformResolver:
    """
    Resolves and memoizes the host Platform.

    Every input defaults to the running process; tests pass explicit values
    and a stub libc detector.
    """

    def __init__(
        self,
        *,
        sys_platform: Optional[str] = None,
        machine: Optional[str] = None,
        pointer_bits: Optional[int] = None,
        executable: Optional[Path] = None,
        libc_detector: LibcDetector = detect_libc_variant,
    ) -> None:
        self._sys_platform = sys_platform
        self._machine = machine
        self._pointer_bits = pointer_bits
        self._executable = executable
        self._libc_detector = libc_detector
        self._lock = threading.Lock()
        self._current: Optional[Platform] = None

    def resolve(self) -> Platform:
        """Compute the host platform without consulting the memo."""
        os_ = parse_operating_system(self._sys_platform or sys.platform)
        pointer_bits = self._pointer_bits or struct.calcsize("P") * 8
        arch = parse_architecture(self._machine or _stdlib_platform.machine(), pointer_bits)

        libc: Optional[Libc] = None
        if os_.is_linux:
            executable = self._executable or Path(sys.executable).resolve()
            libc = self._libc_detector(executable)

        host = Platform(os_, arch, libc)
        _logger.debug(
            "Resolved host platform",
            extra={"platform": str(host), "human": host.to_human_string()},
        )
        return host

    def current(self) -> Platform:
        """The host platform, computed on first use and cached afterwards."""
        if self._current is None:
            with self._lock:
                if self._current is None:
                    self._current = self.resolve()
        return self._current


_default_resolver = PlatformResolver()


def current_platform() -> Platform:
    """The platform of the running process, resolved once per process."""
    return _default_resolver.current()
