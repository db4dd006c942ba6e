# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for host platform resolution and libc detection.

ELF images are built by hand with struct: just a header, a `.interp` string,
a PT_INTERP program header and (optionally) section headers.
"""

import struct
from pathlib import Path
from typing import Optional

import pytest

from clipkg.errors import UnsupportedPlatformError
from clipkg.platforms.elf import read_interpreter
from clipkg.platforms.enums import Libc
from clipkg.platforms.resolver import (
    PlatformResolver,
    detect_libc_variant,
    parse_architecture,
    parse_operating_system,
)
from clipkg.platforms.triple import Platform

MUSL_LOADER = b"/lib/ld-musl-x86_64.so.1"
GLIBC_LOADER = b"/lib64/ld-linux-x86-64.so.2"


def _build_elf64(interp: bytes, *, sections: bool = True, segments: bool = True) -> bytes:
    interp_data = interp + b"\x00"
    shstrtab = b"\x00.interp\x00.shstrtab\x00"

    interp_off = 64
    phoff = interp_off + len(interp_data)
    phnum = 1 if segments else 0
    shstrtab_off = phoff + 56 * phnum
    shoff = shstrtab_off + len(shstrtab)
    shnum = 3 if sections else 0

    ident = b"\x7fELF" + bytes([2, 1, 1]) + b"\x00" * 9
    header = ident + struct.pack(
        "<HHIQQQIHHHHHH",
        2, 62, 1, 0,
        phoff if segments else 0,
        shoff if sections else 0,
        0, 64, 56, phnum, 64, shnum,
        2 if sections else 0,
    )

    body = interp_data
    if segments:
        body += struct.pack("<IIQQQQQQ", 3, 4, interp_off, 0, 0, len(interp_data), len(interp_data), 1)
    body += shstrtab
    if sections:
        body += struct.pack("<IIQQQQIIQQ", 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)
        body += struct.pack("<IIQQQQIIQQ", 1, 1, 2, 0, interp_off, len(interp_data), 0, 0, 1, 0)
        body += struct.pack("<IIQQQQIIQQ", 9, 3, 0, 0, shstrtab_off, len(shstrtab), 0, 0, 1, 0)
    return header + body


class TestElf:
    def test_reads_interp_section(self, tmp_path: Path) -> None:
        binary = tmp_path / "musl"
        binary.write_bytes(_build_elf64(MUSL_LOADER, segments=False))
        assert read_interpreter(binary) == MUSL_LOADER.decode()

    def test_falls_back_to_program_header(self, tmp_path: Path) -> None:
        binary = tmp_path / "stripped"
        binary.write_bytes(_build_elf64(MUSL_LOADER, sections=False))
        assert read_interpreter(binary) == MUSL_LOADER.decode()

    def test_non_elf_returns_none(self, tmp_path: Path) -> None:
        script = tmp_path / "script.sh"
        script.write_text("#!/bin/sh\necho hi\n", encoding="utf-8")
        assert read_interpreter(script) is None

    def test_truncated_elf_returns_none(self, tmp_path: Path) -> None:
        binary = tmp_path / "truncated"
        binary.write_bytes(_build_elf64(MUSL_LOADER)[:40])
        assert read_interpreter(binary) is None

    def test_missing_file_returns_none(self, tmp_path: Path) -> None:
        assert read_interpreter(tmp_path / "nope") is None


class TestLibcDetection:
    def test_musl_loader_is_detected(self, tmp_path: Path) -> None:
        binary = tmp_path / "musl"
        binary.write_bytes(_build_elf64(MUSL_LOADER))
        assert detect_libc_variant(binary) is Libc.MUSL

    def test_glibc_loader_is_default(self, tmp_path: Path) -> None:
        binary = tmp_path / "glibc"
        binary.write_bytes(_build_elf64(GLIBC_LOADER))
        assert detect_libc_variant(binary) is None

    def test_unreadable_binary_is_default(self, tmp_path: Path) -> None:
        assert detect_libc_variant(tmp_path / "missing") is None


class TestParsing:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("linux", "linux"), ("darwin", "macos"), ("win32", "windows"), ("cygwin", "windows")],
    )
    def test_operating_systems(self, value: str, expected: str) -> None:
        assert parse_operating_system(value).value == expected

    def test_unknown_operating_system(self) -> None:
        with pytest.raises(UnsupportedPlatformError):
            parse_operating_system("sunos5")

    def test_32_bit_process_narrows_architecture(self) -> None:
        assert parse_architecture("x86_64", pointer_bits=32).value == "ia32"
        assert parse_architecture("aarch64", pointer_bits=32).value == "arm"
        assert parse_architecture("AMD64").value == "x64"

    def test_unknown_architecture(self) -> None:
        with pytest.raises(UnsupportedPlatformError):
            parse_architecture("sparc64")


class TestPlatformResolver:
    def test_musl_linux_host(self) -> None:
        resolver = PlatformResolver(
            sys_platform="linux",
            machine="x86_64",
            pointer_bits=64,
            executable=Path("/usr/bin/python3"),
            libc_detector=lambda _path: Libc.MUSL,
        )
        assert resolver.resolve() == Platform.parse("linux-x64-musl")

    def test_libc_is_only_detected_on_linux(self) -> None:
        calls: list[Path] = []

        def detector(path: Path) -> Optional[Libc]:
            calls.append(path)
            return Libc.MUSL

        resolver = PlatformResolver(
            sys_platform="darwin", machine="arm64", pointer_bits=64, libc_detector=detector
        )
        assert resolver.resolve() == Platform.parse("macos-arm64")
        assert calls == []

    def test_32_bit_windows_process(self) -> None:
        resolver = PlatformResolver(sys_platform="win32", machine="AMD64", pointer_bits=32)
        assert resolver.resolve() == Platform.parse("windows-ia32")

    def test_current_is_memoized(self) -> None:
        calls: list[Path] = []

        def detector(path: Path) -> Optional[Libc]:
            calls.append(path)
            return None

        resolver = PlatformResolver(
            sys_platform="linux",
            machine="aarch64",
            pointer_bits=64,
            executable=Path("/bin/python"),
            libc_detector=detector,
        )
        first = resolver.current()
        second = resolver.current()
        assert first is second
        assert first == Platform.parse("linux-arm64")
        assert len(calls) == 1
