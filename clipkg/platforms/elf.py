# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Minimal ELF reader: just enough to find a binary's dynamic loader path.

The loader path lives in the `.interp` section. We look it up by name through
the section header table first, and fall back to the PT_INTERP program header
for binaries whose section headers were stripped. Both 32- and 64-bit images
in either byte order are handled.

Anything unexpected (not ELF, truncated, no interpreter) returns None rather
than raising; callers treat that as "default libc".
"""

import struct
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

ELF_MAGIC = b"\x7fELF"
_ELFCLASS32 = 1
_ELFCLASS64 = 2
_ELFDATA2LSB = 1
_ELFDATA2MSB = 2
_PT_INTERP = 3
_INTERP_SECTION = ".interp"

# Upper bound on what we're willing to read for a single string; a loader
# path is never anywhere near this long.
_MAX_INTERP_LENGTH = 4096


@dataclass(frozen=True)
class _Header:
    is_64: bool
    endian: str
    phoff: int
    shoff: int
    phentsize: int
    phnum: int
    shentsize: int
    shnum: int
    shstrndx: int


def _read_at(f: BinaryIO, offset: int, size: int) -> bytes:
    f.seek(offset)
    data = f.read(size)
    if len(data) != size:
        raise struct.error(f"short read at offset {offset}")
    return data


def _parse_header(f: BinaryIO) -> Optional[_Header]:
    ident = f.read(16)
    if len(ident) < 16 or ident[:4] != ELF_MAGIC:
        return None

    ei_class, ei_data = ident[4], ident[5]
    if ei_class not in (_ELFCLASS32, _ELFCLASS64) or ei_data not in (_ELFDATA2LSB, _ELFDATA2MSB):
        return None

    is_64 = ei_class == _ELFCLASS64
    endian = "<" if ei_data == _ELFDATA2LSB else ">"

    if is_64:
        # e_type .. e_shstrndx, starting right after e_ident
        fields = struct.unpack(endian + "HHIQQQIHHHHHH", _read_at(f, 16, 48))
    else:
        fields = struct.unpack(endian + "HHIIIIIHHHHHH", _read_at(f, 16, 36))

    (_, _, _, _, phoff, shoff, _, _, phentsize, phnum, shentsize, shnum, shstrndx) = fields
    return _Header(is_64, endian, phoff, shoff, phentsize, phnum, shentsize, shnum, shstrndx)


def _section(f: BinaryIO, header: _Header, index: int) -> tuple[int, int, int]:
    """Return (sh_name, sh_offset, sh_size) for section `index`."""
    base = header.shoff + index * header.shentsize
    if header.is_64:
        name, _, _, _, offset, size = struct.unpack(header.endian + "IIQQQQ", _read_at(f, base, 40))
    else:
        name, _, _, _, offset, size = struct.unpack(header.endian + "IIIIII", _read_at(f, base, 24))
    return name, offset, size


def _read_cstring(f: BinaryIO, offset: int, max_length: int) -> str:
    f.seek(offset)
    raw = f.read(min(max_length, _MAX_INTERP_LENGTH))
    end = raw.find(b"\x00")
    if end >= 0:
        raw = raw[:end]
    return raw.decode("utf-8", errors="replace")


def _interp_from_sections(f: BinaryIO, header: _Header) -> Optional[str]:
    if header.shoff == 0 or header.shnum == 0 or header.shstrndx >= header.shnum:
        return None

    _, strtab_offset, strtab_size = _section(f, header, header.shstrndx)
    names = _read_at(f, strtab_offset, strtab_size)

    for index in range(header.shnum):
        name_offset, offset, size = _section(f, header, index)
        end = names.find(b"\x00", name_offset)
        name = names[name_offset:end if end >= 0 else None]
        if name == _INTERP_SECTION.encode("ascii") and size > 0:
            return _read_cstring(f, offset, size)
    return None


def _interp_from_segments(f: BinaryIO, header: _Header) -> Optional[str]:
    for index in range(header.phnum):
        base = header.phoff + index * header.phentsize
        if header.is_64:
            p_type, _, offset, _, _, filesz = struct.unpack(
                header.endian + "IIQQQQ", _read_at(f, base, 40)
            )
        else:
            p_type, offset, _, _, filesz = struct.unpack(
                header.endian + "IIIII", _read_at(f, base, 20)
            )
        if p_type == _PT_INTERP and filesz > 0:
            return _read_cstring(f, offset, filesz)
    return None


def read_interpreter(path: Path) -> Optional[str]:
    """
    Return the dynamic loader path recorded in an ELF binary, or None.

    Args:
        path: Path to the binary to inspect.

    Returns:
        Loader path such as "/lib/ld-musl-x86_64.so.1", or None when the file
        isn't a readable ELF image or is statically linked.
    """
    try:
        with open(path, "rb") as f:
            header = _parse_header(f)
            if header is None:
                return None
            interp = _interp_from_sections(f, header)
            if interp is None:
                interp = _interp_from_segments(f, header)
            return interp or None
    except (OSError, struct.error):
        return None
