# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Path utilities.

Everything clipkg reads and writes is relative to the root of the package
being distributed, which is not where clipkg itself is installed.
"""

from pathlib import Path
from typing import Iterator


def ensure_directory(path: Path) -> Path:
    """Create a directory (and parents) if it doesn't exist. Returns the path for chaining."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def iter_files(path: Path) -> Iterator[Path]:
    """
    Yield `path` if it's a file, or every file below it if it's a directory.

    Missing paths yield nothing.
    """
    if path.is_file():
        yield path
    elif path.is_dir():
        for child in sorted(path.rglob("*")):
            if child.is_file():
                yield child
