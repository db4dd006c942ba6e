# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Atomic file writes for build outputs.

Archives are write-once: a rebuild replaces the whole file, it never patches
one in place. Writing to a temp file in the same directory and renaming it
over the target gives exactly that. Rename within one filesystem is atomic,
so a reader sees either the old archive or the new one, never a truncated mix.
"""

import os
import tempfile
from pathlib import Path

_TEMP_PREFIX = ".clipkg_tmp_"


def atomic_write_bytes(target_path: Path, data: bytes, mode: int = 0o644) -> None:
    """
    Write binary data to a file atomically.

    Args:
        target_path: Where the final file should end up.
        data: The raw bytes to write.
        mode: Permission bits for the final file.

    Raises:
        OSError: If the write or rename fails. The target is untouched then.
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd = tempfile.NamedTemporaryFile(
        mode="wb",
        dir=str(target_path.parent),
        prefix=_TEMP_PREFIX,
        suffix=".tmp",
        delete=False,
    )
    temp_path = Path(temp_fd.name)

    try:
        temp_fd.write(data)
        temp_fd.flush()
        temp_fd.close()
        os.chmod(temp_path, mode)
        # replace() rather than rename(): Windows refuses to rename over an existing file.
        temp_path.replace(target_path)
    except BaseException:
        temp_fd.close()
        if temp_path.exists():
            temp_path.unlink()
        raise
