# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
SHA256 helpers. Every archive we write is logged with its digest so a
consumer (uploader, release notes) can cross-check what it picked up.
"""

import hashlib


def compute_sha256_bytes(data: bytes) -> str:
    """Compute the SHA256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()
