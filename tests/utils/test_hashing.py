# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for SHA256 helpers.
"""

import hashlib

from clipkg.utils.hashing import compute_sha256_bytes


class TestSha256:
    def test_matches_hashlib(self) -> None:
        data = b"standalone archive" * 10_000
        assert compute_sha256_bytes(data) == hashlib.sha256(data).hexdigest()

    def test_empty_input(self) -> None:
        assert compute_sha256_bytes(b"") == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_is_deterministic(self) -> None:
        assert compute_sha256_bytes(b"demo") == compute_sha256_bytes(b"demo")
