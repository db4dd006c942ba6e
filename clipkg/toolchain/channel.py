# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
SDK release channels.

The remote SDK archive is laid out by channel, so the fetcher has to know
which one a version belongs to. A version without a pre-release tag is
stable; otherwise the pre-release identifiers say which channel it came from
(e.g. "3.6.0-216.1.beta", "3.7.0-12.0.dev").
"""

import re
from enum import Enum

from clipkg.errors import ClipkgError

_VERSION_RE: re.Pattern[str] = re.compile(
    r"^(?P<release>\d+\.\d+\.\d+)(?:-(?P<pre>[0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$"
)


class SdkChannel(str, Enum):
    STABLE = "stable"
    BETA = "beta"
    DEV = "dev"

    @classmethod
    def from_version(cls, version: str) -> "SdkChannel":
        """
        Work out the channel from an exact SDK version string.

        Raises:
            ClipkgError: If the version isn't semver or its pre-release tag
                doesn't name a channel.
        """
        match = _VERSION_RE.match(version.strip())
        if match is None:
            raise ClipkgError(f"Unrecognized SDK version {version!r}")

        pre = match.group("pre")
        if pre is None:
            return cls.STABLE

        identifiers = pre.split(".")
        if "beta" in identifiers:
            return cls.BETA
        if "dev" in identifiers:
            return cls.DEV
        raise ClipkgError(f"Unrecognized SDK version {version!r}: unknown pre-release channel")

    def __str__(self) -> str:
        return self.value
