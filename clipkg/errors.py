# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Error taxonomy for the packaging core.

Every failure the build pipeline can raise lives here so that the CLI and any
external tooling (uploaders, test harnesses) can catch them without importing
the machinery that raises them. None of these are ever downgraded to warnings.
"""


class ClipkgError(Exception):
    """Base for all packaging errors."""


class UnsupportedPlatformError(ClipkgError, ValueError):
    """
    Raised for a triple outside the platform catalog, or for an unknown
    OS/architecture/libc token. Never retried.
    """


class DownloadError(ClipkgError):
    """Raised when the remote SDK archive can't be fetched or isn't a usable zip."""


class MissingToolchainCapabilityError(ClipkgError):
    """Raised when native compilation is requested but the local SDK can't do it."""


class CompilationError(ClipkgError):
    """Raised when a compiler invocation exits with a non-zero status."""


class StaleArtifactError(ClipkgError, AssertionError):
    """
    Raised when a build artifact is missing or older than one of its inputs.

    Subclasses AssertionError so test runners report it as a test failure
    rather than an error in the harness.
    """


class StandaloneBuildError(ClipkgError):
    """
    Aggregate failure for a multi-target build.

    Carries every per-target failure. Archives for targets that succeeded are
    left on disk.
    """

    def __init__(self, failures: dict[str, BaseException]) -> None:
        self.failures = dict(failures)
        summary = "; ".join(f"{name}: {err}" for name, err in sorted(self.failures.items()))
        super().__init__(f"{len(self.failures)} target(s) failed to build: {summary}")


class ManifestError(ClipkgError):
    """Raised when the package manifest is missing, unparseable, or incomplete."""
