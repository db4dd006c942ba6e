# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Freshness checks for compiled artifacts, plus helpers for running them.

Meant to be called from a package's own test suite: a stale
build/<entrypoint>.snapshot would otherwise make tests pass or fail against
old code. Failures raise StaleArtifactError, an AssertionError, so pytest
reports them as ordinary test failures.

An artifact is stale when any of its inputs has a modification time strictly
later than its own. Inputs are the explicit dependencies, the package's source
directories (`lib` by default), and one implicit file: the lock file, or the
manifest when the package has path dependencies.

Nothing here writes to disk.
"""

import os
import threading
from pathlib import Path
from typing import Iterable, Optional

from clipkg.errors import ClipkgError, StaleArtifactError
from clipkg.package.manifest import PackageInfo, entrypoint_basename
from clipkg.platforms.resolver import current_platform
from clipkg.platforms.triple import Platform
from clipkg.standalone.compiler import SNAPSHOT_SUFFIX
from clipkg.toolchain.sdk import Toolchain
from clipkg.utils.paths import iter_files

DEV_BUILD_COMMAND = "clipkg compile"

# Snapshots already verified in this process.
_checked_executables: set[Path] = set()
_checked_lock = threading.Lock()


def _display_path(path: Path, root: Path) -> str:
    try:
        return os.path.relpath(path, root)
    except ValueError:
        return str(path)


def ensure_up_to_date(
    artifact: Path | str,
    command_to_run: str,
    dependencies: Optional[Iterable[Path | str]] = None,
    *,
    package: PackageInfo,
) -> None:
    """
    Check that `artifact` is newer than everything it's built from.

    Relative paths are resolved against the package root.

    Args:
        artifact: The compiled file to check.
        command_to_run: What the user should run to rebuild; quoted in errors.
        dependencies: Extra files or directories the artifact depends on.
        package: The package the artifact was built from.

    Raises:
        StaleArtifactError: If the artifact is missing or an input is newer.
    """
    root = package.root
    artifact_path = root / artifact
    shown = _display_path(artifact_path, root)
    if not artifact_path.is_file():
        raise StaleArtifactError(f"{shown} does not exist. Run {command_to_run}.")

    inputs = [root / d for d in (dependencies or ())]
    inputs.extend(root / d for d in package.source_directories)
    inputs.append(package.freshness_dependency)

    generated_at = artifact_path.stat().st_mtime_ns
    for dependency in inputs:
        for path in iter_files(dependency):
            if path.stat().st_mtime_ns > generated_at:
                raise StaleArtifactError(
                    f"{_display_path(path, root)} was modified after {shown} was generated.\n"
                    f"Run {command_to_run}."
                )


def _entrypoint_for(executable: str, package: PackageInfo) -> str:
    try:
        return package.executables[executable]
    except KeyError:
        raise ClipkgError(
            f'Unknown executable "{executable}". Known executables: '
            f"{', '.join(sorted(package.executables))}"
        ) from None


def snapshot_path(executable: str, package: PackageInfo, build_dir: Optional[Path] = None) -> Path:
    """Where the dev build puts the snapshot for `executable`."""
    directory = build_dir if build_dir is not None else package.root / "build"
    return directory / f"{entrypoint_basename(_entrypoint_for(executable, package))}{SNAPSHOT_SUFFIX}"


def ensure_executable_up_to_date(
    executable: str,
    *,
    package: PackageInfo,
    build_dir: Optional[Path] = None,
    command_to_run: str = DEV_BUILD_COMMAND,
) -> None:
    """
    Check an executable's dev snapshot once per process.

    A missing snapshot passes: the executable then runs from source. Call this
    from a session fixture to get one failure instead of one per test.
    """
    snapshot = snapshot_path(executable, package, build_dir)
    if not snapshot.is_file():
        return

    with _checked_lock:
        if snapshot in _checked_executables:
            return
        ensure_up_to_date(
            snapshot,
            command_to_run,
            dependencies=[_entrypoint_for(executable, package)],
            package=package,
        )
        # Only cached once it passed, so a stale snapshot fails every caller.
        _checked_executables.add(snapshot)


def clear_executable_cache() -> None:
    with _checked_lock:
        _checked_executables.clear()


def executable_runner(executable: str, *, toolchain: Toolchain, host: Optional[Platform] = None) -> str:
    """The program to launch `executable` with: the SDK's runtime."""
    del executable  # every executable currently runs on the same runtime
    return str(toolchain.bin_path(toolchain.runtime_executable, host or current_platform()))


def executable_args(
    executable: str,
    *,
    package: PackageInfo,
    build_dir: Optional[Path] = None,
) -> list[str]:
    """
    Arguments for executable_runner() that run `executable`.

    The dev snapshot if there is one (after a freshness check), otherwise the
    source entrypoint with the version constant and assertions enabled.

    Raises:
        StaleArtifactError: If the snapshot is out of date.
    """
    ensure_executable_up_to_date(executable, package=package, build_dir=build_dir)

    snapshot = snapshot_path(executable, package, build_dir)
    if snapshot.is_file():
        return [str(snapshot.resolve())]

    return [
        f"-Dversion={package.version}",
        "--enable-asserts",
        str((package.root / _entrypoint_for(executable, package)).resolve()),
    ]
