# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Standalone archive assembly.

An archive is built fully in memory as an ordered list of entries, then
encoded as a zip (Windows targets) or a gzip-compressed tar (everything else).
That mapping is fixed; it isn't a config option.

Layout, for standalone name `app` and executables `app` and `app-dev` that
share one entrypoint:

    app/
    ├─ app                     launcher (app.bat on Windows)
    ├─ app-dev                 launcher
    └─ src/
       ├─ dart                 runtime binary (dart.exe on Windows)
       ├─ RUNTIME_LICENSE      SDK license
       ├─ LICENSE              package license, if the package has one
       └─ app.snapshot         compiled entrypoint (native or portable)

Self-contained targets skip the runtime and the launchers; the native binary
itself sits at `app/<executable><ext>`.

Executables get mode 0o755 and everything else 0o644. Encoding the same
entries twice gives identical bytes when the same mtime is passed.
"""

import gzip
import io
import logging
import tarfile
import time
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from clipkg.logging.logger import get_logger
from clipkg.package.manifest import PackageInfo, entrypoint_basename
from clipkg.platforms.triple import Platform
from clipkg.standalone.compiler import NATIVE_SUFFIX, SNAPSHOT_SUFFIX, environment_defines
from clipkg.standalone.launchers import launcher_filename, render_launcher
from clipkg.standalone.strategy import CompilationPlan
from clipkg.toolchain.sdk import Toolchain
from clipkg.utils.filesystem import atomic_write_bytes
from clipkg.utils.hashing import compute_sha256_bytes

_logger: logging.Logger = get_logger(__name__)

EXECUTABLE_MODE = 0o755
FILE_MODE = 0o644

RUNTIME_LICENSE_NAME = "RUNTIME_LICENSE"
PACKAGE_LICENSE_NAME = "LICENSE"

# Zip timestamps can't predate 1980-01-01.
_ZIP_EPOCH = 315532800


@dataclass(frozen=True)
class ArchiveEntry:
    path: str
    data: bytes
    executable: bool = False

    @property
    def mode(self) -> int:
        return EXECUTABLE_MODE if self.executable else FILE_MODE


class Archive:
    """Ordered in-memory archive contents."""

    def __init__(self) -> None:
        self._entries: list[ArchiveEntry] = []
        self._paths: set[str] = set()

    @property
    def entries(self) -> tuple[ArchiveEntry, ...]:
        return tuple(self._entries)

    def add_bytes(self, path: str, data: bytes, executable: bool = False) -> None:
        if path in self._paths:
            raise ValueError(f"Duplicate archive entry: {path}")
        self._paths.add(path)
        self._entries.append(ArchiveEntry(path, data, executable))

    def add_text(self, path: str, text: str, executable: bool = False) -> None:
        self.add_bytes(path, text.encode("utf-8"), executable)

    def add_file(self, path: str, source: Path, executable: bool = False) -> None:
        self.add_bytes(path, source.read_bytes(), executable)

    def to_zip(self, mtime: int) -> bytes:
        date_time = time.gmtime(max(mtime, _ZIP_EPOCH))[:6]
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for entry in self._entries:
                info = zipfile.ZipInfo(entry.path, date_time=date_time)
                info.compress_type = zipfile.ZIP_DEFLATED
                # Unix permission bits live in the high 16 bits.
                info.create_system = 3
                info.external_attr = (0o100000 | entry.mode) << 16
                zf.writestr(info, entry.data)
        return buffer.getvalue()

    def to_tar_gz(self, mtime: int) -> bytes:
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w", format=tarfile.PAX_FORMAT) as tar:
            for entry in self._entries:
                info = tarfile.TarInfo(entry.path)
                info.size = len(entry.data)
                info.mode = entry.mode
                info.mtime = mtime
                info.type = tarfile.REGTYPE
                tar.addfile(info, io.BytesIO(entry.data))
        return gzip.compress(buffer.getvalue(), mtime=mtime)

    def encode(self, target: Platform, mtime: Optional[int] = None) -> bytes:
        """Zip for Windows, tar.gz for everything else."""
        stamp = int(time.time()) if mtime is None else mtime
        if target.os.is_windows:
            return self.to_zip(stamp)
        return self.to_tar_gz(stamp)


def assemble_archive(
    plan: CompilationPlan,
    *,
    name: str,
    version: str,
    runtime_name: str,
    runtime_binary: Optional[bytes],
    artifacts: Mapping[str, bytes],
    executables: Mapping[str, str],
    license_files: Mapping[str, bytes],
    environment_constants: Optional[Mapping[str, str]] = None,
) -> Archive:
    """
    Lay out a standalone archive in memory.

    Args:
        plan: The target and its native/portable decision.
        name: Standalone package name; the archive's root directory.
        version: Package version, passed by launchers on the portable path.
        runtime_name: File name of the runtime inside src/, with extension.
        runtime_binary: Runtime bytes. Ignored for self-contained targets.
        artifacts: Entrypoint basename -> compiled bytes.
        executables: Executable name -> entrypoint basename.
        license_files: File name inside src/ -> contents.
        environment_constants: Extra -D constants for portable launchers.
    """
    target = plan.target
    archive = Archive()

    if not plan.self_contained:
        if runtime_binary is None:
            raise ValueError(f"A runtime binary is required for {target}")
        archive.add_bytes(f"{name}/src/{runtime_name}", runtime_binary, executable=True)

    for license_name, data in license_files.items():
        archive.add_bytes(f"{name}/src/{license_name}", data)

    if plan.self_contained:
        for executable, basename in executables.items():
            archive.add_bytes(
                f"{name}/{executable}{target.binary_extension}",
                artifacts[basename],
                executable=True,
            )
        return archive

    for basename in sorted(set(executables.values())):
        archive.add_bytes(f"{name}/src/{basename}.snapshot", artifacts[basename])

    # Native builds have the version compiled in.
    defines = [] if plan.native else environment_defines(version, dict(environment_constants or {}))
    for executable, basename in executables.items():
        archive.add_text(
            f"{name}/{launcher_filename(executable, target)}",
            render_launcher(
                target,
                name=name,
                executable=basename,
                runtime=runtime_name,
                defines=defines,
            ),
            executable=True,
        )
    return archive


@dataclass(frozen=True)
class ArchiveResult:
    target: str
    path: Path
    sha256: str
    native: bool
    entry_count: int


class StandaloneAssembler:
    """Builds and writes the archive for a target from the files in build/."""

    def __init__(
        self,
        package: PackageInfo,
        toolchain: Toolchain,
        build_dir: Path,
        mtime: Optional[int] = None,
    ) -> None:
        self.package = package
        self.toolchain = toolchain
        self.build_dir = build_dir
        self.mtime = mtime

    def archive_path(self, target: Platform) -> Path:
        return self.build_dir / (
            f"{self.package.standalone_name}-{self.package.version}-{target}"
            f"{target.archive_extension}"
        )

    def _license_files(self) -> dict[str, bytes]:
        licenses = {RUNTIME_LICENSE_NAME: self.toolchain.license_path.read_bytes()}
        if self.package.license_path is not None:
            licenses[PACKAGE_LICENSE_NAME] = self.package.license_path.read_bytes()
        return licenses

    def _artifacts(self, plan: CompilationPlan) -> dict[str, bytes]:
        suffix = NATIVE_SUFFIX if plan.native else SNAPSHOT_SUFFIX
        artifacts: dict[str, bytes] = {}
        for entrypoint in self.package.entrypoints:
            basename = entrypoint_basename(entrypoint)
            artifacts[basename] = (self.build_dir / f"{basename}{suffix}").read_bytes()
        return artifacts

    def build_archive(self, plan: CompilationPlan, runtime_binary: Optional[bytes]) -> bytes:
        """
        Encode the archive for `plan.target`.

        Raises:
            FileNotFoundError: If a compiled artifact or license is missing.
        """
        archive = assemble_archive(
            plan,
            name=self.package.standalone_name,
            version=self.package.version,
            runtime_name=f"{self.toolchain.runtime_executable}{plan.target.binary_extension}",
            runtime_binary=runtime_binary,
            artifacts=self._artifacts(plan),
            executables={
                executable: entrypoint_basename(entrypoint)
                for executable, entrypoint in self.package.executables.items()
            },
            license_files=self._license_files(),
            environment_constants=self.package.environment_constants,
        )
        return archive.encode(plan.target, self.mtime)

    def write_archive(self, plan: CompilationPlan, runtime_binary: Optional[bytes]) -> ArchiveResult:
        """Build the archive and atomically replace build/<archive name>."""
        data = self.build_archive(plan, runtime_binary)
        output = self.archive_path(plan.target)
        _logger.info("Creating archive", extra={"target": str(plan.target), "path": str(output)})
        atomic_write_bytes(output, data)

        digest = compute_sha256_bytes(data)
        _logger.info(
            "Archive written",
            extra={
                "target": str(plan.target),
                "path": str(output),
                "bytes": len(data),
                "sha256": digest[:16] + "...",
            },
        )
        return ArchiveResult(
            target=str(plan.target),
            path=output,
            sha256=digest,
            native=plan.native,
            entry_count=len(self.package.executables),
        )
