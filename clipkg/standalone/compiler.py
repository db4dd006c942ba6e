# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Compiler invocation: entrypoints in, build/<entrypoint>.{snapshot,native} out.

Portable snapshots run on any platform given the right runtime, so they are
compiled without the version constant; the launcher passes it at run time.
Native builds bake the version (and any other environment constants) in at
compile time, which is why their launchers don't pass it.

Commands come from the toolchain's argv templates (see ToolchainConfig). The
compilers run with the package root as the working directory.
"""

import logging
import subprocess
from pathlib import Path
from typing import Iterable, Optional

from clipkg.errors import CompilationError, MissingToolchainCapabilityError
from clipkg.logging.logger import get_logger
from clipkg.package.manifest import PackageInfo, entrypoint_basename
from clipkg.platforms.triple import Platform
from clipkg.toolchain.sdk import Toolchain
from clipkg.utils.paths import ensure_directory

_logger: logging.Logger = get_logger(__name__)

_DEFINES_PLACEHOLDER = "{defines}"

SNAPSHOT_SUFFIX = ".snapshot"
NATIVE_SUFFIX = ".native"


def environment_defines(version: str, constants: dict[str, str]) -> list[str]:
    """`-Dversion=<version>` followed by one `-D<key>=<value>` per constant."""
    return [f"-Dversion={version}", *(f"-D{key}={value}" for key, value in constants.items())]


def render_command(template: Iterable[str], defines: list[str], **values: str) -> list[str]:
    """
    Format an argv template.

    Raises:
        CompilationError: If the template uses a placeholder we don't provide.
    """
    argv: list[str] = []
    for part in template:
        if part == _DEFINES_PLACEHOLDER:
            argv.extend(defines)
            continue
        try:
            argv.append(part.format(**values))
        except (KeyError, IndexError) as err:
            raise CompilationError(f"Unknown placeholder {err} in compiler command {part!r}") from err
    return argv


class Compiler:
    """Runs the toolchain's compilers for a package's entrypoints."""

    def __init__(
        self,
        toolchain: Toolchain,
        package: PackageInfo,
        host: Platform,
        build_dir: Path,
    ) -> None:
        self.toolchain = toolchain
        self.package = package
        self.host = host
        self.build_dir = build_dir

    def snapshot_path(self, entrypoint: str) -> Path:
        return self.build_dir / f"{entrypoint_basename(entrypoint)}{SNAPSHOT_SUFFIX}"

    def native_path(self, entrypoint: str) -> Path:
        return self.build_dir / f"{entrypoint_basename(entrypoint)}{NATIVE_SUFFIX}"

    def _run(self, argv: list[str], output: Path, entrypoint: str, kind: str) -> Path:
        _logger.info(
            "Compiling entrypoint",
            extra={"entrypoint": entrypoint, "kind": kind, "output": str(output)},
        )
        _logger.debug("Compiler command", extra={"argv": argv})
        try:
            result = subprocess.run(
                argv,
                cwd=str(self.package.root),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as err:
            raise CompilationError(f"Could not run {argv[0]}: {err}") from err

        if result.returncode != 0:
            raise CompilationError(
                f"Compiling {entrypoint} ({kind}) failed with exit code {result.returncode}:\n"
                f"{result.stderr or result.stdout}"
            )
        if not output.is_file():
            raise CompilationError(f"Compiler exited cleanly but didn't produce {output}")
        return output

    def compile_snapshots(self, entrypoints: Optional[Iterable[str]] = None) -> list[Path]:
        """Build build/<entrypoint>.snapshot for each entrypoint."""
        ensure_directory(self.build_dir)
        outputs: list[Path] = []
        for entrypoint in entrypoints if entrypoints is not None else self.package.entrypoints:
            output = self.snapshot_path(entrypoint)
            argv = render_command(
                self.toolchain.snapshot_command,
                [],
                sdk=str(self.toolchain.sdk_dir),
                runtime=self.toolchain.runtime_executable,
                entrypoint=entrypoint,
                output=str(output),
                version=self.package.version,
            )
            outputs.append(self._run(argv, output, entrypoint, "snapshot"))
        return outputs

    def compile_native(self, entrypoints: Optional[Iterable[str]] = None) -> list[Path]:
        """
        Build build/<entrypoint>.native for each entrypoint.

        Raises:
            MissingToolchainCapabilityError: If the SDK can't compile natively.
        """
        if self.host.arch.is_ia32 or not self.toolchain.supports_native(self.host):
            raise MissingToolchainCapabilityError(
                f"Your SDK at {self.toolchain.sdk_dir} doesn't have "
                f"{self.toolchain.aot_runtime_executable}. This probably means that you're "
                f"using a 32-bit SDK, which doesn't support native compilation."
            )

        ensure_directory(self.build_dir)
        defines = environment_defines(self.package.version, self.package.environment_constants)
        outputs: list[Path] = []
        for entrypoint in entrypoints if entrypoints is not None else self.package.entrypoints:
            output = self.native_path(entrypoint)
            argv = render_command(
                self.toolchain.native_command,
                defines,
                sdk=str(self.toolchain.sdk_dir),
                runtime=self.toolchain.runtime_executable,
                entrypoint=entrypoint,
                output=str(output),
                version=self.package.version,
            )
            outputs.append(self._run(argv, output, entrypoint, "native"))
        return outputs
