# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Multi-target standalone build.

The steps, for a list of targets:
  1. Validate every target against the platform catalog. One bad target
     aborts the whole build before the compiler is touched.
  2. Plan each target (native or portable, self-contained or not).
  3. Compile once per kind: portable snapshots if any target is portable,
     native artifacts if any target is native.
  4. Fetch a runtime and assemble an archive per target, concurrently.

Step 4 collects failures instead of stopping at the first one. Archives that
were written stay on disk, and the failures are raised together as a single
StandaloneBuildError.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import httpx

from clipkg.config.schema import ClipkgConfig
from clipkg.errors import StandaloneBuildError
from clipkg.logging.logger import get_logger
from clipkg.package.manifest import PackageInfo, load_package
from clipkg.platforms.enums import OperatingSystem
from clipkg.platforms.resolver import PlatformResolver
from clipkg.platforms.triple import Platform
from clipkg.standalone.archive import ArchiveResult, StandaloneAssembler
from clipkg.standalone.compiler import Compiler
from clipkg.standalone.fetcher import ArtifactFetcher
from clipkg.standalone.strategy import (
    DEFAULT_SELF_CONTAINED_OS,
    CompilationPlan,
    CompilationStrategist,
)
from clipkg.toolchain.sdk import Toolchain, resolve_toolchain

_logger: logging.Logger = get_logger(__name__)


@dataclass(frozen=True)
class StandaloneBuildResult:
    """What a successful build produced."""

    plans: tuple[CompilationPlan, ...]
    compiled: tuple[Path, ...]
    archives: tuple[ArchiveResult, ...]


class StandalonePipeline:
    """Builds standalone archives for a package against one host and toolchain."""

    def __init__(
        self,
        package: PackageInfo,
        toolchain: Toolchain,
        build_dir: Path,
        *,
        resolver: Optional[PlatformResolver] = None,
        self_contained_os: Iterable[OperatingSystem] = DEFAULT_SELF_CONTAINED_OS,
        max_workers: int = 4,
        offline: bool = False,
        client: Optional[httpx.Client] = None,
        timeout_seconds: Optional[float] = None,
        mtime: Optional[int] = None,
    ) -> None:
        self.package = package
        self.toolchain = toolchain
        self.build_dir = build_dir
        self.resolver = resolver or PlatformResolver()
        self.host = self.resolver.current()
        self.max_workers = max_workers

        self.strategist = CompilationStrategist(self.host, self_contained_os)
        self.compiler = Compiler(toolchain, package, self.host, build_dir)
        self.fetcher = ArtifactFetcher(
            toolchain,
            offline=offline,
            client=client,
            timeout_seconds=timeout_seconds,
        )
        self.assembler = StandaloneAssembler(package, toolchain, build_dir, mtime=mtime)

    @classmethod
    def from_config(
        cls,
        config: ClipkgConfig,
        root: Path,
        *,
        resolver: Optional[PlatformResolver] = None,
        client: Optional[httpx.Client] = None,
    ) -> "StandalonePipeline":
        """Wire a pipeline from a loaded config, for the package rooted at `root`."""
        standalone = config.standalone
        return cls(
            load_package(root, config.package),
            resolve_toolchain(config.toolchain),
            root / config.global_config.directories.build,
            resolver=resolver,
            self_contained_os=standalone.self_contained_os,
            max_workers=standalone.max_workers,
            offline=standalone.offline,
            client=client,
            timeout_seconds=standalone.download_timeout_seconds,
            mtime=standalone.mtime,
        )

    def plan(self, targets: Iterable[Platform | str]) -> list[CompilationPlan]:
        """
        Validate and plan every target, dropping duplicates.

        Raises:
            UnsupportedPlatformError: On the first target outside the catalog.
        """
        plans: dict[Platform, CompilationPlan] = {}
        for target in targets:
            plan = self.strategist.plan(target)
            plans.setdefault(plan.target, plan)
        return list(plans.values())

    def build_dev(self) -> list[Path]:
        """Compile the host's portable snapshots; what the test helpers run."""
        _logger.info("Compiling development snapshots", extra={"host": str(self.host)})
        return self.compiler.compile_snapshots()

    def build(self, targets: Optional[Iterable[Platform | str]] = None) -> StandaloneBuildResult:
        """
        Build an archive per target. No targets means the host only.

        Raises:
            UnsupportedPlatformError: If any target is invalid. Nothing is built.
            MissingToolchainCapabilityError: If a native build is needed but the
                SDK can't produce one.
            CompilationError: If the compiler fails.
            StandaloneBuildError: If one or more targets failed to assemble.
        """
        target_list = list(targets) if targets is not None else []
        plans = self.plan(target_list or [self.host])

        compiled: list[Path] = []
        if any(not p.native for p in plans):
            compiled.extend(self.compiler.compile_snapshots())
        if any(p.native for p in plans):
            compiled.extend(self.compiler.compile_native())

        _logger.info(
            "Assembling standalone archives",
            extra={
                "targets": [str(p.target) for p in plans],
                "host": str(self.host),
                "max_workers": self.max_workers,
            },
        )

        archives: dict[str, ArchiveResult] = {}
        failures: dict[str, BaseException] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures: dict[str, Future[ArchiveResult]] = {
                str(p.target): pool.submit(self._build_target, p) for p in plans
            }
            for name, future in futures.items():
                try:
                    archives[name] = future.result()
                except Exception as err:
                    _logger.error(
                        "Standalone build failed",
                        extra={"target": name, "error": str(err)},
                    )
                    failures[name] = err

        if failures:
            raise StandaloneBuildError(failures)

        return StandaloneBuildResult(
            plans=tuple(plans),
            compiled=tuple(compiled),
            archives=tuple(archives[str(p.target)] for p in plans),
        )

    def _build_target(self, plan: CompilationPlan) -> ArchiveResult:
        _logger.info(
            "Building standalone package",
            extra={
                "target": plan.target.to_human_string(),
                "native": plan.native,
                "self_contained": plan.self_contained,
            },
        )
        runtime = (
            None if plan.self_contained else self.fetcher.runtime_binary(plan.target, self.host)
        )
        return self.assembler.write_archive(plan, runtime)
