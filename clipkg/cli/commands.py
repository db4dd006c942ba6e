# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the clipkg CLI.

Each function here corresponds to one CLI subcommand and returns an exit code
from exit_codes.py. Errors are mapped to codes here, not in library code.

No print() calls. Everything goes through the structured logger.
"""

import argparse
import logging
import platform as _stdlib_platform
from pathlib import Path
from typing import Optional

from clipkg.cli.exit_codes import (
    CONFIG_ERROR,
    RUNTIME_ERROR,
    SUCCESS,
    USER_ERROR,
    VALIDATION_ERROR,
)
from clipkg.config.exceptions import ConfigError
from clipkg.config.loader import DEFAULT_CONFIG_FILENAME, default_config, load_config
from clipkg.config.schema import ClipkgConfig
from clipkg.errors import (
    ClipkgError,
    ManifestError,
    StaleArtifactError,
    StandaloneBuildError,
    UnsupportedPlatformError,
)
from clipkg.logging.logger import get_logger, set_log_level
from clipkg.package.manifest import load_package
from clipkg.platforms.resolver import current_platform
from clipkg.platforms.triple import all_platforms, sorted_platforms
from clipkg.standalone.pipeline import StandalonePipeline
from clipkg.testing.freshness import DEV_BUILD_COMMAND, ensure_up_to_date, snapshot_path


def _load_config(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, Optional[ClipkgConfig], Path, logging.Logger]:
    """
    The shared setup that every command needs: config, then logging.

    --log-level wins over global.log_level. Config errors are logged at the
    command-line level (or INFO) since there is no config to read one from.

    Returns (exit_code, config, root, logger). If exit_code is not SUCCESS,
    the caller should return it immediately.
    """
    logger_name = f"clipkg.cli.{command_name}"
    root = Path(args.root).resolve()

    if args.config is not None:
        config_path: Optional[Path] = Path(args.config)
    elif (root / DEFAULT_CONFIG_FILENAME).is_file():
        config_path = root / DEFAULT_CONFIG_FILENAME
    else:
        config_path = None

    try:
        config = load_config(config_path) if config_path is not None else default_config()
    except ConfigError as err:
        log_level = args.log_level or "INFO"
        set_log_level(log_level)
        logger = get_logger(logger_name, log_level=log_level)
        logger.error(
            "Configuration error",
            extra={"command": command_name, "error": str(err)},
        )
        return CONFIG_ERROR, None, root, logger

    global_config = config.global_config
    log_level = args.log_level or global_config.log_level
    log_file = root / global_config.log_file if global_config.log_file is not None else None
    set_log_level(log_level)
    logger = get_logger(logger_name, log_level=log_level, log_file=log_file)

    if config_path is None:
        logger.debug("No config file found, running with defaults", extra={"command": command_name})

    return SUCCESS, config, root, logger


def _exit_code_for(err: Exception) -> int:
    if isinstance(err, StaleArtifactError):
        return VALIDATION_ERROR
    if isinstance(err, (UnsupportedPlatformError, ManifestError)):
        return USER_ERROR
    return RUNTIME_ERROR


def handle_platforms(args: argparse.Namespace) -> int:
    """List every platform a standalone archive can target."""
    exit_code, _, _, logger = _load_config(args, "platforms")
    if exit_code != SUCCESS:
        return exit_code

    platforms = sorted_platforms(all_platforms())
    for platform in platforms:
        logger.info(
            "Platform",
            extra={"platform": str(platform), "human": platform.to_human_string()},
        )
    logger.info("Supported platforms", extra={"count": len(platforms)})
    return SUCCESS


def handle_host(args: argparse.Namespace) -> int:
    """Report the host platform as clipkg sees it."""
    exit_code, _, _, logger = _load_config(args, "host")
    if exit_code != SUCCESS:
        return exit_code

    try:
        host = current_platform()
    except UnsupportedPlatformError as err:
        logger.error("Unsupported host", extra={"error": str(err)})
        return USER_ERROR

    logger.info(
        "Host platform",
        extra={"platform": str(host), "human": host.to_human_string()},
    )
    return SUCCESS


def handle_compile(args: argparse.Namespace) -> int:
    """Compile build/<entrypoint>.snapshot (and .native with --native) for the host."""
    exit_code, config, root, logger = _load_config(args, "compile")
    if exit_code != SUCCESS or config is None:
        return exit_code

    try:
        pipeline = StandalonePipeline.from_config(config, root)
        outputs = pipeline.build_dev()
        if args.native:
            outputs.extend(pipeline.compiler.compile_native())
    except ClipkgError as err:
        logger.error("Compilation failed", extra={"error": str(err)})
        return _exit_code_for(err)

    logger.info("Compilation complete", extra={"outputs": [str(p) for p in outputs]})
    return SUCCESS


def handle_standalone(args: argparse.Namespace) -> int:
    """Build standalone archives for the requested targets."""
    exit_code, config, root, logger = _load_config(args, "standalone")
    if exit_code != SUCCESS or config is None:
        return exit_code

    if args.offline:
        config = config.model_copy(
            update={"standalone": config.standalone.model_copy(update={"offline": True})}
        )

    if args.all_targets:
        targets: list[str] = [str(p) for p in sorted_platforms(all_platforms())]
    else:
        targets = list(args.targets or config.standalone.targets)

    try:
        pipeline = StandalonePipeline.from_config(config, root)
        result = pipeline.build(targets or None)
    except StandaloneBuildError as err:
        for target, failure in sorted(err.failures.items()):
            logger.error("Target failed", extra={"target": target, "error": str(failure)})
        return RUNTIME_ERROR
    except ClipkgError as err:
        logger.error("Standalone build failed", extra={"error": str(err)})
        return _exit_code_for(err)

    for archive in result.archives:
        logger.info(
            "Archive ready",
            extra={"target": archive.target, "path": str(archive.path), "sha256": archive.sha256},
        )
    logger.info("Standalone build complete", extra={"archives": len(result.archives)})
    return SUCCESS


def handle_check_fresh(args: argparse.Namespace) -> int:
    """Fail when any compiled dev snapshot is missing or older than its sources."""
    exit_code, config, root, logger = _load_config(args, "check-fresh")
    if exit_code != SUCCESS or config is None:
        return exit_code

    try:
        package = load_package(root, config.package)
        build_dir = root / config.global_config.directories.build
        executables = args.executables or sorted(package.executables)
        for executable in executables:
            snapshot = snapshot_path(executable, package, build_dir)
            ensure_up_to_date(
                snapshot,
                DEV_BUILD_COMMAND,
                dependencies=[package.executables[executable]],
                package=package,
            )
            logger.info("Up to date", extra={"executable": executable, "path": str(snapshot)})
    except ClipkgError as err:
        logger.error("Freshness check failed", extra={"error": str(err)})
        return _exit_code_for(err)

    return SUCCESS


def handle_info(args: argparse.Namespace) -> int:
    """Display environment and configuration information."""
    exit_code, config, root, logger = _load_config(args, "info")
    if exit_code != SUCCESS or config is None:
        return exit_code

    from clipkg import __version__

    try:
        host: Optional[str] = str(current_platform())
    except UnsupportedPlatformError:
        host = None

    logger.info(
        "System information",
        extra={
            "clipkg_version": __version__,
            "python_version": _stdlib_platform.python_version(),
            "host": host,
            "root": str(root),
            "config": args.config,
            "config_version": config.global_config.config_version,
        },
    )
    return SUCCESS
