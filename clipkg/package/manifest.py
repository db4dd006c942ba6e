# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Package metadata: what we're distributing and what it's built from.

Reads the package manifest (YAML) for name, version, executables and
dependency declarations, then applies any overrides from the `package:`
config section.

Manifest executables map an executable name to an entrypoint identifier
(or null, meaning "same as the name"); identifiers resolve to
`<bin_directory>/<identifier><source_suffix>`. Several executables may share
an entrypoint, so archives compile each entrypoint once but generate one
launcher per executable.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from clipkg.config.schema import PackageConfig
from clipkg.errors import ManifestError

_DEPENDENCY_SECTIONS: tuple[str, ...] = (
    "dependencies",
    "dev_dependencies",
    "dependency_overrides",
)


@dataclass(frozen=True)
class PackageInfo:
    """Everything the build needs to know about the package being distributed."""

    root: Path
    name: str
    version: str
    standalone_name: str
    executables: dict[str, str]
    manifest_path: Path
    lock_path: Path
    source_directories: tuple[str, ...] = ()
    license_path: Optional[Path] = None
    has_path_dependency: bool = False
    environment_constants: dict[str, str] = field(default_factory=dict)

    @property
    def entrypoints(self) -> list[str]:
        """Distinct entrypoint paths, in a stable order."""
        return sorted(set(self.executables.values()))

    @property
    def freshness_dependency(self) -> Path:
        """
        The manifest-level file compiled artifacts implicitly depend on.

        Some resolvers rewrite the lock file's timestamp on every run when the
        package has path dependencies, so in that case the manifest itself is
        used instead.
        """
        return self.manifest_path if self.has_path_dependency else self.lock_path


def entrypoint_basename(entrypoint: str) -> str:
    """`bin/foo.dart` -> `foo`. Names the build/<basename>.* artifacts."""
    return Path(entrypoint).stem


def _has_path_dependency(manifest: dict[str, Any]) -> bool:
    for section in _DEPENDENCY_SECTIONS:
        dependencies = manifest.get(section) or {}
        if not isinstance(dependencies, dict):
            continue
        for source in dependencies.values():
            if isinstance(source, dict) and "path" in source:
                return True
    return False


def _read_manifest(manifest_path: Path) -> dict[str, Any]:
    if not manifest_path.is_file():
        raise ManifestError(f"Package manifest not found: {manifest_path}")
    try:
        parsed = yaml.safe_load(manifest_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as err:
        raise ManifestError(f"Invalid YAML in {manifest_path}: {err}") from err
    if not isinstance(parsed, dict):
        raise ManifestError(f"Package manifest {manifest_path} must be a YAML mapping")
    return parsed


def _manifest_executables(
    manifest: dict[str, Any], config: PackageConfig
) -> dict[str, str]:
    raw = manifest.get("executables") or {}
    if not isinstance(raw, dict):
        raise ManifestError("Manifest 'executables' must be a mapping of name to entrypoint")
    executables: dict[str, str] = {}
    for name, identifier in raw.items():
        identifier = identifier or name
        executables[str(name)] = f"{config.bin_directory}/{identifier}{config.source_suffix}"
    return executables


def load_package(root: Path, config: PackageConfig) -> PackageInfo:
    """
    Build a PackageInfo for the package rooted at `root`.

    Raises:
        ManifestError: When the manifest is missing or unreadable, or when no
            name or version is available from either manifest or config.
    """
    manifest_path = root / config.manifest_file
    manifest = _read_manifest(manifest_path)

    name = config.name or manifest.get("name")
    if not name:
        raise ManifestError(f"No package name in {manifest_path} and none configured")

    version = config.version or manifest.get("version")
    if not version:
        raise ManifestError(f"No package version in {manifest_path} and none configured")

    if config.executables is not None:
        executables = dict(config.executables)
    else:
        executables = _manifest_executables(manifest, config)

    license_path = root / config.license_file
    return PackageInfo(
        root=root,
        name=str(name),
        version=str(version),
        standalone_name=config.standalone_name or str(name),
        executables=executables,
        manifest_path=manifest_path,
        lock_path=root / config.lock_file,
        source_directories=tuple(config.source_directories),
        license_path=license_path if license_path.is_file() else None,
        has_path_dependency=_has_path_dependency(manifest),
        environment_constants=dict(config.environment_constants),
    )
