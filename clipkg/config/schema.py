# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for clipkg.

Every config section gets its own frozen pydantic model. Once built, a config
can't be mutated.

The models use pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked

Only `global.config_version` is required. Every other section falls back to
defaults that describe a conventional project layout and the default SDK
distribution store.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from clipkg.platforms.enums import OperatingSystem

DEFAULT_ARCHIVE_URL = (
    "https://storage.googleapis.com/dart-archive/channels/{channel}/release/"
    "{version}/sdk/dartsdk-{platform}-release.zip"
)


class DirectoryConfig(BaseModel):
    """Project directories, relative to the project root."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    build: str = Field(default="build", description="Compiled artifacts and archives")


class GlobalConfig(BaseModel):
    """Cross-cutting settings: schema version, observability, directory layout."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output, relative to project root",
    )
    directories: DirectoryConfig = Field(default_factory=DirectoryConfig)


class PackageConfig(BaseModel):
    """
    Where to find the package being distributed, plus overrides for what the
    manifest says about it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    manifest_file: str = Field(
        default="pubspec.yaml",
        description="Package manifest declaring name, version, executables and dependencies",
    )
    lock_file: str = Field(
        default="pubspec.lock",
        description="Dependency lock file, used as an implicit freshness dependency",
    )
    name: Optional[str] = Field(
        default=None, description="Overrides the manifest's package name"
    )
    standalone_name: Optional[str] = Field(
        default=None,
        description="Name used for archives and their root directory. Defaults to name",
    )
    version: Optional[str] = Field(
        default=None, description="Overrides the manifest's version"
    )
    executables: Optional[dict[str, str]] = Field(
        default=None,
        description="Executable name -> entrypoint path. Overrides the manifest's executables",
    )
    bin_directory: str = Field(
        default="bin", description="Directory holding entrypoint sources"
    )
    source_suffix: str = Field(
        default=".dart", description="Suffix appended to manifest entrypoint identifiers"
    )
    license_file: str = Field(
        default="LICENSE", description="Package license, bundled when present"
    )
    source_directories: list[str] = Field(
        default_factory=lambda: ["lib"],
        description="Source directories every compiled artifact implicitly depends on",
    )
    environment_constants: dict[str, str] = Field(
        default_factory=dict,
        description="Extra -D<key>=<value> constants passed alongside the version",
    )


class ToolchainConfig(BaseModel):
    """
    The SDK that compiles entrypoints and provides the runtime binary.

    Command templates are argv lists. Each element is formatted with
    {sdk}, {runtime}, {entrypoint}, {output} and {version}; an element that is
    exactly "{defines}" expands to one -D<key>=<value> argument per constant.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    sdk_dir: Optional[str] = Field(
        default=None,
        description="SDK install directory. Falls back to $CLIPKG_SDK_DIR, then the runtime on PATH",
    )
    version: Optional[str] = Field(
        default=None,
        description="Exact SDK version. Defaults to the contents of <sdk_dir>/version",
    )
    channel: Optional[Literal["stable", "beta", "dev"]] = Field(
        default=None,
        description="Release channel. Derived from the version's pre-release tag when unset",
    )
    runtime_executable: str = Field(
        default="dart", description="Runtime that executes portable snapshots"
    )
    aot_runtime_executable: str = Field(
        default="dartaotruntime",
        description="Runtime that executes native snapshots; 32-bit SDKs don't ship it",
    )
    license_file: str = Field(
        default="LICENSE", description="SDK license, relative to sdk_dir"
    )
    snapshot_command: list[str] = Field(
        default_factory=lambda: [
            "{sdk}/bin/{runtime}",
            "--snapshot={output}",
            "{entrypoint}",
        ],
        min_length=1,
    )
    native_command: list[str] = Field(
        default_factory=lambda: [
            "{sdk}/bin/{runtime}",
            "compile",
            "aot-snapshot",
            "{defines}",
            "--output",
            "{output}",
            "{entrypoint}",
        ],
        min_length=1,
    )
    archive_url: str = Field(
        default=DEFAULT_ARCHIVE_URL,
        description="Remote SDK zip, formatted with {channel}, {version}, {platform}, {os}, {arch}",
    )


class StandaloneConfig(BaseModel):
    """Knobs for building standalone archives."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    targets: list[str] = Field(
        default_factory=list,
        description="Platforms to build, e.g. 'linux-x64-musl'. Empty means the host only",
    )
    self_contained_os: list[OperatingSystem] = Field(
        default_factory=lambda: [OperatingSystem.FUCHSIA, OperatingSystem.IOS],
        description=(
            "Operating systems that get a single self-contained executable instead of "
            "runtime + snapshot. Unsigned executables warn on Windows and macOS, and "
            "trailing snapshots get corrupted on Linux and Android"
        ),
    )
    max_workers: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Targets assembled in parallel",
    )
    offline: bool = Field(
        default=False,
        description="Use placeholder runtimes instead of downloading them. Testing only",
    )
    download_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="HTTP timeout for SDK downloads. None waits indefinitely",
    )
    mtime: Optional[int] = Field(
        default=None,
        ge=0,
        description="Fixed archive timestamp (seconds since epoch) for reproducible output",
    )


class ClipkgConfig(BaseModel):
    """
    Top-level config container.

    A YAML file might contain only `global:`; the other sections then take
    their defaults.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(alias="global")
    package: PackageConfig = Field(default_factory=PackageConfig)
    toolchain: ToolchainConfig = Field(default_factory=ToolchainConfig)
    standalone: StandaloneConfig = Field(default_factory=StandaloneConfig)
