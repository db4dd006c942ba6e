# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for clipkg tests.

Fixtures here are available to every test file automatically.

The compilers are faked with `python -c` commands that write a marker into
the output file, so the whole build runs without a real SDK. The fake SDK
directory only holds what clipkg reads from it: bin/ runtimes, a license and
a version file.
"""

import sys
import textwrap
from pathlib import Path

import pytest

from clipkg.config.schema import PackageConfig, ToolchainConfig
from clipkg.package.manifest import PackageInfo, load_package
from clipkg.platforms.resolver import PlatformResolver
from clipkg.toolchain.sdk import Toolchain, resolve_toolchain

SDK_VERSION = "3.4.0"

# No braces in these: every argv element gets str.format()ed.
_FAKE_SNAPSHOT_COMPILER = (
    "import pathlib, sys; "
    "pathlib.Path(sys.argv[1]).write_bytes(b'snapshot:' + sys.argv[2].encode())"
)
_FAKE_NATIVE_COMPILER = (
    "import pathlib, sys; "
    "pathlib.Path(sys.argv[1]).write_bytes(b'native:' + ' '.join(sys.argv[2:]).encode())"
)


@pytest.fixture()
def fake_sdk(tmp_path: Path) -> Path:
    sdk = tmp_path / "sdk"
    (sdk / "bin").mkdir(parents=True)
    (sdk / "bin" / "dart").write_bytes(b"local dart runtime")
    (sdk / "bin" / "dartaotruntime").write_bytes(b"local aot runtime")
    (sdk / "LICENSE").write_text("SDK license\n", encoding="utf-8")
    (sdk / "version").write_text(f"{SDK_VERSION}\n", encoding="utf-8")
    return sdk


@pytest.fixture()
def toolchain_config(fake_sdk: Path) -> ToolchainConfig:
    return ToolchainConfig(
        sdk_dir=str(fake_sdk),
        snapshot_command=[sys.executable, "-c", _FAKE_SNAPSHOT_COMPILER, "{output}", "{entrypoint}"],
        native_command=[
            sys.executable,
            "-c",
            _FAKE_NATIVE_COMPILER,
            "{output}",
            "{entrypoint}",
            "{defines}",
        ],
    )


@pytest.fixture()
def toolchain(toolchain_config: ToolchainConfig) -> Toolchain:
    return resolve_toolchain(toolchain_config, environ={})


@pytest.fixture()
def demo_root(tmp_path: Path) -> Path:
    """A package named demo, version 1.2.3, with one executable `demo`."""
    root = tmp_path / "demo"
    (root / "bin").mkdir(parents=True)
    (root / "lib").mkdir()
    (root / "pubspec.yaml").write_text(
        textwrap.dedent("""\
            name: demo
            version: 1.2.3
            executables:
              demo:
            dependencies:
              args: ^2.0.0
        """),
        encoding="utf-8",
    )
    (root / "pubspec.lock").write_text("packages: {}\n", encoding="utf-8")
    (root / "bin" / "demo.dart").write_text("void main() {}\n", encoding="utf-8")
    (root / "lib" / "demo.dart").write_text("int answer() => 42;\n", encoding="utf-8")
    (root / "LICENSE").write_text("Demo license\n", encoding="utf-8")
    return root


@pytest.fixture()
def demo_package(demo_root: Path) -> PackageInfo:
    return load_package(demo_root, PackageConfig())


@pytest.fixture()
def linux_x64_resolver() -> PlatformResolver:
    """A resolver that always reports a glibc linux-x64 host."""
    return PlatformResolver(
        sys_platform="linux",
        machine="x86_64",
        pointer_bits=64,
        libc_detector=lambda _path: None,
    )


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """The smallest config that passes schema validation."""
    config_file = tmp_path / "clipkg.yaml"
    config_file.write_text(
        textwrap.dedent("""\
            global:
              config_version: "1.0.0"
              log_level: "DEBUG"
        """),
        encoding="utf-8",
    )
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """Valid YAML that fails schema validation (missing config_version)."""
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(
        textwrap.dedent("""\
            global:
              log_level: "DEBUG"
        """),
        encoding="utf-8",
    )
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file
