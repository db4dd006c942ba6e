# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for launcher script rendering.
"""

from clipkg.platforms.triple import Platform
from clipkg.standalone.launchers import launcher_filename, render_launcher

LINUX = Platform.parse("linux-x64")
WINDOWS = Platform.parse("windows-x64")


class TestLauncherFilename:
    def test_posix_has_no_extension(self) -> None:
        assert launcher_filename("demo", LINUX) == "demo"

    def test_windows_gets_bat(self) -> None:
        assert launcher_filename("demo", WINDOWS) == "demo.bat"


class TestRenderLauncher:
    def test_native_posix_launcher_has_no_defines(self) -> None:
        script = render_launcher(LINUX, name="demo", executable="demo", runtime="dart", defines=[])
        assert script.startswith("#!/bin/sh\n")
        assert 'exec "$path/src/dart" "$path/src/demo.snapshot" "$@"' in script
        assert "-Dversion" not in script

    def test_portable_posix_launcher_passes_version(self) -> None:
        script = render_launcher(
            LINUX, name="demo", executable="demo", runtime="dart", defines=["-Dversion=1.2.3"]
        )
        assert 'exec "$path/src/dart" -Dversion=1.2.3 "$path/src/demo.snapshot" "$@"' in script

    def test_windows_launcher(self) -> None:
        script = render_launcher(
            WINDOWS,
            name="demo",
            executable="demo",
            runtime="dart.exe",
            defines=["-Dversion=1.2.3"],
        )
        assert script.startswith("@echo off\r\n")
        assert '"%SCRIPTPATH%\\src\\dart.exe" -Dversion=1.2.3 "%SCRIPTPATH%\\src\\demo.snapshot" %arguments%' in script
        assert "\n" not in script.replace("\r\n", "")

    def test_defines_with_spaces_are_quoted(self) -> None:
        posix = render_launcher(
            LINUX, name="demo", executable="demo", runtime="dart", defines=["-Dmotto=hi there"]
        )
        windows = render_launcher(
            WINDOWS, name="demo", executable="demo", runtime="dart.exe", defines=["-Dmotto=hi there"]
        )
        assert "'-Dmotto=hi there' " in posix
        assert '"-Dmotto=hi there" ' in windows

    def test_launcher_names_the_package(self) -> None:
        script = render_launcher(LINUX, name="sass", executable="sass", runtime="dart", defines=[])
        assert "standalone sass package" in script
