# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Launcher scripts that sit at the top of every standalone archive.

Each executable gets one: a POSIX shell script, or a batch file on Windows.
It runs the bundled runtime on the entrypoint's compiled artifact in src/,
forwarding all arguments. Portable builds also pass -Dversion=... (plus any
configured constants) because the snapshot doesn't have them compiled in.
"""

from string import Template

from clipkg.platforms.triple import Platform

_POSIX_TEMPLATE = Template(
    """#!/bin/sh

# This script drives the standalone $name package, which bundles together a
# runtime and a compiled $executable. Regenerate it with `clipkg standalone`.

follow_links() {
  # Use `readlink -f` if it exists, but fall back to manually following
  # symlinks for systems (like older macOS) where it doesn't.
  file="$$1"
  if readlink -f "$$file" 2>&-; then return; fi

  while [ -h "$$file" ]; do
    file="$$(readlink "$$file")"
  done
  echo "$$file"
}

path=`dirname "$$(follow_links "$$0")"`
exec "$$path/src/$runtime" $defines"$$path/src/$executable.snapshot" "$$@"
"""
)

_WINDOWS_TEMPLATE = Template(
    """@echo off
REM This script drives the standalone $name package, which bundles together a
REM runtime and a compiled $executable. Regenerate it with `clipkg standalone`.

set SCRIPTPATH=%~dp0
set arguments=%*
"%SCRIPTPATH%\\src\\$runtime" $defines"%SCRIPTPATH%\\src\\$executable.snapshot" %arguments%
"""
)


def launcher_filename(executable: str, target: Platform) -> str:
    """`foo` on POSIX targets, `foo.bat` on Windows."""
    return f"{executable}.bat" if target.os.is_windows else executable


def _quote_define(define: str, windows: bool) -> str:
    if not any(c in define for c in " '\""):
        return define
    if windows:
        return '"' + define.replace('"', '""') + '"'
    return "'" + define.replace("'", "'\\''") + "'"


def render_launcher(
    target: Platform,
    *,
    name: str,
    executable: str,
    runtime: str,
    defines: list[str],
) -> str:
    """
    Render the launcher for one executable.

    Args:
        target: Platform the archive is built for; picks the template.
        name: Standalone package name, for the header comment.
        executable: Entrypoint basename; the script runs src/<executable>.snapshot.
        runtime: Runtime filename inside src/, including any .exe extension.
        defines: -D arguments to pass. Empty for native builds.
    """
    windows = target.os.is_windows
    rendered_defines = "".join(_quote_define(d, windows) + " " for d in defines)
    template = _WINDOWS_TEMPLATE if windows else _POSIX_TEMPLATE
    text = template.substitute(
        name=name,
        executable=executable,
        runtime=runtime,
        defines=rendered_defines,
    )
    return text.replace("\n", "\r\n") if windows else text
