# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for clipkg.

Everything is a subcommand of `clipkg`. The global options (--config,
--log-level, --root) are inherited by every subcommand through argparse's
parent parser mechanism.

Usage:
    clipkg <subcommand> [options]
    clipkg platforms
    clipkg compile --native
    clipkg standalone --target linux-x64 --target windows-x64
    clipkg standalone --all --offline
    clipkg check-fresh demo
"""

import argparse
import sys
from typing import Optional, Sequence

from clipkg.cli.commands import (
    handle_check_fresh,
    handle_compile,
    handle_host,
    handle_info,
    handle_platforms,
    handle_standalone,
)
from clipkg.cli.exit_codes import USER_ERROR


def _build_global_parser(suppress_defaults: bool = False) -> argparse.ArgumentParser:
    """
    Parent parser with the options every subcommand accepts.

    The root parser owns the defaults. Subcommands get a copy with suppressed
    defaults so an option given before the subcommand isn't reset by it.
    """

    def default(value: Optional[str]) -> Optional[str]:
        return argparse.SUPPRESS if suppress_defaults else value

    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=default(None),
        help="Path to YAML configuration file (default: <root>/clipkg.yaml if present).",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default=default(None),
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level (default: global.log_level from config).",
    )
    parent.add_argument(
        "--root",
        type=str,
        default=default("."),
        help="Root directory of the package to build.",
    )
    return parent


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    commands = [
        ("platforms", "List every supported target platform.", handle_platforms),
        ("host", "Show the platform of the running machine.", handle_host),
        ("compile", "Compile development snapshots for the host.", handle_compile),
        ("standalone", "Build standalone archives.", handle_standalone),
        ("check-fresh", "Check that compiled snapshots are up to date.", handle_check_fresh),
        ("info", "Display environment and config info.", handle_info),
    ]

    for name, help_text, handler in commands:
        parser = subparsers.add_parser(name, parents=[parent], help=help_text)
        parser.set_defaults(func=handler)

    subparsers.choices["compile"].add_argument(
        "--native",
        action="store_true",
        default=False,
        help="Also compile native executables for the host.",
    )

    standalone_parser = subparsers.choices["standalone"]
    standalone_parser.add_argument(
        "--target",
        action="append",
        default=None,
        dest="targets",
        help="Platform to build, e.g. linux-x64-musl. Repeatable.",
    )
    standalone_parser.add_argument(
        "--all",
        action="store_true",
        default=False,
        dest="all_targets",
        help="Build every supported platform.",
    )
    standalone_parser.add_argument(
        "--offline",
        action="store_true",
        default=False,
        help="Use placeholder runtimes instead of downloading them (testing only).",
    )

    subparsers.choices["check-fresh"].add_argument(
        "executables",
        nargs="*",
        help="Executables to check (default: all of them).",
    )


def build_parser() -> argparse.ArgumentParser:
    root_parser = argparse.ArgumentParser(
        prog="clipkg",
        description="clipkg: standalone, per-platform archives for command-line programs.",
        parents=[_build_global_parser()],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, _build_global_parser(suppress_defaults=True))
    return root_parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Main CLI entrypoint. This is what pyproject.toml's [project.scripts] points to.

    If no subcommand is given, we show help and exit with USER_ERROR.
    """
    root_parser = build_parser()
    args = root_parser.parse_args(argv)

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
