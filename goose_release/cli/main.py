# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for goose-release.

This is the single root command; every operation is a subcommand of
`goose-release`. The global options (--config, --log-level, --dry-run) are
inherited by every subcommand through argparse's parent parser mechanism.

Usage:
    goose-release build [x86_64|aarch64]
    ARCH=aarch64 NO_TEMPORAL_DOWNLOAD=1 goose-release build
    goose-release build --config configs/release.yaml --dry-run
    goose-release inspect target/x86_64-unknown-linux-gnu/goose-x86_64-unknown-linux-gnu.tar.bz2
"""

import argparse
import sys

from goose_release.cli.commands import (
    handle_build,
    handle_info,
    handle_inspect,
    handle_targets,
)
from goose_release.cli.exit_codes import USER_ERROR


def _build_global_parser() -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    add_help=False so help text doesn't collide between the parent and the
    subcommand parsers.
    """
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default=None,
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level (default: from config, else INFO).",
    )
    parent.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        dest="dry_run",
        help="Resolve the target and log the plan without building anything.",
    )
    return parent


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    """
    Register all subcommands with their handler functions via set_defaults(func=...).
    """
    commands = [
        ("build", "Build and package a release archive.", handle_build),
        ("targets", "List supported architectures.", handle_targets),
        ("info", "Display environment and toolchain info.", handle_info),
        ("inspect", "List the contents of a release archive.", handle_inspect),
    ]

    for name, help_text, handler in commands:
        parser = subparsers.add_parser(name, parents=[parent], help=help_text)
        parser.set_defaults(func=handler)

    build_parser = subparsers.choices["build"]
    build_parser.add_argument(
        "arch",
        nargs="?",
        default=None,
        help="Target architecture (x86_64 or aarch64). Falls back to $ARCH, then config.",
    )
    build_parser.add_argument(
        "--workspace",
        type=str,
        default=None,
        help="Root of the goose checkout (default: current directory).",
    )
    build_parser.add_argument(
        "--output-root",
        type=str,
        default=None,
        dest="output_root",
        help="Root of the per-target output tree (default: <workspace>/target).",
    )
    build_parser.add_argument(
        "--no-download",
        action="store_true",
        default=False,
        dest="no_download",
        help="Skip the temporal CLI download (same as NO_TEMPORAL_DOWNLOAD=1).",
    )
    build_parser.add_argument(
        "--no-auxiliary",
        action="store_true",
        default=False,
        dest="no_auxiliary",
        help="Skip the temporal-service build.",
    )

    inspect_parser = subparsers.choices["inspect"]
    inspect_parser.add_argument("archive", help="Path to a goose-<triple>.tar.bz2 archive.")


def main() -> None:
    """
    Main CLI entrypoint. This is what pyproject.toml's [project.scripts] points to.

    If no subcommand is given, we show help and exit with USER_ERROR.
    """
    parent = _build_global_parser()

    root_parser = argparse.ArgumentParser(
        prog="goose-release",
        description="goose-release — build and package goose release archives.",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)

    args = root_parser.parse_args()

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
