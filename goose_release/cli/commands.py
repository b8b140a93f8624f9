# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the goose-release CLI.

Each function here corresponds to one CLI subcommand and returns an exit
code. No print() calls. Everything goes through the structured logger.
"""

import argparse
import logging
import os
import tarfile
from pathlib import Path

from goose_release.cli.exit_codes import (
    CONFIG_ERROR,
    RUNTIME_ERROR,
    SUCCESS,
    USER_ERROR,
    VALIDATION_ERROR,
)
from goose_release.config.exceptions import ConfigError
from goose_release.config.loader import apply_environment_overrides, load_config
from goose_release.config.schema import GooseReleaseConfig, default_config
from goose_release.logging.logger import get_logger
from goose_release.pipeline.exceptions import (
    ArtifactMissingError,
    ReleaseError,
    UnsupportedTargetError,
)
from goose_release.runtime.bootstrap import bootstrap

_EXIT_CODES: tuple[tuple[type[ReleaseError], int], ...] = (
    (UnsupportedTargetError, USER_ERROR),
    (ArtifactMissingError, VALIDATION_ERROR),
)


def exit_code_for(error: ReleaseError) -> int:
    for error_type, code in _EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return RUNTIME_ERROR


def _apply_cli_overrides(
    config: GooseReleaseConfig, args: argparse.Namespace
) -> GooseReleaseConfig:
    """Command-line flags win over the environment, which wins over the file."""
    build_updates: dict[str, object] = {}
    if getattr(args, "arch", None):
        build_updates["arch"] = args.arch
    if getattr(args, "workspace", None):
        build_updates["workspace"] = args.workspace
    if getattr(args, "output_root", None):
        build_updates["output_root"] = args.output_root

    updates: dict[str, object] = {}
    if build_updates:
        updates["build"] = config.build.model_copy(update=build_updates)
    if getattr(args, "no_download", False):
        updates["external"] = config.external.model_copy(update={"enabled": False})
    if getattr(args, "no_auxiliary", False):
        updates["auxiliary"] = config.auxiliary.model_copy(update={"enabled": False})

    return config.model_copy(update=updates) if updates else config


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, GooseReleaseConfig | None, logging.Logger]:
    """
    The shared setup every command needs: load config, layer environment
    and flags on top, run bootstrap.

    Returns a tuple of (exit_code, config, logger). If exit_code is not SUCCESS,
    the caller should return it immediately.
    """
    logger = get_logger(f"goose_release.cli.{command_name}", log_level=args.log_level or "INFO")

    if args.config is not None:
        try:
            config = load_config(Path(args.config))
        except ConfigError as err:
            logger.error(
                "Configuration error",
                extra={"command": command_name, "error": str(err)},
            )
            return CONFIG_ERROR, None, logger
    else:
        logger.debug(
            "No config provided, running with defaults",
            extra={"command": command_name},
        )
        config = default_config()

    config = apply_environment_overrides(config, os.environ)
    config = _apply_cli_overrides(config, args)

    bootstrap(config.global_config, log_level=args.log_level)
    return SUCCESS, config, logger


def handle_build(args: argparse.Namespace) -> int:
    """Run the full release pipeline."""
    from goose_release.pipeline.runner import ReleasePipeline, plan_release

    exit_code, config, logger = _load_and_bootstrap(args, "build")
    if exit_code != SUCCESS or config is None:
        return exit_code

    if args.dry_run:
        try:
            plan = plan_release(config)
        except UnsupportedTargetError as err:
            logger.error("Release pipeline failed", extra={"step": err.step, "error": str(err)})
            return USER_ERROR
        logger.info("Dry run: would build release", extra=plan)
        return SUCCESS

    pipeline = ReleasePipeline(config)
    try:
        report = pipeline.run()
    except ReleaseError as err:
        logger.error(
            "Release pipeline failed",
            extra={"step": err.step, "error_type": type(err).__name__, "error": str(err)},
        )
        return exit_code_for(err)
    except Exception as err:
        logger.error(
            "Release pipeline failed",
            extra={"step": pipeline.stage.value, "error": str(err)},
            exc_info=True,
        )
        return RUNTIME_ERROR

    manifest = report.manifest
    logger.info(
        "Release pipeline succeeded",
        extra={
            "artifact": str(manifest.archive_path) if manifest else None,
            "sha256": manifest.sha256 if manifest else None,
            "entries": list(manifest.entries) if manifest else [],
            "missing_optional": report.optional_missing,
            "warnings": [str(w) for w in report.warnings],
        },
    )
    return SUCCESS


def handle_targets(args: argparse.Namespace) -> int:
    """List supported architecture tokens and their build triples."""
    from goose_release.targets.resolver import resolve_target, supported_architectures

    logger = get_logger("goose_release.cli.targets", log_level=args.log_level or "INFO")
    for arch in supported_architectures():
        target = resolve_target(arch)
        logger.info(
            "Supported target",
            extra={
                "arch": target.architecture,
                "triple": target.triple,
                "goos": target.platform_os,
                "goarch": target.platform_arch,
            },
        )
    return SUCCESS


def handle_info(args: argparse.Namespace) -> int:
    """Display environment, config and toolchain availability."""
    from goose_release import __version__
    from goose_release.runtime.environment import get_system_info
    from goose_release.toolchain.preflight import check_toolchains
    from goose_release.toolchain.runner import CommandRunner

    exit_code, config, logger = _load_and_bootstrap(args, "info")
    if exit_code != SUCCESS or config is None:
        return exit_code

    system_info = get_system_info()
    logger.info(
        "System information",
        extra={
            "goose_release_version": __version__,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "host_arch": system_info.host_arch,
            "hostname": system_info.hostname,
            "config": args.config,
            "arch": config.build.arch,
            "external_enabled": config.external.enabled,
            "external_version": config.external.version,
        },
    )
    check_toolchains(config, CommandRunner())
    return SUCCESS


def handle_inspect(args: argparse.Namespace) -> int:
    """List the members of a release archive and confirm the primary is in it."""
    from goose_release.packaging.packager import read_archive_entries
    from goose_release.utils.hashing import compute_sha256

    exit_code, config, logger = _load_and_bootstrap(args, "inspect")
    if exit_code != SUCCESS or config is None:
        return exit_code

    archive_path = Path(args.archive)
    if not archive_path.is_file():
        logger.error("Archive not found", extra={"path": str(archive_path)})
        return VALIDATION_ERROR

    try:
        entries = read_archive_entries(archive_path)
    except (tarfile.TarError, OSError) as err:
        logger.error("Cannot read archive", extra={"path": str(archive_path), "error": str(err)})
        return VALIDATION_ERROR

    primary = config.build.binary_name
    logger.info(
        "Archive contents",
        extra={
            "path": str(archive_path),
            "entries": entries,
            "sha256": compute_sha256(archive_path),
        },
    )
    if primary not in entries:
        logger.error("Primary executable missing from archive", extra={"expected": primary})
        return VALIDATION_ERROR
    return SUCCESS
