# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Toolchain availability report.

Answers "what will the pipeline be able to do on this machine" before
anyone waits on a twenty-minute cargo build:
- Python version
- which build tools are on PATH (cross, cargo, rustup, bash, go)
- free disk space under the output root

Nothing here is fatal. `goose-release info` logs the report; the pipeline
itself makes its own fallback decisions.
"""

import logging
import shutil
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from goose_release.config.schema import GooseReleaseConfig
from goose_release.logging.logger import get_logger
from goose_release.runtime.environment import MINIMUM_PYTHON_MAJOR, MINIMUM_PYTHON_MINOR
from goose_release.toolchain.runner import CommandRunner

_logger: logging.Logger = get_logger(__name__)

MIN_DISK_SPACE_BYTES: int = 2_147_483_648  # 2 GB, a release cargo build is not small


@dataclass(frozen=True)
class EnvironmentCheck:
    """Result of a single environment check."""

    name: str
    passed: bool
    message: str
    value: str


def check_python_version() -> EnvironmentCheck:
    major, minor, micro = sys.version_info[:3]
    version_str = f"{major}.{minor}.{micro}"
    passed = (major, minor) >= (MINIMUM_PYTHON_MAJOR, MINIMUM_PYTHON_MINOR)
    if passed:
        msg = f"Python {version_str} meets minimum {MINIMUM_PYTHON_MAJOR}.{MINIMUM_PYTHON_MINOR}"
    else:
        msg = f"Python {version_str} does NOT meet minimum {MINIMUM_PYTHON_MAJOR}.{MINIMUM_PYTHON_MINOR}"
    return EnvironmentCheck(name="python_version", passed=passed, message=msg, value=version_str)


def check_tool(
    tool: str,
    runner: CommandRunner,
    env: Optional[Mapping[str, str]] = None,
    required: bool = False,
) -> EnvironmentCheck:
    """
    Check that `tool` resolves on PATH.

    Optional tools always pass; their absence only changes which code path
    the pipeline takes (e.g. no cross means a host cargo build).
    """
    location = runner.which(tool, env)
    if location is not None:
        return EnvironmentCheck(
            name=f"tool:{tool}", passed=True, message=f"{tool} found", value=location
        )
    return EnvironmentCheck(
        name=f"tool:{tool}",
        passed=not required,
        message=f"{tool} not found on PATH",
        value="not_found",
    )


def check_disk_space(path: Path) -> EnvironmentCheck:
    """Check free space at `path`, or its nearest existing parent."""
    check_path = path
    while not check_path.exists() and check_path != check_path.parent:
        check_path = check_path.parent

    try:
        usage = shutil.disk_usage(str(check_path))
    except OSError as err:
        return EnvironmentCheck(
            name="disk_space",
            passed=False,
            message=f"Cannot check disk space: {err}",
            value="error",
        )

    free_gb = usage.free / (1024**3)
    passed = usage.free >= MIN_DISK_SPACE_BYTES
    if passed:
        msg = f"{free_gb:.1f} GB free (minimum {MIN_DISK_SPACE_BYTES / (1024**3):.0f} GB)"
    else:
        msg = (
            f"Only {free_gb:.1f} GB free, need at least "
            f"{MIN_DISK_SPACE_BYTES / (1024**3):.0f} GB"
        )
    return EnvironmentCheck(name="disk_space", passed=passed, message=msg, value=f"{free_gb:.1f}GB")


def check_toolchains(
    config: GooseReleaseConfig,
    runner: CommandRunner,
    env: Optional[Mapping[str, str]] = None,
) -> list[EnvironmentCheck]:
    """
    Run every check and log one line per result.

    cargo is the only required tool: with neither cross nor cargo the
    primary build cannot happen at all.
    """
    workspace = Path(config.build.workspace)
    output_root = Path(config.build.output_root)
    if not output_root.is_absolute():
        output_root = workspace / output_root

    checks = [
        check_python_version(),
        check_tool(config.build.cross_tool, runner, env),
        check_tool(config.build.cargo_tool, runner, env, required=True),
        check_tool(config.build.rustup_tool, runner, env),
        check_tool(config.auxiliary.shell, runner, env),
        check_tool("go", runner, env),
        check_disk_space(output_root),
    ]

    for check in checks:
        log_fn = _logger.info if check.passed else _logger.error
        log_fn(
            "Environment check",
            extra={
                "check": check.name,
                "passed": check.passed,
                "check_message": check.message,
                "value": check.value,
            },
        )

    passed_count = sum(1 for c in checks if c.passed)
    _logger.info(
        "Environment validation complete",
        extra={"passed": passed_count, "failed": len(checks) - passed_count},
    )
    return checks
