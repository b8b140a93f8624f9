# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Build environment preparation.

The goose checkout pins its toolchain with Hermit. In shell you would
`source ./bin/activate-hermit` and carry on; here the script is sourced in a
throwaway bash, the resulting environment is captured with `env -0`, and the
variables are handed to later steps as a plain value. The Python process's
own os.environ is never touched.

Both actions are advisory. If Hermit can't activate or rustup can't add the
target, the build still runs with whatever environment it has.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from goose_release.logging.logger import get_logger
from goose_release.targets.resolver import BuildTarget
from goose_release.toolchain.runner import CommandRunner

logger = get_logger(__name__)

_HERMIT_ACTIVATE = 'source "$1" >/dev/null 2>&1 && env -0'


@dataclass(frozen=True)
class ToolchainEnvironment:
    """Environment variables every toolchain invocation should run with."""

    variables: dict[str, str] = field(default_factory=dict)
    hermit_active: bool = False
    target_registered: bool = False

    def merged(self, overrides: Optional[Mapping[str, str]] = None) -> dict[str, str]:
        """A fresh copy of the variables with `overrides` layered on top."""
        env = dict(self.variables)
        if overrides:
            env.update(overrides)
        return env


def _parse_env_dump(dump: str) -> dict[str, str]:
    variables: dict[str, str] = {}
    for entry in dump.split("\0"):
        if not entry or "=" not in entry:
            continue
        key, value = entry.split("=", 1)
        variables[key] = value
    return variables


def activate_hermit(
    workspace: Path,
    script: str,
    runner: CommandRunner,
    base_env: Mapping[str, str],
) -> Optional[dict[str, str]]:
    """
    Source the Hermit activation script and return the environment it leaves.

    Returns None when the script is absent or activation fails.
    """
    script_path = workspace / script
    if not script_path.is_file():
        logger.debug("No Hermit activation script", extra={"path": str(script_path)})
        return None

    result = runner.run(
        ["bash", "-c", _HERMIT_ACTIVATE, "activate-hermit", str(script_path)],
        cwd=workspace,
        env=base_env,
    )
    if not result.succeeded:
        logger.warning(
            "Hermit activation failed; continuing with ambient environment",
            extra={"step": "preparing_environment", "exit_code": result.exit_code},
        )
        return None

    variables = _parse_env_dump(result.stdout)
    if not variables:
        logger.warning(
            "Hermit activation produced no environment; continuing with ambient environment",
            extra={"step": "preparing_environment"},
        )
        return None

    logger.info("Activated Hermit environment", extra={"step": "preparing_environment"})
    return variables


def register_target(
    target: BuildTarget,
    rustup_tool: str,
    runner: CommandRunner,
    env: Mapping[str, str],
) -> bool:
    """`rustup target add <triple>` when rustup is installed. Failure is ignored."""
    if runner.which(rustup_tool, env) is None:
        logger.debug("rustup not found; skipping target registration")
        return False

    result = runner.run([rustup_tool, "target", "add", target.triple], env=env)
    if not result.succeeded:
        logger.warning(
            "rustup could not add target",
            extra={"step": "preparing_environment", "triple": target.triple},
        )
        return False
    return True


def prepare_environment(
    workspace: Path,
    target: BuildTarget,
    runner: CommandRunner,
    base_env: Mapping[str, str],
    hermit_script: str = "bin/activate-hermit",
    rustup_tool: str = "rustup",
) -> ToolchainEnvironment:
    """
    Build the ToolchainEnvironment for this run. Never raises for tool failures.
    """
    hermit_env = activate_hermit(workspace, hermit_script, runner, base_env)
    variables = hermit_env if hermit_env is not None else dict(base_env)

    registered = register_target(target, rustup_tool, runner, variables)

    return ToolchainEnvironment(
        variables=variables,
        hermit_active=hermit_env is not None,
        target_registered=registered,
    )
