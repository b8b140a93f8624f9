# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
temporal-service build (Go), best-effort.

The service ships its own build.sh that honors GOOS/GOARCH. We strip CRLF
from the script first, run it from the service directory, and move the
resulting binary next to the primary executable. Any problem produces an
AuxiliaryBuildWarning result; a CLI-only archive is still a valid release.
"""

from goose_release.logging.logger import get_logger
from goose_release.pipeline.context import PipelineContext, PipelineStage
from goose_release.pipeline.exceptions import AuxiliaryBuildWarning
from goose_release.pipeline.results import BuildOutcome, StepResult
from goose_release.utils.filesystem import atomic_move, normalize_line_endings

logger = get_logger(__name__)

STEP = PipelineStage.BUILDING_AUXILIARY.value


def run_build_script(ctx: PipelineContext) -> BuildOutcome:
    """
    Normalize and run the service build script.

    Raises:
        AuxiliaryBuildWarning: Script missing or its line endings can't be fixed.
    """
    aux = ctx.config.auxiliary
    service_dir = ctx.layout.workspace / aux.directory
    script = service_dir / aux.script

    if not script.is_file():
        raise AuxiliaryBuildWarning(f"Build script not found: {script}")

    try:
        if normalize_line_endings(script):
            logger.info("Converted build script to LF line endings", extra={"path": str(script)})
    except OSError as err:
        raise AuxiliaryBuildWarning(f"Cannot normalize {script}: {err}") from err

    env = ctx.environment.merged(
        {"GOOS": ctx.target.platform_os, "GOARCH": ctx.target.platform_arch}
    )
    result = ctx.runner.run(
        [aux.shell, aux.script],
        cwd=service_dir,
        env=env,
        timeout_seconds=aux.timeout_seconds,
    )
    if not result.succeeded:
        return BuildOutcome(succeeded=False)

    produced = service_dir / aux.binary_name
    return BuildOutcome(succeeded=True, produced_path=produced if produced.is_file() else None)


def build_auxiliary(ctx: PipelineContext) -> StepResult:
    aux = ctx.config.auxiliary
    if not aux.enabled:
        return StepResult.skipped(STEP, "auxiliary build disabled")

    logger.info(
        "Building temporal-service",
        extra={"step": STEP, "goos": ctx.target.platform_os, "goarch": ctx.target.platform_arch},
    )

    try:
        outcome = run_build_script(ctx)
    except AuxiliaryBuildWarning as warning:
        return StepResult.failed(STEP, warning)

    if not outcome.succeeded:
        return StepResult.failed(
            STEP, AuxiliaryBuildWarning(f"{aux.directory}/{aux.script} exited non-zero")
        )
    if outcome.produced_path is None:
        return StepResult.failed(
            STEP,
            AuxiliaryBuildWarning(f"Build script succeeded but left no {aux.binary_name} binary"),
        )

    destination = ctx.layout.staged_path(aux.binary_name)
    try:
        atomic_move(outcome.produced_path, destination)
    except OSError as err:
        return StepResult.failed(
            STEP, AuxiliaryBuildWarning(f"Cannot stage {aux.binary_name}: {err}")
        )

    ctx.staging.add(aux.binary_name, destination)
    logger.info("temporal-service staged", extra={"step": STEP, "path": str(destination)})
    return StepResult.ok(STEP, destination)
