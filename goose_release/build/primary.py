# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Primary executable build: cross when available, host cargo otherwise.

cross runs the build inside a container for the requested triple and
leaves the binary in cargo's per-target directory. Without cross, a plain
`cargo build --release` targets the host and writes to target/release/.
Either way the binary is copied into the canonical per-target location
afterwards, and a leftover canonical binary from an earlier run is removed
before the build starts.

The host fallback only yields a correct binary when host and target share an
architecture; a mismatch is logged but not refused.
"""

import logging
from pathlib import Path

from goose_release.logging.logger import get_logger
from goose_release.pipeline.context import PipelineContext, PipelineStage
from goose_release.pipeline.exceptions import PrimaryBuildError
from goose_release.pipeline.layout import ArtifactLayout
from goose_release.pipeline.results import BuildOutcome, StepResult
from goose_release.runtime.environment import host_architecture
from goose_release.utils.filesystem import atomic_copy

_logger: logging.Logger = get_logger(__name__)

STEP = PipelineStage.BUILDING_PRIMARY.value


def cross_command(ctx: PipelineContext) -> list[str]:
    build = ctx.config.build
    argv = [
        build.cross_tool,
        "build",
        "--release",
        "--target",
        ctx.target.triple,
        "-p",
        build.cargo_package,
    ]
    if build.verbose_cross:
        argv.append("-vv")
    return argv


def host_command(ctx: PipelineContext) -> list[str]:
    build = ctx.config.build
    return [build.cargo_tool, "build", "--release", "-p", build.cargo_package]


def _build_with_cross(ctx: PipelineContext, env: dict[str, str]) -> BuildOutcome:
    _logger.info("Using cross to build", extra={"step": STEP, "triple": ctx.target.triple})
    result = ctx.runner.run(
        cross_command(ctx),
        cwd=ctx.layout.workspace,
        env=env,
        timeout_seconds=ctx.config.build.build_timeout_seconds,
    )
    if not result.succeeded:
        return BuildOutcome(succeeded=False)

    cross_output = ctx.layout.cross_primary_path
    if not cross_output.is_file():
        return BuildOutcome(succeeded=True)

    canonical = atomic_copy(cross_output, ctx.layout.primary_path)
    return BuildOutcome(succeeded=True, produced_path=canonical)


def _build_with_host_cargo(ctx: PipelineContext, env: dict[str, str]) -> BuildOutcome:
    _logger.info("cross not found; building with cargo for host", extra={"step": STEP})

    host_arch = host_architecture()
    if host_arch != ctx.target.architecture:
        _logger.warning(
            "Host architecture differs from target; the packaged binary will be for the host",
            extra={"step": STEP, "host": host_arch, "target": ctx.target.architecture},
        )

    result = ctx.runner.run(
        host_command(ctx),
        cwd=ctx.layout.workspace,
        env=env,
        timeout_seconds=ctx.config.build.build_timeout_seconds,
    )
    if not result.succeeded:
        return BuildOutcome(succeeded=False)

    host_output = ctx.layout.host_primary_path
    canonical = ctx.layout.primary_path
    if not host_output.is_file():
        # cargo said yes but left nothing behind; the verifier makes the call.
        return BuildOutcome(succeeded=True)

    atomic_copy(host_output, canonical)
    _logger.debug(
        "Copied host build into canonical location",
        extra={"source": str(host_output), "destination": str(canonical)},
    )
    return BuildOutcome(succeeded=True, produced_path=canonical)


def _discard_stale_primary(layout: ArtifactLayout, toolchain_output: Path) -> None:
    # The canonical path only ever holds output from the current run.
    canonical = layout.primary_path
    if canonical != toolchain_output and canonical.is_file():
        canonical.unlink()
        _logger.debug("Removed stale primary executable", extra={"path": str(canonical)})


def dispatch_primary_build(ctx: PipelineContext) -> BuildOutcome:
    """Run whichever toolchain is available and report what it produced."""
    env = ctx.environment.merged()
    if ctx.runner.which(ctx.config.build.cross_tool, env) is not None:
        _discard_stale_primary(ctx.layout, ctx.layout.cross_primary_path)
        return _build_with_cross(ctx, env)
    _discard_stale_primary(ctx.layout, ctx.layout.host_primary_path)
    return _build_with_host_cargo(ctx, env)


def build_primary(ctx: PipelineContext) -> StepResult:
    """
    Pipeline step: build the primary executable.

    A non-zero exit from either toolchain, or a failed normalization copy,
    comes back as a FAILED result carrying PrimaryBuildError.
    """
    _logger.info(
        "Building primary executable",
        extra={"step": STEP, "package": ctx.config.build.cargo_package, "triple": ctx.target.triple},
    )
    try:
        outcome = dispatch_primary_build(ctx)
    except OSError as err:
        return StepResult.failed(
            STEP, PrimaryBuildError(f"Could not place primary executable: {err}")
        )

    if not outcome.succeeded:
        return StepResult.failed(
            STEP,
            PrimaryBuildError(
                f"Build of {ctx.config.build.cargo_package} for {ctx.target.triple} failed"
            ),
        )

    _logger.info(
        "Primary build finished",
        extra={"step": STEP, "path": str(outcome.produced_path) if outcome.produced_path else None},
    )
    return StepResult.ok(STEP, outcome.produced_path)
