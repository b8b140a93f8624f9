# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The release pipeline driver.

    resolving -> preparing_environment -> building_primary -> verifying_primary
      -> building_auxiliary (best-effort) -> fetching_external (best-effort)
      -> packaging -> done

Target resolution happens before the step table runs and before anything
touches the environment, the disk or the network. After that each step
returns a StepResult; the table below says whether a FAILED result from that
step aborts the run (its error is raised) or is logged and skipped over.
"""

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Optional

import httpx

from goose_release.build.auxiliary import build_auxiliary
from goose_release.build.primary import build_primary, cross_command, host_command
from goose_release.config.schema import GooseReleaseConfig
from goose_release.fetch.fetcher import build_artifact_spec, fetch_external
from goose_release.logging.logger import get_logger
from goose_release.packaging.packager import package_release
from goose_release.pipeline.context import PipelineContext, PipelineStage
from goose_release.pipeline.exceptions import (
    AuxiliaryBuildWarning,
    ExternalFetchWarning,
    RecoverableStepError,
    ReleaseError,
)
from goose_release.pipeline.layout import ArtifactLayout
from goose_release.pipeline.results import PipelineReport, StepResult, StepStatus
from goose_release.targets.resolver import resolve_target
from goose_release.toolchain.environment import ToolchainEnvironment, prepare_environment
from goose_release.toolchain.runner import CommandRunner
from goose_release.verification.verifier import verify_primary

logger = get_logger(__name__)


def _prepare_environment(ctx: PipelineContext, base_env: Mapping[str, str]) -> StepResult:
    stage = PipelineStage.PREPARING_ENVIRONMENT.value
    ctx.environment = prepare_environment(
        ctx.layout.workspace,
        ctx.target,
        ctx.runner,
        base_env,
        hermit_script=ctx.config.build.hermit_script,
        rustup_tool=ctx.config.build.rustup_tool,
    )
    return StepResult.ok(
        stage,
        detail=(
            f"hermit={'on' if ctx.environment.hermit_active else 'off'} "
            f"rustup_target={'added' if ctx.environment.target_registered else 'skipped'}"
        ),
    )


@dataclass(frozen=True)
class PipelineStep:
    stage: PipelineStage
    run: Callable[[PipelineContext], StepResult]
    fatal: bool
    # Wraps unexpected exceptions from best-effort steps.
    warning_type: type[RecoverableStepError] = RecoverableStepError


class ReleasePipeline:
    """
    Runs the whole release once.

    Usage:
        report = ReleasePipeline(config).run()
        report.manifest.archive_path  # the tarball

    Fatal failures raise a ReleaseError subclass whose `step` names the
    stage that failed. Best-effort failures end up in report.warnings.
    """

    def __init__(
        self,
        config: GooseReleaseConfig,
        runner: Optional[CommandRunner] = None,
        environ: Optional[Mapping[str, str]] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._runner = runner or CommandRunner()
        self._environ = dict(environ) if environ is not None else dict(os.environ)
        self._http_transport = http_transport
        self.stage = PipelineStage.RESOLVING

    def _steps(self) -> tuple[PipelineStep, ...]:
        return (
            PipelineStep(
                PipelineStage.PREPARING_ENVIRONMENT,
                lambda ctx: _prepare_environment(ctx, self._environ),
                fatal=False,
            ),
            PipelineStep(PipelineStage.BUILDING_PRIMARY, build_primary, fatal=True),
            PipelineStep(PipelineStage.VERIFYING_PRIMARY, verify_primary, fatal=True),
            PipelineStep(
                PipelineStage.BUILDING_AUXILIARY,
                build_auxiliary,
                fatal=False,
                warning_type=AuxiliaryBuildWarning,
            ),
            PipelineStep(
                PipelineStage.FETCHING_EXTERNAL,
                fetch_external,
                fatal=False,
                warning_type=ExternalFetchWarning,
            ),
            PipelineStep(PipelineStage.PACKAGING, package_release, fatal=True),
        )

    def context(self) -> PipelineContext:
        """
        Resolve the target and lay out paths, with no side effects.

        The toolchain environment starts out as the ambient one, so builds
        still get PATH and friends if environment preparation blows up.

        Raises:
            UnsupportedTargetError: Unknown architecture token.
        """
        self.stage = PipelineStage.RESOLVING
        target = resolve_target(self._config.build.arch)
        return PipelineContext(
            config=self._config,
            target=target,
            layout=ArtifactLayout.from_config(self._config, target),
            runner=self._runner,
            environment=ToolchainEnvironment(variables=dict(self._environ)),
            http_transport=self._http_transport,
        )

    def _run_step(self, step: PipelineStep, ctx: PipelineContext) -> StepResult:
        if step.fatal:
            return step.run(ctx)
        try:
            return step.run(ctx)
        except Exception as err:
            logger.warning(
                "Best-effort step raised unexpectedly",
                extra={"step": step.stage.value, "error": str(err)},
                exc_info=True,
            )
            return StepResult.failed(step.stage.value, step.warning_type(str(err)))

    def run(self) -> PipelineReport:
        ctx = self.context()
        logger.info(
            "Starting release pipeline",
            extra={
                "step": PipelineStage.RESOLVING.value,
                "arch": ctx.target.architecture,
                "triple": ctx.target.triple,
                "output_dir": str(ctx.layout.target_dir),
            },
        )

        report = PipelineReport(
            target=ctx.target,
            optional_entries=(
                self._config.auxiliary.binary_name,
                self._config.external.binary_name,
            ),
        )

        for step in self._steps():
            self.stage = step.stage
            result = self._run_step(step, ctx)
            report.results.append(result)

            if result.status is StepStatus.FAILED:
                error = result.error or ReleaseError(result.detail, step=step.stage.value)
                if step.fatal:
                    raise error
                logger.warning(
                    f"{error}; continuing without it",
                    extra={"step": step.stage.value, "error_type": type(error).__name__},
                )
            else:
                logger.info(
                    "Step finished",
                    extra={
                        "step": step.stage.value,
                        "status": result.status.value,
                        "path": str(result.path) if result.path else None,
                        "detail": result.detail,
                    },
                )

        self.stage = PipelineStage.DONE
        report.manifest = ctx.manifest
        return report


def plan_release(
    config: GooseReleaseConfig,
    runner: Optional[CommandRunner] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> dict[str, object]:
    """
    What `run` would do, for --dry-run. Only looks things up; executes nothing.

    Raises:
        UnsupportedTargetError: Unknown architecture token.
    """
    runner = runner or CommandRunner()
    ctx = ReleasePipeline(config, runner=runner, environ=environ).context()
    env = dict(environ) if environ is not None else dict(os.environ)
    uses_cross = runner.which(config.build.cross_tool, env) is not None

    plan: dict[str, object] = {
        "arch": ctx.target.architecture,
        "triple": ctx.target.triple,
        "goos": ctx.target.platform_os,
        "goarch": ctx.target.platform_arch,
        "primary_command": cross_command(ctx) if uses_cross else host_command(ctx),
        "primary_path": str(ctx.layout.primary_path),
        "staging_dir": str(ctx.layout.staging_dir),
        "archive_path": str(ctx.layout.archive_path),
        "auxiliary_enabled": config.auxiliary.enabled,
        "external_enabled": config.external.enabled,
    }
    if config.external.enabled:
        plan["external_url"] = build_artifact_spec(config.external, ctx.target).download_url
    return plan
