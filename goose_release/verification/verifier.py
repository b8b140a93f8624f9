# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Primary artifact verification.

The last gate before packaging. Without it a failed-but-exit-0 build would
ship a tarball with no goose in it.

Checks performed (in order):
1. Is the primary executable at its canonical path?
2. If not, is it at cross's per-target output path? Copy it over, once.
3. Still missing -> ArtifactMissingError.

On success the primary is the first entry registered in the staging set.
"""

import logging

from goose_release.logging.logger import get_logger
from goose_release.pipeline.context import PipelineContext, PipelineStage
from goose_release.pipeline.exceptions import ArtifactMissingError
from goose_release.pipeline.results import StepResult
from goose_release.utils.filesystem import atomic_copy

_logger: logging.Logger = get_logger(__name__)

STEP = PipelineStage.VERIFYING_PRIMARY.value


def verify_primary(ctx: PipelineContext) -> StepResult:
    layout = ctx.layout
    canonical = layout.primary_path

    if canonical.is_file():
        ctx.staging.add(layout.binary_name, canonical)
        _logger.info("Primary executable verified", extra={"step": STEP, "path": str(canonical)})
        return StepResult.ok(STEP, canonical)

    recovery_source = layout.cross_primary_path
    if recovery_source != canonical and recovery_source.is_file():
        try:
            atomic_copy(recovery_source, canonical)
        except OSError as err:
            _logger.error(
                "Recovery copy failed",
                extra={"step": STEP, "source": str(recovery_source), "error": str(err)},
            )
        else:
            if canonical.is_file():
                ctx.staging.add(layout.binary_name, canonical)
                _logger.info(
                    "Primary executable recovered from cross output",
                    extra={"step": STEP, "source": str(recovery_source), "path": str(canonical)},
                )
                return StepResult.recovered(STEP, canonical, detail=str(recovery_source))

    return StepResult.failed(
        STEP,
        ArtifactMissingError(f"{layout.binary_name} binary not found in {layout.canonical_dir}"),
    )
