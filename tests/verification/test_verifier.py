# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for primary artifact verification and recovery.
"""

from pathlib import Path

from conftest import X86_TRIPLE, FakeRunner, make_config, write_binary

from goose_release.pipeline.context import PipelineContext
from goose_release.pipeline.exceptions import ArtifactMissingError
from goose_release.pipeline.results import StepStatus
from goose_release.pipeline.runner import ReleasePipeline
from goose_release.verification.verifier import verify_primary


def _context(workspace: Path, **build: object) -> PipelineContext:
    config = make_config(workspace, build=build)
    return ReleasePipeline(config, runner=FakeRunner(), environ={}).context()


def test_canonical_binary_is_staged_first(workspace: Path) -> None:
    ctx = _context(workspace)
    write_binary(ctx.layout.primary_path)

    result = verify_primary(ctx)

    assert result.status is StepStatus.OK
    assert ctx.staging.names() == ["goose"]


def test_recovers_from_cross_output(workspace: Path, tmp_path: Path) -> None:
    ctx = _context(workspace, output_root=str(tmp_path / "dist"))
    write_binary(workspace / "target" / X86_TRIPLE / "release" / "goose", b"cross goose")

    result = verify_primary(ctx)

    assert result.status is StepStatus.RECOVERED
    assert result.path == tmp_path / "dist" / X86_TRIPLE / "release" / "goose"
    assert result.path.read_bytes() == b"cross goose"
    assert "goose" in ctx.staging


def test_missing_everywhere_is_artifact_missing(workspace: Path) -> None:
    ctx = _context(workspace)
    result = verify_primary(ctx)

    assert result.status is StepStatus.FAILED
    assert isinstance(result.error, ArtifactMissingError)
    assert result.error.step == "verifying_primary"
    assert str(result.error).startswith("goose binary not found in")
    assert len(ctx.staging) == 0


def test_directory_at_canonical_path_does_not_count(workspace: Path) -> None:
    ctx = _context(workspace)
    ctx.layout.primary_path.mkdir(parents=True)
    assert verify_primary(ctx).status is StepStatus.FAILED
