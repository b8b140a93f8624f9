# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Release packager — stages every artifact that made it and writes one
tar.bz2 named after the target triple.

    <output_root>/<triple>/
    ├─ goose-package/                 fresh staging directory, every run
    │  ├─ goose
    │  ├─ temporal-service            (if the auxiliary build succeeded)
    │  └─ temporal                    (if the download succeeded)
    └─ goose-<triple>.tar.bz2

Archive members are flat, in staging order, and carry no host user or
group names, so two runs with the same inputs list identical members.
Nothing is ever added for an artifact that is not on disk.
"""

import logging
import shutil
import tarfile
from pathlib import Path

from goose_release.logging.logger import get_logger
from goose_release.pipeline.context import PipelineContext, PipelineStage
from goose_release.pipeline.exceptions import ArtifactMissingError, PackagingError
from goose_release.pipeline.layout import ArtifactLayout
from goose_release.pipeline.results import PackageManifest, StagingSet, StepResult
from goose_release.utils.filesystem import reset_directory
from goose_release.utils.hashing import compute_sha256

_logger: logging.Logger = get_logger(__name__)

STEP = PipelineStage.PACKAGING.value


def _normalize_member(info: tarfile.TarInfo) -> tarfile.TarInfo:
    info.uid = 0
    info.gid = 0
    info.uname = ""
    info.gname = ""
    return info


def write_archive(source_dir: Path, entries: list[str], archive_path: Path) -> Path:
    """
    Write `entries` (file names inside `source_dir`) to a bzip2 tarball.

    The archive is built under a temporary name and renamed into place, so
    an interrupted run never leaves a truncated tarball at the final path.
    """
    archive_path.parent.mkdir(parents=True, exist_ok=True)
    partial = archive_path.with_name(archive_path.name + ".partial")
    try:
        with tarfile.open(partial, "w:bz2") as tar:
            for name in entries:
                tar.add(str(source_dir / name), arcname=name, filter=_normalize_member)
        partial.replace(archive_path)
    except BaseException:
        if partial.exists():
            partial.unlink()
        raise
    return archive_path


def read_archive_entries(archive_path: Path) -> list[str]:
    """Member names of a produced archive, in archive order."""
    with tarfile.open(archive_path, "r:*") as tar:
        return tar.getnames()


def create_package(
    staging: StagingSet,
    layout: ArtifactLayout,
) -> PackageManifest:
    """
    Copy every present staged artifact into a fresh staging directory and
    archive it.

    Raises:
        ArtifactMissingError: The primary executable is not on disk.
        PackagingError: Any filesystem or tar failure.
    """
    present = staging.present()
    present_names = [name for name, _ in present]
    if layout.binary_name not in present_names:
        raise ArtifactMissingError(
            f"{layout.binary_name} is not on disk at packaging time", step=STEP
        )

    skipped = [name for name in staging.names() if name not in present_names]
    if skipped:
        _logger.debug("Staged artifacts missing on disk", extra={"step": STEP, "names": skipped})

    try:
        staging_dir = reset_directory(layout.staging_dir)
        for name, path in present:
            shutil.copy2(str(path), str(staging_dir / name))

        archive_path = layout.archive_path
        _logger.info(
            "Packaging artifact",
            extra={"step": STEP, "archive": str(archive_path), "entries": present_names},
        )
        write_archive(staging_dir, present_names, archive_path)
        digest = compute_sha256(archive_path)
    except (OSError, tarfile.TarError) as err:
        raise PackagingError(f"Cannot write release archive: {err}") from err

    return PackageManifest(
        archive_path=archive_path,
        entries=tuple(present_names),
        sha256=digest,
    )


def package_release(ctx: PipelineContext) -> StepResult:
    """Pipeline step: package whatever the earlier steps staged."""
    try:
        manifest = create_package(ctx.staging, ctx.layout)
    except (ArtifactMissingError, PackagingError) as err:
        return StepResult.failed(STEP, err)

    ctx.manifest = manifest
    _logger.info(
        "Archive written",
        extra={
            "step": STEP,
            "archive": str(manifest.archive_path),
            "sha256": manifest.sha256,
            "entries": list(manifest.entries),
        },
    )
    return StepResult.ok(STEP, manifest.archive_path)
