# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Temporal CLI download, best-effort.

The release archive is keyed by (version, os, arch) on GitHub releases and
contains a single `temporal` executable. The flow:

  1. format the URL template for this target
  2. stream the .tar.gz into a temporary directory
  3. pull out the one regular file named `temporal`; no other member is
     ever written, so hostile paths and links in the tarball are inert
  4. chmod +x and move it next to the primary executable

Everything after "enabled" depends on GitHub being up, so every failure is
turned into an ExternalFetchWarning result and the pipeline moves on.
"""

import logging
import tarfile
import tempfile
import zlib
from pathlib import Path, PurePosixPath

import httpx

from goose_release.config.schema import ExternalConfig
from goose_release.logging.logger import get_logger
from goose_release.pipeline.context import PipelineContext, PipelineStage
from goose_release.pipeline.exceptions import ExternalFetchWarning
from goose_release.pipeline.results import ExternalArtifactSpec, StepResult
from goose_release.targets.resolver import BuildTarget
from goose_release.utils.filesystem import atomic_write_stream, make_executable

_logger: logging.Logger = get_logger(__name__)

STEP = PipelineStage.FETCHING_EXTERNAL.value

_STREAM_CHUNK_SIZE = 1024 * 1024


def build_artifact_spec(config: ExternalConfig, target: BuildTarget) -> ExternalArtifactSpec:
    url = config.url_template.format(
        version=config.version,
        os=target.platform_os,
        arch=target.platform_arch,
    )
    archive_name = PurePosixPath(httpx.URL(url).path).name or f"{config.binary_name}.tar.gz"
    return ExternalArtifactSpec(
        version=config.version,
        architecture=target.platform_arch,
        download_url=url,
        archive_name=archive_name,
    )


def download_archive(client: httpx.Client, spec: ExternalArtifactSpec, directory: Path) -> Path:
    """
    Stream the release archive into `directory`.

    Raises:
        httpx.HTTPError: Connection problems and non-2xx responses.
    """
    archive_path = directory / spec.archive_name
    with client.stream("GET", spec.download_url) as response:
        response.raise_for_status()
        with open(archive_path, "wb") as fh:
            for chunk in response.iter_bytes(_STREAM_CHUNK_SIZE):
                fh.write(chunk)

    _logger.debug(
        "Downloaded archive",
        extra={"step": STEP, "path": str(archive_path), "bytes": archive_path.stat().st_size},
    )
    return archive_path


def extract_executable(archive_path: Path, binary_name: str, destination: Path) -> Path:
    """
    Copy the single `binary_name` member out of the archive to `destination`.

    Raises:
        ExternalFetchWarning: The archive has zero or several such members.
        tarfile.TarError: The archive is not a readable tarball.
    """
    with tarfile.open(archive_path, "r:*") as tar:
        candidates = [
            member
            for member in tar.getmembers()
            if member.isfile() and PurePosixPath(member.name).name == binary_name
        ]
        if len(candidates) != 1:
            raise ExternalFetchWarning(
                f"Expected exactly one '{binary_name}' in {archive_path.name}, "
                f"found {len(candidates)}"
            )

        source = tar.extractfile(candidates[0])
        if source is None:
            raise ExternalFetchWarning(f"Cannot read '{binary_name}' from {archive_path.name}")
        with source:
            atomic_write_stream(destination, source)

    make_executable(destination)
    return destination


def fetch_external(ctx: PipelineContext) -> StepResult:
    """
    Pipeline step: download and stage the external executable.

    With the fetch disabled this returns SKIPPED without constructing an
    HTTP client.
    """
    external = ctx.config.external
    if not external.enabled:
        _logger.info("Skipping temporal CLI download", extra={"step": STEP})
        return StepResult.skipped(STEP, "external download disabled")

    spec = build_artifact_spec(external, ctx.target)
    destination = ctx.layout.staged_path(external.binary_name)
    _logger.info(
        "Downloading temporal CLI",
        extra={
            "step": STEP,
            "version": spec.version,
            "arch": spec.architecture,
            "url": spec.download_url,
        },
    )

    try:
        with tempfile.TemporaryDirectory(prefix="goose_fetch_") as tmp_dir:
            with httpx.Client(
                transport=ctx.http_transport,
                timeout=external.timeout_seconds,
                follow_redirects=True,
            ) as client:
                archive_path = download_archive(client, spec, Path(tmp_dir))
            extract_executable(archive_path, external.binary_name, destination)
    except ExternalFetchWarning as warning:
        return StepResult.failed(STEP, warning)
    except httpx.HTTPError as err:
        return StepResult.failed(
            STEP, ExternalFetchWarning(f"Failed to download temporal CLI: {err}")
        )
    except (tarfile.TarError, EOFError, zlib.error) as err:
        return StepResult.failed(
            STEP, ExternalFetchWarning(f"Malformed archive {spec.archive_name}: {err}")
        )
    except OSError as err:
        return StepResult.failed(
            STEP, ExternalFetchWarning(f"Cannot stage temporal CLI: {err}")
        )

    ctx.staging.add(external.binary_name, destination)
    _logger.info("temporal CLI staged", extra={"step": STEP, "path": str(destination)})
    return StepResult.ok(STEP, destination)
