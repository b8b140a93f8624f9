# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Data model shared by the pipeline steps.

StepResult is the contract between a step and the driver. A step reports
what happened; the driver decides whether a FAILED result ends the run.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from goose_release.pipeline.exceptions import ReleaseError
from goose_release.targets.resolver import BuildTarget


@dataclass(frozen=True)
class BuildOutcome:
    """What a toolchain invocation left behind."""

    succeeded: bool
    produced_path: Optional[Path] = None


@dataclass(frozen=True)
class ExternalArtifactSpec:
    """Coordinates of the third-party executable to download."""

    version: str
    architecture: str
    download_url: str
    archive_name: str


class StepStatus(str, Enum):
    OK = "ok"
    RECOVERED = "recovered"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    step: str
    status: StepStatus
    path: Optional[Path] = None
    error: Optional[ReleaseError] = None
    detail: str = ""

    @classmethod
    def ok(cls, step: str, path: Optional[Path] = None, detail: str = "") -> "StepResult":
        return cls(step=step, status=StepStatus.OK, path=path, detail=detail)

    @classmethod
    def recovered(cls, step: str, path: Path, detail: str = "") -> "StepResult":
        return cls(step=step, status=StepStatus.RECOVERED, path=path, detail=detail)

    @classmethod
    def skipped(cls, step: str, detail: str = "") -> "StepResult":
        return cls(step=step, status=StepStatus.SKIPPED, detail=detail)

    @classmethod
    def failed(cls, step: str, error: ReleaseError) -> "StepResult":
        return cls(step=step, status=StepStatus.FAILED, error=error, detail=str(error))

    @property
    def is_failure(self) -> bool:
        return self.status is StepStatus.FAILED


class StagingSet:
    """
    Ordered logical-name -> path entries, filled in as steps succeed.

    Re-adding a name replaces its path but keeps its original position, so
    archive order only depends on which steps succeeded.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Path] = {}

    def add(self, name: str, path: Path) -> None:
        self._entries[name] = path

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def names(self) -> list[str]:
        return list(self._entries)

    def present(self) -> list[tuple[str, Path]]:
        """Entries whose path is a regular file right now."""
        return [(name, path) for name, path in self._entries.items() if path.is_file()]


@dataclass(frozen=True)
class PackageManifest:
    """The archive and exactly what went into it."""

    archive_path: Path
    entries: tuple[str, ...]
    sha256: str


@dataclass
class PipelineReport:
    """Everything a caller needs after a successful run."""

    target: BuildTarget
    manifest: Optional[PackageManifest] = None
    results: list[StepResult] = field(default_factory=list)
    optional_entries: tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.manifest is not None

    @property
    def warnings(self) -> list[ReleaseError]:
        return [r.error for r in self.results if r.is_failure and r.error is not None]

    @property
    def optional_missing(self) -> list[str]:
        if self.manifest is None:
            return []
        return [
            name
            for name in self.optional_entries
            if name not in self.manifest.entries
        ]

    def result_for(self, step: str) -> Optional[StepResult]:
        for result in self.results:
            if result.step == step:
                return result
        return None
