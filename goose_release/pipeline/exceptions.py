# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Error taxonomy for the release pipeline.

Two channels:
  - fatal errors are raised by the driver and end the run with a non-zero exit
  - recoverable errors (the *Warning classes) only ever travel inside a
    StepResult; nothing raises them past their own step

Every error remembers which step produced it so the final banner can name it.
"""


class ReleaseError(Exception):
    """Base for everything the pipeline reports."""

    default_step: str = "pipeline"

    def __init__(self, message: str, step: str | None = None) -> None:
        super().__init__(message)
        self.step = step or self.default_step


class UnsupportedTargetError(ReleaseError):
    """The architecture token is outside the supported set."""

    default_step = "resolving"


class PrimaryBuildError(ReleaseError):
    """Neither cross nor the host compiler produced the primary executable."""

    default_step = "building_primary"


class ArtifactMissingError(ReleaseError):
    """The primary executable is absent from its canonical path after recovery."""

    default_step = "verifying_primary"


class PackagingError(ReleaseError):
    """The staging directory or archive could not be written."""

    default_step = "packaging"


class RecoverableStepError(ReleaseError):
    """A best-effort step failed. Logged, never raised by the driver."""


class AuxiliaryBuildWarning(RecoverableStepError):
    default_step = "building_auxiliary"


class ExternalFetchWarning(RecoverableStepError):
    default_step = "fetching_external"
