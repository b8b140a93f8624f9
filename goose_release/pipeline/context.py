# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Per-run state handed to every pipeline step.

Nothing in a step reads os.environ or module globals for build inputs. The
config, the resolved target, the toolchain environment and the staging set
all travel in here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import httpx

from goose_release.config.schema import GooseReleaseConfig
from goose_release.pipeline.layout import ArtifactLayout
from goose_release.pipeline.results import PackageManifest, StagingSet
from goose_release.targets.resolver import BuildTarget
from goose_release.toolchain.environment import ToolchainEnvironment
from goose_release.toolchain.runner import CommandRunner


class PipelineStage(str, Enum):
    RESOLVING = "resolving"
    PREPARING_ENVIRONMENT = "preparing_environment"
    BUILDING_PRIMARY = "building_primary"
    VERIFYING_PRIMARY = "verifying_primary"
    BUILDING_AUXILIARY = "building_auxiliary"
    FETCHING_EXTERNAL = "fetching_external"
    PACKAGING = "packaging"
    DONE = "done"


@dataclass
class PipelineContext:
    config: GooseReleaseConfig
    target: BuildTarget
    layout: ArtifactLayout
    runner: CommandRunner
    environment: ToolchainEnvironment = field(default_factory=ToolchainEnvironment)
    staging: StagingSet = field(default_factory=StagingSet)
    # Only consulted when the external fetch is enabled.
    http_transport: Optional[httpx.BaseTransport] = None
    # Set by the packaging step.
    manifest: Optional[PackageManifest] = None
