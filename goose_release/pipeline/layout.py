# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Canonical paths for every artifact the pipeline touches.

One place answers "where should X be" so the dispatcher, the verifier and
the packager can never disagree. Tree for x86_64 with the defaults:

    <workspace>/target/
    ├─ release/goose                                   host cargo output
    └─ x86_64-unknown-linux-gnu/
       ├─ release/
       │  ├─ goose                                     canonical primary (also cross output)
       │  ├─ temporal-service
       │  └─ temporal
       ├─ goose-package/                               staging directory
       └─ goose-x86_64-unknown-linux-gnu.tar.bz2       final archive

When `output_root` points somewhere other than `<workspace>/target`, the
cross output and the canonical path differ and the verifier's recovery copy
bridges them.
"""

from dataclasses import dataclass
from pathlib import Path

from goose_release.config.schema import GooseReleaseConfig
from goose_release.targets.resolver import BuildTarget

PROFILE_DIR = "release"
ARCHIVE_EXTENSION = "tar.bz2"


@dataclass(frozen=True)
class ArtifactLayout:
    workspace: Path
    output_root: Path
    target: BuildTarget
    binary_name: str = "goose"
    staging_dir_name: str = "goose-package"
    archive_prefix: str = "goose"

    @classmethod
    def from_config(cls, config: GooseReleaseConfig, target: BuildTarget) -> "ArtifactLayout":
        workspace = Path(config.build.workspace).resolve()
        output_root = Path(config.build.output_root)
        if not output_root.is_absolute():
            output_root = workspace / output_root
        return cls(
            workspace=workspace,
            output_root=output_root,
            target=target,
            binary_name=config.build.binary_name,
            staging_dir_name=config.package.staging_dir_name,
            archive_prefix=config.package.archive_prefix,
        )

    @property
    def cargo_target_dir(self) -> Path:
        """Where cargo and cross write when left to their own defaults."""
        return self.workspace / "target"

    @property
    def target_dir(self) -> Path:
        return self.output_root / self.target.triple

    @property
    def canonical_dir(self) -> Path:
        return self.target_dir / PROFILE_DIR

    @property
    def primary_path(self) -> Path:
        """The one location the primary executable must end up at."""
        return self.canonical_dir / self.binary_name

    @property
    def host_primary_path(self) -> Path:
        return self.cargo_target_dir / PROFILE_DIR / self.binary_name

    @property
    def cross_primary_path(self) -> Path:
        return self.cargo_target_dir / self.target.triple / PROFILE_DIR / self.binary_name

    def staged_path(self, name: str) -> Path:
        """Canonical location for a companion artifact staged next to the primary."""
        return self.canonical_dir / name

    @property
    def staging_dir(self) -> Path:
        return self.target_dir / self.staging_dir_name

    @property
    def archive_path(self) -> Path:
        return self.target_dir / f"{self.archive_prefix}-{self.target.triple}.{ARCHIVE_EXTENSION}"
