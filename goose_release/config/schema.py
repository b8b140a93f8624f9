# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for goose-release.

Every config section gets its own frozen pydantic model. Frozen means once
you create it, you cannot mutate it. Environment overrides produce a new
copy instead of patching the loaded one.

The models use pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked

Defaults reproduce the goose repository layout, so running without a config
file builds `goose-cli` out of the current checkout.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_TEMPORAL_URL_TEMPLATE = (
    "https://github.com/temporalio/cli/releases/download/"
    "v{version}/temporal_cli_{version}_{os}_{arch}.tar.gz"
)


class GlobalConfig(BaseModel):
    """
    Cross-cutting settings: project identity and observability.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    project_name: str = Field(
        default="goose", description="Human-readable project identifier"
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_VALID_LOG_LEVELS)}")
        return upper


class BuildConfig(BaseModel):
    """
    Where the checkout lives, where outputs go, and which tools build the
    primary executable.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    arch: str = Field(
        default="x86_64",
        description="Architecture token; validated by the target resolver, not here",
    )
    workspace: str = Field(default=".", description="Root of the goose checkout")
    output_root: str = Field(
        default="target",
        description="Root of the per-target output tree, relative to the workspace",
    )
    cargo_package: str = Field(default="goose-cli", description="Cargo package to build")
    binary_name: str = Field(default="goose", description="Primary executable file name")
    cross_tool: str = Field(default="cross", description="Cross-compilation tool executable")
    cargo_tool: str = Field(default="cargo", description="Host-native compiler driver")
    rustup_tool: str = Field(default="rustup", description="Toolchain manager executable")
    hermit_script: str = Field(
        default="bin/activate-hermit",
        description="Hermit activation script, relative to the workspace",
    )
    verbose_cross: bool = Field(default=True, description="Pass -vv to cross")
    build_timeout_seconds: Optional[int] = Field(
        default=None,
        ge=1,
        description="Hard timeout per primary build; None waits indefinitely",
    )


class AuxiliaryConfig(BaseModel):
    """The Go temporal-service companion binary."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    enabled: bool = Field(default=True)
    directory: str = Field(
        default="temporal-service",
        description="Service source directory, relative to the workspace",
    )
    script: str = Field(default="build.sh", description="Build script inside `directory`")
    binary_name: str = Field(
        default="temporal-service",
        description="Binary the script leaves in `directory`, also its archive name",
    )
    shell: str = Field(default="bash", description="Interpreter used to run the script")
    timeout_seconds: Optional[int] = Field(default=None, ge=1)


class ExternalConfig(BaseModel):
    """The optional Temporal CLI pulled from GitHub releases."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    enabled: bool = Field(default=True, description="False means no network access at all")
    version: str = Field(default="1.3.0", min_length=1)
    url_template: str = Field(
        default=DEFAULT_TEMPORAL_URL_TEMPLATE,
        description="Formatted with {version}, {os} and {arch}",
    )
    binary_name: str = Field(default="temporal")
    timeout_seconds: float = Field(default=60.0, gt=0)


class PackageConfig(BaseModel):
    """Staging directory and archive naming."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    staging_dir_name: str = Field(default="goose-package")
    archive_prefix: str = Field(
        default="goose",
        description="Archive is named <prefix>-<triple>.tar.bz2",
    )


class GooseReleaseConfig(BaseModel):
    """
    Top-level config container.

    Only `global:` is required in YAML. Every other section falls back to
    the defaults above.
    """

    model_config = ConfigDict(
        frozen=True, extra="forbid", validate_default=True, populate_by_name=True
    )

    global_config: GlobalConfig = Field(alias="global")
    build: BuildConfig = Field(default_factory=BuildConfig)
    auxiliary: AuxiliaryConfig = Field(default_factory=AuxiliaryConfig)
    external: ExternalConfig = Field(default_factory=ExternalConfig)
    package: PackageConfig = Field(default_factory=PackageConfig)


def default_config() -> GooseReleaseConfig:
    """The config used when no --config file is given."""
    return GooseReleaseConfig(global_config=GlobalConfig(config_version="1.0.0"))
