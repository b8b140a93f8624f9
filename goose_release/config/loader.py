# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader — reads YAML from disk and produces a validated, frozen
GooseReleaseConfig, then layers the environment on top.

The loading pipeline is deliberately simple and linear:
  1. Read raw bytes from the file
  2. Parse as YAML into a plain dict
  3. Hand the dict to pydantic for schema validation
  4. Apply ARCH / NO_TEMPORAL_DOWNLOAD / TEMPORAL_VERSION from the environment

If anything goes wrong at any step, we fail immediately with a clear error.
A broken config should stop the pipeline before it shells out to anything.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from goose_release.config.exceptions import ConfigLoadError, ConfigValidationError
from goose_release.config.schema import GooseReleaseConfig

ARCH_ENV = "ARCH"
NO_DOWNLOAD_ENV = "NO_TEMPORAL_DOWNLOAD"
VERSION_ENV = "TEMPORAL_VERSION"


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return the parsed dict.

    We explicitly check for file existence and readability before parsing,
    because yaml.safe_load gives cryptic errors on missing files.

    Raises:
        ConfigLoadError: If the file doesn't exist, isn't readable, or isn't valid YAML.
    """
    if not config_path.exists():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    if not config_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {config_path}")

    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err

    try:
        parsed = yaml.safe_load(raw_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )

    return parsed


def load_config(config_path: Path) -> GooseReleaseConfig:
    """
    Load and validate a config file into a GooseReleaseConfig object.

    Args:
        config_path: Path to a YAML config file.

    Returns:
        A fully validated, frozen GooseReleaseConfig instance.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations (missing fields, wrong types, unknown keys).
    """
    raw_data = _read_yaml_file(config_path)

    try:
        config = GooseReleaseConfig.model_validate(raw_data)
    except ValidationError as err:
        raise ConfigValidationError(
            f"Config validation failed for {config_path}:\n{err}"
        ) from err

    return config


def apply_environment_overrides(
    config: GooseReleaseConfig,
    environ: Mapping[str, str],
) -> GooseReleaseConfig:
    """
    Return a copy of `config` with the release environment variables applied.

    Empty values count as unset, matching `${VAR:-default}` in shell.
    NO_TEMPORAL_DOWNLOAD disables the fetch only when it is exactly "1".
    The architecture is copied through untouched; the target resolver is
    what rejects unknown tokens.
    """
    build = config.build
    external = config.external

    arch = environ.get(ARCH_ENV, "")
    if arch:
        build = build.model_copy(update={"arch": arch})

    version = environ.get(VERSION_ENV, "")
    if version:
        external = external.model_copy(update={"version": version})

    if environ.get(NO_DOWNLOAD_ENV, "0") == "1":
        external = external.model_copy(update={"enabled": False})

    return config.model_copy(update={"build": build, "external": external})
