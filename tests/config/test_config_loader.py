# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the config loader and environment overrides.

We test:
  1. Valid YAML loads into a frozen config with layout defaults
  2. Missing required fields / unknown keys raise ConfigValidationError
  3. Broken or missing files raise ConfigLoadError
  4. ARCH / NO_TEMPORAL_DOWNLOAD / TEMPORAL_VERSION behave like the shell script
"""

import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from goose_release.config.exceptions import ConfigLoadError, ConfigValidationError
from goose_release.config.loader import apply_environment_overrides, load_config
from goose_release.config.schema import DEFAULT_TEMPORAL_URL_TEMPLATE, default_config


class TestLoadValidConfig:
    def test_loads_minimal_valid_config(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.global_config.project_name == "goose-test"
        assert config.global_config.log_level == "DEBUG"

    def test_sections_default_to_goose_layout(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.build.arch == "x86_64"
        assert config.build.cargo_package == "goose-cli"
        assert config.build.output_root == "target"
        assert config.auxiliary.directory == "temporal-service"
        assert config.external.enabled is True
        assert config.external.version == "1.3.0"
        assert config.external.url_template == DEFAULT_TEMPORAL_URL_TEMPLATE
        assert config.package.staging_dir_name == "goose-package"

    def test_loads_sample_config_shipped_with_repo(self) -> None:
        sample = Path(__file__).resolve().parents[2] / "configs" / "release.yaml"
        assert load_config(sample) == default_config()

    def test_config_is_frozen(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        with pytest.raises(ValidationError):
            config.build.arch = "aarch64"  # type: ignore[misc]


class TestInvalidConfig:
    def test_missing_required_field(self, invalid_config_file: Path) -> None:
        with pytest.raises(ConfigValidationError, match="config_version"):
            load_config(invalid_config_file)

    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "extra.yaml"
        path.write_text(
            textwrap.dedent("""\
                global:
                  config_version: "1.0.0"
                build:
                  compiler: "gcc"
            """),
            encoding="utf-8",
        )
        with pytest.raises(ConfigValidationError):
            load_config(path)

    def test_bad_log_level_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "level.yaml"
        path.write_text('global:\n  config_version: "1.0.0"\n  log_level: "LOUD"\n')
        with pytest.raises(ConfigValidationError):
            load_config(path)

    def test_broken_yaml(self, broken_yaml_file: Path) -> None:
        with pytest.raises(ConfigLoadError, match="Invalid YAML"):
            load_config(broken_yaml_file)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigLoadError, match="mapping"):
            load_config(path)


class TestEnvironmentOverrides:
    def test_empty_environment_changes_nothing(self) -> None:
        config = default_config()
        assert apply_environment_overrides(config, {}) == config

    def test_arch_and_version(self) -> None:
        config = apply_environment_overrides(
            default_config(), {"ARCH": "aarch64", "TEMPORAL_VERSION": "1.4.1"}
        )
        assert config.build.arch == "aarch64"
        assert config.external.version == "1.4.1"
        assert config.external.enabled is True

    def test_empty_values_count_as_unset(self) -> None:
        config = apply_environment_overrides(
            default_config(), {"ARCH": "", "TEMPORAL_VERSION": ""}
        )
        assert config.build.arch == "x86_64"
        assert config.external.version == "1.3.0"

    @pytest.mark.parametrize("value,enabled", [("1", False), ("0", True), ("true", True)])
    def test_no_download_only_disables_on_exactly_one(self, value: str, enabled: bool) -> None:
        config = apply_environment_overrides(default_config(), {"NO_TEMPORAL_DOWNLOAD": value})
        assert config.external.enabled is enabled

    def test_unknown_arch_passes_through_to_resolver(self) -> None:
        config = apply_environment_overrides(default_config(), {"ARCH": "mips"})
        assert config.build.arch == "mips"
