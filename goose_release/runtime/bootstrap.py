# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for goose-release.

The one-time setup that happens before the pipeline does anything:
  1. Validate the interpreter version
  2. Apply the configured log level and optional log file
  3. Log a startup line with host information
"""

from pathlib import Path

from goose_release.config.schema import GlobalConfig
from goose_release.logging.logger import apply_log_level, get_logger
from goose_release.runtime.environment import check_minimum_python, get_system_info


def bootstrap(config: GlobalConfig, log_level: str | None = None) -> None:
    """
    Run the bootstrap sequence.

    Args:
        config: The validated global configuration.
        log_level: CLI override; takes precedence over config.log_level.
    """
    check_minimum_python()

    level = log_level or config.log_level
    log_file = Path(config.log_file) if config.log_file is not None else None

    logger = get_logger("goose_release.runtime", log_level=level, log_file=log_file)
    apply_log_level(level, log_file)

    system_info = get_system_info()
    logger.info(
        "goose-release bootstrap complete",
        extra={
            "project": config.project_name,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "host_arch": system_info.host_arch,
        },
    )
