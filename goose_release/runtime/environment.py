# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Host environment facts for goose-release.

The primary build falls back to a host cargo build when cross is missing,
which only produces a usable binary when the host CPU matches the target.
`host_architecture` is what lets the dispatcher say so out loud.
"""

import platform
import sys
from typing import NamedTuple

MINIMUM_PYTHON_MAJOR = 3
MINIMUM_PYTHON_MINOR = 11

# platform.machine() spellings -> architecture tokens the resolver knows
_MACHINE_ALIASES: dict[str, str] = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}


class SystemInfo(NamedTuple):
    """What the bootstrap and `goose-release info` report about the host."""

    python_version: str
    platform: str
    machine: str
    host_arch: str
    hostname: str


def host_architecture(machine: str | None = None) -> str:
    """The host CPU as an architecture token, or the raw machine string if unknown."""
    machine = platform.machine() if machine is None else machine
    return _MACHINE_ALIASES.get(machine.lower(), machine)


def check_minimum_python() -> None:
    """
    Refuse to run on an interpreter older than 3.11.

    Raises:
        RuntimeError: If the running Python is too old.
    """
    if sys.version_info[:2] < (MINIMUM_PYTHON_MAJOR, MINIMUM_PYTHON_MINOR):
        raise RuntimeError(
            f"goose-release requires Python >= {MINIMUM_PYTHON_MAJOR}.{MINIMUM_PYTHON_MINOR}, "
            f"running {platform.python_version()}"
        )


def get_system_info() -> SystemInfo:
    machine = platform.machine()
    return SystemInfo(
        python_version=platform.python_version(),
        platform=platform.system(),
        machine=machine,
        host_arch=host_architecture(machine),
        hostname=platform.node(),
    )
