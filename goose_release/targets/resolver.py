# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Target resolution: architecture token -> BuildTarget.

This is the only validation that happens before the pipeline touches the
environment, the filesystem or the network, so it has to stay pure.
"""

from dataclasses import dataclass

from goose_release.pipeline.exceptions import UnsupportedTargetError


@dataclass(frozen=True)
class BuildTarget:
    """Everything downstream steps need to know about the platform."""

    architecture: str
    platform_os: str
    platform_arch: str
    triple: str


# architecture token -> (GOOS, GOARCH, rust triple)
SUPPORTED_TARGETS: dict[str, tuple[str, str, str]] = {
    "x86_64": ("linux", "amd64", "x86_64-unknown-linux-gnu"),
    "aarch64": ("linux", "arm64", "aarch64-unknown-linux-gnu"),
}


def supported_architectures() -> list[str]:
    return sorted(SUPPORTED_TARGETS)


def resolve_target(architecture: str) -> BuildTarget:
    """
    Map an architecture token to its BuildTarget.

    Raises:
        UnsupportedTargetError: For any token outside SUPPORTED_TARGETS.
    """
    try:
        platform_os, platform_arch, triple = SUPPORTED_TARGETS[architecture]
    except KeyError:
        raise UnsupportedTargetError(
            f"Unsupported ARCH: {architecture!r} "
            f"(use {' or '.join(supported_architectures())})"
        ) from None

    return BuildTarget(
        architecture=architecture,
        platform_os=platform_os,
        platform_arch=platform_arch,
        triple=triple,
    )
