# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
goose-release: release packaging pipeline for the goose CLI.

Subsystems:
  - targets: architecture token -> build triple resolution
  - toolchain: command runner, Hermit/rustup environment, preflight checks
  - build: primary (cross/cargo) and auxiliary (Go service) builds
  - verification: canonical-path check with one recovery copy
  - fetch: optional Temporal CLI download
  - packaging: staging directory and tar.bz2 archive
  - pipeline: typed step results and the linear driver
"""

__version__ = "0.1.0"
