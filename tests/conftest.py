# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for goose-release tests.

The pipeline only ever talks to external tools through a CommandRunner, so
tests swap in FakeRunner: it pretends a chosen set of tools is on PATH and,
for each invocation, runs a small Python handler that drops the files the
real tool would have produced.
"""

import io
import tarfile
import textwrap
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import pytest

from goose_release.config.schema import GooseReleaseConfig
from goose_release.toolchain.runner import CommandResult, CommandRunner

X86_TRIPLE = "x86_64-unknown-linux-gnu"

Handler = Callable[[tuple[str, ...], Optional[Path], dict[str, str]], Any]


@dataclass(frozen=True)
class RecordedCall:
    argv: tuple[str, ...]
    cwd: Optional[Path]
    env: dict[str, str]


class FakeRunner(CommandRunner):
    """
    In-memory stand-in for CommandRunner.

    Handlers are keyed by argv[0] and may return an exit code, a
    (exit_code, stdout) tuple, or None for success. Tools without a handler
    succeed and do nothing.
    """

    def __init__(self, available: set[str] | None = None) -> None:
        self.available: set[str] = set(available or ())
        self.handlers: dict[str, Handler] = {}
        self.calls: list[RecordedCall] = []

    def which(self, name, env=None):  # type: ignore[no-untyped-def]
        return f"/usr/bin/{name}" if name in self.available else None

    def run(self, argv, cwd=None, env=None, timeout_seconds=None):  # type: ignore[no-untyped-def]
        argv = tuple(str(a) for a in argv)
        env_copy = dict(env or {})
        self.calls.append(RecordedCall(argv=argv, cwd=cwd, env=env_copy))

        handler = self.handlers.get(argv[0])
        outcome = handler(argv, cwd, env_copy) if handler is not None else None
        stdout = ""
        if outcome is None:
            exit_code = 0
        elif isinstance(outcome, tuple):
            exit_code, stdout = outcome
        else:
            exit_code = int(outcome)
        return CommandResult(
            argv=argv, exit_code=exit_code, stdout=stdout, stderr="", elapsed_seconds=0.0
        )

    def commands(self) -> list[str]:
        return [call.argv[0] for call in self.calls]


def write_binary(path: Path, content: bytes = b"\x7fELF fake binary") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    path.chmod(0o755)
    return path


def cargo_success(workspace: Path) -> Handler:
    """Host cargo build that leaves target/release/goose."""

    def handler(argv, cwd, env):  # type: ignore[no-untyped-def]
        write_binary(workspace / "target" / "release" / "goose", b"host goose")
        return 0

    return handler


def cross_success(workspace: Path, triple: str = X86_TRIPLE) -> Handler:
    """cross build that leaves target/<triple>/release/goose."""

    def handler(argv, cwd, env):  # type: ignore[no-untyped-def]
        write_binary(workspace / "target" / triple / "release" / "goose", b"cross goose")
        return 0

    return handler


def failing(exit_code: int = 101) -> Handler:
    def handler(argv, cwd, env):  # type: ignore[no-untyped-def]
        return exit_code

    return handler


def go_script_success(argv, cwd, env):  # type: ignore[no-untyped-def]
    """bash build.sh that produces temporal-service in the service directory."""
    write_binary(Path(cwd) / "temporal-service", f"service {env.get('GOARCH')}".encode())
    return 0


def make_temporal_tarball(members: dict[str, bytes] | None = None) -> bytes:
    """A .tar.gz shaped like a Temporal CLI release."""
    if members is None:
        members = {"LICENSE": b"MIT", "temporal": b"\x7fELF temporal"}
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def make_config(workspace: Path, **sections: dict[str, Any]) -> GooseReleaseConfig:
    """
    A config rooted at `workspace`. External fetch is off unless a test
    asks for it, so nothing reaches for the network by accident.
    """
    raw: dict[str, Any] = {
        "global": {"config_version": "1.0.0", "project_name": "goose-test"},
        "build": {"workspace": str(workspace)},
        "external": {"enabled": False},
    }
    for name, values in sections.items():
        raw.setdefault(name, {}).update(values)
    return GooseReleaseConfig.model_validate(raw)


@pytest.fixture()
def workspace(tmp_path: Path) -> Path:
    """
    A fake goose checkout: just the temporal-service build script, checked
    out with Windows line endings.
    """
    root = tmp_path / "goose"
    service_dir = root / "temporal-service"
    service_dir.mkdir(parents=True)
    (service_dir / "build.sh").write_bytes(b"#!/bin/bash\r\nset -e\r\ngo build -o temporal-service\r\n")
    return root


@pytest.fixture()
def runner() -> FakeRunner:
    return FakeRunner(available={"cargo"})


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """The smallest config that passes schema validation."""
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "goose-test"
          log_level: "DEBUG"
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """Valid YAML that fails schema validation (missing config_version)."""
    config_content = textwrap.dedent("""\
        global:
          project_name: "goose-test"
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file
