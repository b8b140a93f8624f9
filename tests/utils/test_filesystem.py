# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the atomic filesystem helpers.
"""

import io
import stat
from pathlib import Path

import pytest

from goose_release.utils.filesystem import (
    atomic_copy,
    atomic_move,
    atomic_write_stream,
    make_executable,
    normalize_line_endings,
    reset_directory,
)


def _leftover_temps(directory: Path) -> list[Path]:
    return list(directory.glob(".goose_tmp_*"))


class TestAtomicWrites:
    def test_write_stream_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "temporal"
        atomic_write_stream(target, io.BytesIO(b"payload"))
        assert target.read_bytes() == b"payload"
        assert _leftover_temps(target.parent) == []

    def test_failed_stream_leaves_no_partial_file(self, tmp_path: Path) -> None:
        class Exploding(io.RawIOBase):
            def readinto(self, b):  # type: ignore[no-untyped-def]
                raise OSError("disk on fire")

        target = tmp_path / "out"
        with pytest.raises(OSError, match="disk on fire"):
            atomic_write_stream(target, Exploding())  # type: ignore[arg-type]
        assert not target.exists()
        assert _leftover_temps(tmp_path) == []

    def test_copy_preserves_content_and_mode(self, tmp_path: Path) -> None:
        src = tmp_path / "goose"
        src.write_bytes(b"binary")
        src.chmod(0o755)
        dst = tmp_path / "release" / "goose"

        atomic_copy(src, dst)
        assert dst.read_bytes() == b"binary"
        assert stat.S_IMODE(dst.stat().st_mode) == 0o755
        assert src.exists()

    def test_copy_onto_itself_is_noop(self, tmp_path: Path) -> None:
        src = tmp_path / "goose"
        src.write_bytes(b"binary")
        assert atomic_copy(src, src) == src
        assert src.read_bytes() == b"binary"

    def test_move_replaces_existing_target(self, tmp_path: Path) -> None:
        src = tmp_path / "service" / "temporal-service"
        src.parent.mkdir()
        src.write_bytes(b"new")
        dst = tmp_path / "release" / "temporal-service"
        dst.parent.mkdir()
        dst.write_bytes(b"old")

        atomic_move(src, dst)
        assert dst.read_bytes() == b"new"
        assert not src.exists()


class TestLineEndings:
    def test_crlf_is_rewritten(self, tmp_path: Path) -> None:
        script = tmp_path / "build.sh"
        script.write_bytes(b"#!/bin/bash\r\necho hi\r\n")
        script.chmod(0o750)

        assert normalize_line_endings(script) is True
        assert script.read_bytes() == b"#!/bin/bash\necho hi\n"
        assert stat.S_IMODE(script.stat().st_mode) == 0o750

    def test_lf_file_untouched(self, tmp_path: Path) -> None:
        script = tmp_path / "build.sh"
        script.write_bytes(b"#!/bin/bash\necho hi\n")
        before = script.stat().st_mtime_ns

        assert normalize_line_endings(script) is False
        assert script.stat().st_mtime_ns == before


def test_make_executable_follows_read_bits(tmp_path: Path) -> None:
    path = tmp_path / "temporal"
    path.write_bytes(b"x")
    path.chmod(0o640)
    make_executable(path)
    assert stat.S_IMODE(path.stat().st_mode) == 0o750


def test_reset_directory_empties_existing_tree(tmp_path: Path) -> None:
    staging = tmp_path / "goose-package"
    (staging / "nested").mkdir(parents=True)
    (staging / "stale").write_bytes(b"old")

    reset_directory(staging)
    assert staging.is_dir()
    assert list(staging.iterdir()) == []
