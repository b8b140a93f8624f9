# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Safe filesystem operations for goose-release.

Every artifact copy goes through a temp file in the destination directory
followed by a rename. Rename on the same filesystem is atomic on POSIX, so
a crash mid-copy leaves a stray `.goose_tmp_*` file instead of a truncated
binary at a canonical path that the verifier would happily accept.
"""

import shutil
import stat
import tempfile
from pathlib import Path
from typing import IO, BinaryIO

_TMP_PREFIX = ".goose_tmp_"
_COPY_CHUNK_SIZE = 1024 * 1024


def _temp_sibling(target_path: Path) -> IO[bytes]:
    target_path.parent.mkdir(parents=True, exist_ok=True)
    # delete=False because the file must survive closing so we can rename it.
    return tempfile.NamedTemporaryFile(
        mode="wb",
        dir=str(target_path.parent),
        prefix=_TMP_PREFIX,
        suffix=".tmp",
        delete=False,
    )


def atomic_write_stream(target_path: Path, source: BinaryIO) -> None:
    """
    Stream a binary file object to `target_path` atomically.

    Used for tar members and anything else that is not already on disk.

    Raises:
        OSError: If the write or rename fails.
    """
    temp_fd = _temp_sibling(target_path)
    temp_path = Path(temp_fd.name)

    try:
        shutil.copyfileobj(source, temp_fd, _COPY_CHUNK_SIZE)
        temp_fd.flush()
        temp_fd.close()
        temp_path.replace(target_path)
    except BaseException:
        temp_fd.close()
        if temp_path.exists():
            temp_path.unlink()
        raise


def atomic_copy(source_path: Path, target_path: Path) -> Path:
    """
    Copy a file (content and permission bits) to `target_path` atomically.

    Copying a file onto itself is a no-op, which happens whenever the
    output root is the cargo target directory.

    Returns:
        The target path.
    """
    if source_path.resolve() == target_path.resolve():
        return target_path

    with open(source_path, "rb") as src:
        atomic_write_stream(target_path, src)
    shutil.copymode(str(source_path), str(target_path))
    return target_path


def atomic_move(source_path: Path, target_path: Path) -> Path:
    """
    Move a file into place, overwriting whatever was there.

    Same-filesystem moves are a single rename. Across filesystems we fall
    back to an atomic copy and remove the source afterwards.
    """
    if source_path.resolve() == target_path.resolve():
        return target_path

    target_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        source_path.replace(target_path)
    except OSError:
        atomic_copy(source_path, target_path)
        source_path.unlink()
    return target_path


def normalize_line_endings(file_path: Path) -> bool:
    """
    Rewrite CRLF line endings to LF in place.

    A build script checked out on Windows with autocrlf fails under bash
    with "$'\\r': command not found".

    Returns:
        True if the file was rewritten, False if it already used LF.
    """
    raw = file_path.read_bytes()
    fixed = raw.replace(b"\r\n", b"\n")
    if fixed == raw:
        return False

    mode = stat.S_IMODE(file_path.stat().st_mode)
    temp_fd = _temp_sibling(file_path)
    temp_path = Path(temp_fd.name)
    try:
        temp_fd.write(fixed)
        temp_fd.close()
        temp_path.chmod(mode)
        temp_path.replace(file_path)
    except BaseException:
        temp_fd.close()
        if temp_path.exists():
            temp_path.unlink()
        raise
    return True


def make_executable(file_path: Path) -> None:
    """Add execute permission wherever read permission is set (chmod +x)."""
    mode = file_path.stat().st_mode
    exec_bits = 0
    if mode & stat.S_IRUSR:
        exec_bits |= stat.S_IXUSR
    if mode & stat.S_IRGRP:
        exec_bits |= stat.S_IXGRP
    if mode & stat.S_IROTH:
        exec_bits |= stat.S_IXOTH
    file_path.chmod(mode | exec_bits | stat.S_IXUSR)


def reset_directory(directory: Path) -> Path:
    """Remove `directory` if it exists and recreate it empty."""
    if directory.exists():
        shutil.rmtree(directory)
    directory.mkdir(parents=True)
    return directory
