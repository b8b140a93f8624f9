# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The one place goose-release starts external processes.

Builds are black boxes: we run the tool, capture everything, and only look
at the exit code. A missing executable or a timeout is reported as exit
code -1 instead of an exception, so callers handle one shape of failure.

No shell=True anywhere. Every command is an argv list.
"""

import shutil
import subprocess
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from goose_release.logging.logger import get_logger

logger = get_logger(__name__)

# Lines of stderr kept in log output when a command fails.
_STDERR_TAIL_LINES = 20


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single external command."""

    argv: tuple[str, ...]
    exit_code: int
    stdout: str
    stderr: str
    elapsed_seconds: float

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def stderr_tail(self, lines: int = _STDERR_TAIL_LINES) -> str:
        return "\n".join(self.stderr.splitlines()[-lines:])


class CommandRunner:
    """
    Resolves and runs external tools.

    The pipeline takes a runner instead of calling subprocess directly so
    tests can swap in a fake that records argv and drops files on disk.
    """

    def which(self, name: str, env: Optional[Mapping[str, str]] = None) -> Optional[str]:
        """Locate `name` on the PATH of `env` (or the process PATH)."""
        path = env.get("PATH") if env is not None else None
        return shutil.which(name, path=path)

    def run(
        self,
        argv: Sequence[str],
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> CommandResult:
        """
        Run `argv` to completion and capture its output.

        Never raises for a failing, missing or hung command; the exit code
        carries that information (-1 for missing and timed out).
        """
        argv = tuple(str(a) for a in argv)
        start = time.monotonic()

        logger.debug(
            "Running command",
            extra={"argv": list(argv), "cwd": str(cwd) if cwd else None},
        )

        try:
            completed = subprocess.run(
                list(argv),
                capture_output=True,
                text=True,
                timeout=timeout_seconds,
                cwd=str(cwd) if cwd else None,
                env=dict(env) if env is not None else None,
                check=False,
            )
        except subprocess.TimeoutExpired:
            elapsed = time.monotonic() - start
            logger.warning(
                "Command timed out",
                extra={"argv": list(argv), "timeout_seconds": timeout_seconds},
            )
            return CommandResult(
                argv=argv,
                exit_code=-1,
                stdout="",
                stderr=f"{argv[0]} timed out after {timeout_seconds}s",
                elapsed_seconds=elapsed,
            )
        except (FileNotFoundError, PermissionError) as err:
            elapsed = time.monotonic() - start
            logger.error(
                "Command could not be started",
                extra={"argv": list(argv), "error": str(err)},
            )
            return CommandResult(
                argv=argv,
                exit_code=-1,
                stdout="",
                stderr=f"{argv[0]}: {err}",
                elapsed_seconds=elapsed,
            )

        elapsed = time.monotonic() - start
        result = CommandResult(
            argv=argv,
            exit_code=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
            elapsed_seconds=elapsed,
        )

        log_fn = logger.debug if result.succeeded else logger.error
        log_fn(
            "Command finished",
            extra={
                "argv": list(argv),
                "exit_code": result.exit_code,
                "elapsed_seconds": round(elapsed, 3),
                "stderr_tail": "" if result.succeeded else result.stderr_tail(),
            },
        )
        return result
