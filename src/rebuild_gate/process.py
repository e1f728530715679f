from __future__ import annotations

import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ProcessResult:
    argv: tuple[str, ...]
    cwd: Path
    exit_code: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class SpawnError(RuntimeError):
    def __init__(self, message: str, *, argv: Sequence[str], cwd: Path, stderr: str) -> None:
        super().__init__(message)
        self.argv = tuple(argv)
        self.cwd = cwd
        self.stderr = stderr


def run_process(argv: Sequence[str], *, cwd: Path) -> ProcessResult:
    """Run a command to completion, discarding stdout and capturing stderr.

    Non-zero exit codes are returned, not raised; only a failure to launch the
    command raises `SpawnError`. There is no timeout.
    """
    argv = [str(a) for a in argv]
    try:
        proc = subprocess.run(  # noqa: S603
            argv,
            cwd=str(cwd),
            input="",
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except OSError as e:
        raise SpawnError(
            f"Failed to launch `{' '.join(argv)}`: {e}",
            argv=argv,
            cwd=cwd,
            stderr=str(e),
        ) from e

    return ProcessResult(
        argv=tuple(argv),
        cwd=cwd,
        exit_code=proc.returncode,
        stderr=proc.stderr or "",
    )
