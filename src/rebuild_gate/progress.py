from __future__ import annotations

import sys
from typing import TextIO


class ProgressIndicator:
    """Start/finish markers for a long-running step, printed to stderr."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self._message: str | None = None
        self.state: str = "idle"

    def _write(self, text: str) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        try:
            print(text, file=stream, flush=True)
        except OSError:
            # A closed or broken console must not fail the rebuild.
            return

    def start(self, message: str) -> None:
        self._message = message
        self.state = "running"
        self._write(f"... {message}")

    def succeed(self, message: str | None = None) -> None:
        self.state = "succeeded"
        self._write(f"[ok] {message or self._message or ''}".rstrip())

    def fail(self, message: str | None = None) -> None:
        self.state = "failed"
        self._write(f"[failed] {message or self._message or ''}".rstrip())
