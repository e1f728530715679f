from __future__ import annotations

from pathlib import Path


class ChecksumStore:
    """The last recorded project fingerprint, stored as plain text."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> str:
        if not self.exists():
            return ""
        return self.path.read_text(encoding="utf-8")

    def write(self, fingerprint: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(fingerprint, encoding="utf-8")
