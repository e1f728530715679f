from __future__ import annotations

from pathlib import Path

from rebuild_gate.checksum import ChecksumStore
from rebuild_gate.failures import is_partial_build_failure


def test_checksum_store_reads_empty_when_missing(tmp_path: Path) -> None:
    store = ChecksumStore(tmp_path / "build" / ".checksum")
    assert store.exists() is False
    assert store.read() == ""


def test_checksum_store_write_creates_parent_and_overwrites(tmp_path: Path) -> None:
    path = tmp_path / "build" / ".checksum"
    store = ChecksumStore(path)

    store.write("abc")
    assert path.read_text(encoding="utf-8") == "abc"

    store.write("def")
    assert store.read() == "def"


def test_checksum_store_reads_content_verbatim(tmp_path: Path) -> None:
    path = tmp_path / ".checksum"
    path.write_text("abc\n", encoding="utf-8")
    assert ChecksumStore(path).read() == "abc\n"


def test_partial_build_failure_pattern() -> None:
    assert is_partial_build_failure("error Command failed with exit code 2.") is True
    assert is_partial_build_failure("error Command failed with exit code 1.") is False
    assert is_partial_build_failure("") is False
    assert is_partial_build_failure(None) is False
