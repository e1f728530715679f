from __future__ import annotations

import fnmatch
import hashlib
import os
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

_ALWAYS_EXCLUDED_DIR_NAMES = {
    ".git",
    ".hg",
    ".svn",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
    "__pycache__",
}


@dataclass(frozen=True)
class HashCapability:
    algorithm: str
    available: bool
    reason: str | None = None


def probe_hash_capability(algorithm: str) -> HashCapability:
    """Resolve the hashing capability once, without raising when it is missing."""
    try:
        probe = hashlib.new(algorithm)
    except (ValueError, TypeError) as e:
        return HashCapability(algorithm=algorithm, available=False, reason=str(e))
    if probe.digest_size == 0:
        # shake_* digests need an explicit length.
        return HashCapability(
            algorithm=algorithm,
            available=False,
            reason=f"{algorithm} has no fixed digest size",
        )
    return HashCapability(algorithm=algorithm, available=True)


def iter_fingerprint_inputs(
    root: Path,
    *,
    include: Sequence[str],
    exclude_dirs: Sequence[str],
) -> Iterator[tuple[str, Path]]:
    """Yield `(posix relative path, absolute path)` of hashed files, in hash order."""
    root = root.resolve()
    pruned = _ALWAYS_EXCLUDED_DIR_NAMES.union(exclude_dirs)

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in pruned)
        for filename in sorted(filenames):
            if any(fnmatch.fnmatchcase(filename, pattern) for pattern in include):
                path = Path(dirpath, filename)
                yield path.relative_to(root).as_posix(), path


def compute_fingerprint(
    root: Path,
    *,
    capability: HashCapability,
    include: Sequence[str],
    exclude_dirs: Sequence[str],
) -> str | None:
    """Digest over each included file's relative path and content digest.

    Returns None when the hash algorithm is unavailable.
    """
    if not capability.available:
        return None

    project = hashlib.new(capability.algorithm)
    for rel_path, path in iter_fingerprint_inputs(
        root, include=include, exclude_dirs=exclude_dirs
    ):
        with path.open("rb") as f:
            content = hashlib.file_digest(f, capability.algorithm)
        project.update(rel_path.encode("utf-8") + b"\0")
        project.update(content.digest())

    return project.hexdigest()
