from __future__ import annotations

import importlib.util
import platform
import sys
from collections.abc import Callable
from pathlib import Path

from packaging.specifiers import SpecifierSet
from packaging.version import InvalidVersion, Version

from rebuild_gate.config import GateConfig


class EntryPointError(RuntimeError):
    pass


def current_runtime_version() -> str:
    return platform.python_version()


def normalize_runtime_version(raw: str) -> str:
    """Numeric release of `raw`, with any pre-release, dev or local tag dropped.

    `3.13.0rc1` -> `3.13.0`, `3.12.1+local` -> `3.12.1`. Text that is not a
    version at all is returned stripped so it can still be reported.
    """
    text = raw.strip()
    try:
        return Version(text).base_version
    except InvalidVersion:
        return text.split("-", maxsplit=1)[0]


def is_runtime_supported(version: str, minimum: str) -> bool:
    try:
        parsed = Version(version)
    except InvalidVersion:
        return False
    return parsed in SpecifierSet(f">={minimum}")


def load_entry_point(path: Path, function: str) -> Callable[[], object]:
    if not path.is_file():
        raise EntryPointError(f"Built entry point not found: {path}")

    module_name = f"_rebuild_gate_entry_{path.stem.replace('-', '_')}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise EntryPointError(f"Cannot load entry point module: {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise

    entry = getattr(module, function, None)
    if not callable(entry):
        raise EntryPointError(f"Entry point {path} does not export a callable `{function}`.")
    return entry


def dispatch(config: GateConfig, *, runtime_version: str | None = None) -> int:
    detected = normalize_runtime_version(
        runtime_version if runtime_version is not None else current_runtime_version()
    )
    minimum = config.min_runtime_version

    if not is_runtime_supported(detected, minimum):
        print(
            f"Python version {detected} is not supported. "
            f"Please use Python {minimum} or higher.",
            file=sys.stderr,
        )
        return 1

    assert config.entry_point is not None
    entry = load_entry_point(config.entry_point, config.entry_function)
    entry()
    return 0
