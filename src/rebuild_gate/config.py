from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from packaging.version import InvalidVersion, Version

CONFIG_FILENAME = "rebuild_gate.yaml"
_CONFIG_VERSION = 1

_DEFAULT_PACKAGE_MANAGER = "pdm"
_DEFAULT_INSTALL_ARGS: tuple[str, ...] = ("install",)
_DEFAULT_CLEAN_ARGS: tuple[str, ...] = ("run", "clean")
_DEFAULT_BUILD_ARGS: tuple[str, ...] = ("run", "build")
_DEFAULT_CHECKSUM_PATH = "build/.checksum"
_DEFAULT_HASH_ALGORITHM = "sha256"
_DEFAULT_HASH_EXCLUDE_DIRS: tuple[str, ...] = ("build", ".venv")
_DEFAULT_HASH_INCLUDE: tuple[str, ...] = ("*.py", CONFIG_FILENAME, "pdm.lock", "pyproject.toml")
_DEFAULT_ENTRY_POINT = "build/cli.py"
_DEFAULT_ENTRY_FUNCTION = "run"
_DEFAULT_MIN_RUNTIME_VERSION = "3.11"

_ALLOWED_KEYS: frozenset[str] = frozenset(
    {
        "version",
        "display_name",
        "package_manager",
        "install_args",
        "clean_args",
        "build_args",
        "checksum_path",
        "hash_algorithm",
        "hash_exclude_dirs",
        "hash_include",
        "entry_point",
        "entry_function",
        "min_runtime_version",
    }
)


class ConfigError(ValueError):
    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


@dataclass(frozen=True)
class GateConfig:
    project_root: Path
    display_name: str
    package_manager: str = _DEFAULT_PACKAGE_MANAGER
    install_args: tuple[str, ...] = _DEFAULT_INSTALL_ARGS
    clean_args: tuple[str, ...] = _DEFAULT_CLEAN_ARGS
    build_args: tuple[str, ...] = _DEFAULT_BUILD_ARGS
    checksum_path: Path | None = None
    hash_algorithm: str = _DEFAULT_HASH_ALGORITHM
    hash_exclude_dirs: tuple[str, ...] = _DEFAULT_HASH_EXCLUDE_DIRS
    hash_include: tuple[str, ...] = _DEFAULT_HASH_INCLUDE
    entry_point: Path | None = None
    entry_function: str = _DEFAULT_ENTRY_FUNCTION
    min_runtime_version: str = _DEFAULT_MIN_RUNTIME_VERSION

    def __post_init__(self) -> None:
        # Frozen dataclass: fill root-relative defaults through object.__setattr__.
        if self.checksum_path is None:
            object.__setattr__(self, "checksum_path", self.project_root / _DEFAULT_CHECKSUM_PATH)
        if self.entry_point is None:
            object.__setattr__(self, "entry_point", self.project_root / _DEFAULT_ENTRY_POINT)

    def install_argv(self) -> list[str]:
        return [self.package_manager, *self.install_args]

    def clean_argv(self) -> list[str]:
        return [self.package_manager, *self.clean_args]

    def build_argv(self) -> list[str]:
        return [self.package_manager, *self.build_args]


def find_project_root(start: Path | None = None) -> Path:
    cur = (start or Path.cwd()).resolve()
    for candidate in [cur, *cur.parents]:
        if (candidate / CONFIG_FILENAME).is_file():
            return candidate
    return cur


def _load_yaml_mapping(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}", code="read_failed") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML in {path}: {e}", code="invalid_yaml") from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(
            f"Expected a YAML mapping in {path}, got {type(raw).__name__}.",
            code="invalid_root",
        )
    return raw


def _ensure_no_unknown_keys(*, data: dict[str, Any], path: Path) -> None:
    unknown = set(data) - _ALLOWED_KEYS
    if not unknown:
        return
    unknown_list = ", ".join(sorted(str(k) for k in unknown))
    allowed_list = ", ".join(sorted(_ALLOWED_KEYS))
    raise ConfigError(
        f"Unknown keys in {path}: {unknown_list}. Allowed: {allowed_list}.",
        code="unknown_keys",
        details={"unknown": sorted(str(k) for k in unknown)},
    )


def _parse_str(value: Any, *, path: Path, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Expected non-empty string for {field} in {path}.", code="invalid_value")
    return value.strip()


def _parse_str_list(
    value: Any, *, path: Path, field: str, allow_empty: bool = True
) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ConfigError(f"Expected list for {field} in {path}.", code="invalid_value")
    out: list[str] = []
    for idx, item in enumerate(value):
        if isinstance(item, (int, float)) and not isinstance(item, bool):
            item = str(item)
        if not isinstance(item, str) or not item.strip():
            raise ConfigError(
                f"Expected non-empty string for {field}[{idx}] in {path}.", code="invalid_value"
            )
        out.append(item)
    if not out and not allow_empty:
        raise ConfigError(f"Expected at least one entry for {field} in {path}.", code="invalid_value")
    return tuple(out)


def _parse_rel_path(value: Any, *, root: Path, path: Path, field: str) -> Path:
    raw = Path(_parse_str(value, path=path, field=field))
    return raw if raw.is_absolute() else (root / raw)


def _parse_version_text(value: Any, *, path: Path, field: str) -> str:
    # Unquoted `3.10` is the float 3.1 by the time YAML hands it over.
    if isinstance(value, float):
        raise ConfigError(
            f"Expected a quoted version string for {field} in {path} (e.g. \"3.11\").",
            code="invalid_value",
        )
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    text = _parse_str(value, path=path, field=field)
    try:
        Version(text)
    except InvalidVersion as e:
        raise ConfigError(
            f"Expected a version number for {field} in {path}, got {text!r}.",
            code="invalid_value",
        ) from e
    return text


def load_config(project_root: Path, config_path: Path | None = None) -> GateConfig:
    """Build the launcher configuration for `project_root`.

    When `config_path` is None, `<project_root>/rebuild_gate.yaml` is used if it
    exists; otherwise every setting keeps its default.
    """
    root = project_root.resolve()
    path = config_path if config_path is not None else root / CONFIG_FILENAME
    if config_path is None and not path.is_file():
        return GateConfig(project_root=root, display_name=root.name)
    if config_path is not None and not path.is_file():
        raise ConfigError(f"Config file not found: {path}", code="missing_config")

    data = _load_yaml_mapping(path)
    _ensure_no_unknown_keys(data=data, path=path)

    version = data.get("version", _CONFIG_VERSION)
    if version != _CONFIG_VERSION:
        raise ConfigError(
            f"Unsupported config version in {path}: {version!r} (expected {_CONFIG_VERSION}).",
            code="unsupported_version",
        )

    kwargs: dict[str, Any] = {}
    for key in ("display_name", "package_manager", "hash_algorithm", "entry_function"):
        if key in data:
            kwargs[key] = _parse_str(data[key], path=path, field=key)
    for key in ("install_args", "clean_args", "build_args", "hash_exclude_dirs"):
        if key in data:
            kwargs[key] = _parse_str_list(data[key], path=path, field=key)
    if "hash_include" in data:
        kwargs["hash_include"] = _parse_str_list(
            data["hash_include"], path=path, field="hash_include", allow_empty=False
        )
    for key in ("checksum_path", "entry_point"):
        if key in data:
            kwargs[key] = _parse_rel_path(data[key], root=root, path=path, field=key)
    if "min_runtime_version" in data:
        kwargs["min_runtime_version"] = _parse_version_text(
            data["min_runtime_version"], path=path, field="min_runtime_version"
        )

    kwargs.setdefault("display_name", root.name)
    return GateConfig(project_root=root, **kwargs)
