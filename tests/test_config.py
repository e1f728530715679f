from __future__ import annotations

from pathlib import Path

import pytest

from rebuild_gate.config import CONFIG_FILENAME, ConfigError, find_project_root, load_config


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_load_config_defaults_without_file(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    root = tmp_path.resolve()
    assert config.project_root == root
    assert config.display_name == root.name
    assert config.install_argv() == ["pdm", "install"]
    assert config.clean_argv() == ["pdm", "run", "clean"]
    assert config.build_argv() == ["pdm", "run", "build"]
    assert config.checksum_path == root / "build" / ".checksum"
    assert config.entry_point == root / "build" / "cli.py"
    assert config.entry_function == "run"
    assert config.hash_exclude_dirs == ("build", ".venv")
    assert len(config.hash_include) == 4


def test_load_config_reads_yaml(tmp_path: Path) -> None:
    _write(
        tmp_path / CONFIG_FILENAME,
        "\n".join(
            [
                "version: 1",
                "display_name: tools",
                "package_manager: yarn",
                "install_args: []",
                "clean_args: [run, clean]",
                "build_args: [run, build]",
                "checksum_path: out/.sum",
                "hash_include: ['*.ts', tools.js, yarn.lock, tsconfig.js]",
                "hash_exclude_dirs: [build, node_modules]",
                "entry_point: build/tools-cli.py",
                "min_runtime_version: '8.9.0'",
                "",
            ]
        ),
    )

    config = load_config(tmp_path)

    root = tmp_path.resolve()
    assert config.display_name == "tools"
    assert config.install_argv() == ["yarn"]
    assert config.build_argv() == ["yarn", "run", "build"]
    assert config.checksum_path == root / "out" / ".sum"
    assert config.hash_include == ("*.ts", "tools.js", "yarn.lock", "tsconfig.js")
    assert config.hash_exclude_dirs == ("build", "node_modules")
    assert config.entry_point == root / "build" / "tools-cli.py"
    assert config.min_runtime_version == "8.9.0"


def test_load_config_explicit_path(tmp_path: Path) -> None:
    cfg = tmp_path / "elsewhere" / "gate.yaml"
    _write(cfg, "package_manager: uv\n")
    config = load_config(tmp_path, cfg)
    assert config.package_manager == "uv"


def test_load_config_explicit_path_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as excinfo:
        load_config(tmp_path, tmp_path / "missing.yaml")
    assert excinfo.value.code == "missing_config"


def test_load_config_empty_file_uses_defaults(tmp_path: Path) -> None:
    _write(tmp_path / CONFIG_FILENAME, "")
    assert load_config(tmp_path).package_manager == "pdm"


@pytest.mark.parametrize(
    ("text", "code"),
    [
        ("- a\n- b\n", "invalid_root"),
        ("bogus: 1\n", "unknown_keys"),
        ("version: 2\n", "unsupported_version"),
        ("package_manager: ''\n", "invalid_value"),
        ("build_args: run build\n", "invalid_value"),
        ("hash_include: []\n", "invalid_value"),
        ("min_runtime_version: 3.10\n", "invalid_value"),
        ("a: [unclosed\n", "invalid_yaml"),
        ("min_runtime_version: '>=3.11'\n", "invalid_value"),
        ("min_runtime_version: not-a-version\n", "invalid_value"),
        ("meta: {}\n", "unknown_keys"),
    ],
)
def test_load_config_rejects_invalid(tmp_path: Path, text: str, code: str) -> None:
    _write(tmp_path / CONFIG_FILENAME, text)
    with pytest.raises(ConfigError) as excinfo:
        load_config(tmp_path)
    assert excinfo.value.code == code


def test_find_project_root_walks_up(tmp_path: Path) -> None:
    _write(tmp_path / CONFIG_FILENAME, "version: 1\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert find_project_root(nested) == tmp_path.resolve()


def test_find_project_root_falls_back_to_start(tmp_path: Path) -> None:
    nested = tmp_path / "a"
    nested.mkdir()
    assert find_project_root(nested) == nested.resolve()
