from __future__ import annotations

import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from rebuild_gate.checksum import ChecksumStore
from rebuild_gate.config import GateConfig
from rebuild_gate.dispatch import dispatch
from rebuild_gate.failures import is_partial_build_failure
from rebuild_gate.fingerprint import HashCapability, compute_fingerprint, probe_hash_capability
from rebuild_gate.process import ProcessResult, SpawnError, run_process
from rebuild_gate.progress import ProgressIndicator

Runner = Callable[..., ProcessResult]
Dispatcher = Callable[[GateConfig], int]


@dataclass(frozen=True)
class StalenessCheck:
    fingerprint: str | None
    stored: str
    rebuild_required: bool


class BuildFailedError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        argv: Sequence[str],
        cwd: Path,
        exit_code: int | None,
        stderr: str,
    ) -> None:
        super().__init__(message)
        self.argv = tuple(argv)
        self.cwd = cwd
        self.exit_code = exit_code
        self.stderr = stderr


def _checksum_store(config: GateConfig) -> ChecksumStore:
    assert config.checksum_path is not None
    return ChecksumStore(config.checksum_path)


def calculate_project_fingerprint(config: GateConfig, capability: HashCapability) -> str | None:
    return compute_fingerprint(
        config.project_root,
        capability=capability,
        include=config.hash_include,
        exclude_dirs=config.hash_exclude_dirs,
    )


def check_for_updates(config: GateConfig, capability: HashCapability) -> StalenessCheck:
    fingerprint = calculate_project_fingerprint(config, capability)
    stored = _checksum_store(config).read()
    return StalenessCheck(
        fingerprint=fingerprint,
        stored=stored,
        rebuild_required=fingerprint is None or fingerprint != stored,
    )


def _build_failure_message(
    *, argv: Sequence[str], cwd: Path, exit_code: int | None, stderr: str
) -> str:
    exit_note = str(exit_code) if exit_code is not None else "spawn failed"
    return (
        "Building failed.\n"
        f"argv={' '.join(argv)}\n"
        f"cwd={cwd}\n"
        f"exit_code={exit_note}\n"
        f"stderr:\n{stderr.rstrip()}\n"
    )


def rebuild(
    config: GateConfig,
    *,
    progress: ProgressIndicator,
    runner: Runner = run_process,
) -> None:
    """Install dependencies, then clean and build the project.

    Only the build step is checked. A failed build whose stderr matches the
    partial-failure pattern still counts as a success, since its output was
    emitted; any other failure raises `BuildFailedError`.
    """
    cwd = config.project_root

    runner(config.install_argv(), cwd=cwd)

    progress.start(f"{config.display_name} is not up to date - rebuilding...")

    runner(config.clean_argv(), cwd=cwd)

    build_argv = config.build_argv()
    exit_code: int | None
    try:
        result = runner(build_argv, cwd=cwd)
        exit_code, stderr = result.exit_code, result.stderr
    except SpawnError as e:
        exit_code, stderr = None, e.stderr

    if exit_code != 0 and not is_partial_build_failure(stderr):
        progress.fail()
        raise BuildFailedError(
            _build_failure_message(argv=build_argv, cwd=cwd, exit_code=exit_code, stderr=stderr),
            argv=build_argv,
            cwd=cwd,
            exit_code=exit_code,
            stderr=stderr,
        )

    progress.succeed()


def persist_fingerprint(
    config: GateConfig,
    capability: HashCapability,
    fingerprint: str | None,
) -> str | None:
    if fingerprint is None:
        fingerprint = calculate_project_fingerprint(config, capability)
    if fingerprint is None:
        print(
            f"Checksum not written: hash algorithm {capability.algorithm!r} is unavailable.",
            file=sys.stderr,
        )
        return None
    _checksum_store(config).write(fingerprint)
    return fingerprint


def maybe_rebuild_and_run(
    config: GateConfig,
    *,
    force: bool = False,
    capability: HashCapability | None = None,
    progress: ProgressIndicator | None = None,
    runner: Runner = run_process,
    dispatcher: Dispatcher = dispatch,
) -> int:
    if capability is None:
        capability = probe_hash_capability(config.hash_algorithm)
    if progress is None:
        progress = ProgressIndicator()

    check = check_for_updates(config, capability)

    if force or check.rebuild_required:
        try:
            rebuild(config, progress=progress, runner=runner)
        except BuildFailedError as e:
            print(str(e), file=sys.stderr)
            return 1

    persist_fingerprint(config, capability, check.fingerprint)

    return dispatcher(config)
