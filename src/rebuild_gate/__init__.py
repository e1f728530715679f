from rebuild_gate.checksum import ChecksumStore
from rebuild_gate.config import ConfigError, GateConfig, find_project_root, load_config
from rebuild_gate.dispatch import EntryPointError, dispatch
from rebuild_gate.failures import is_partial_build_failure
from rebuild_gate.fingerprint import HashCapability, compute_fingerprint, probe_hash_capability
from rebuild_gate.gate import BuildFailedError, StalenessCheck, maybe_rebuild_and_run
from rebuild_gate.process import ProcessResult, SpawnError, run_process

__all__ = [
    "BuildFailedError",
    "ChecksumStore",
    "ConfigError",
    "EntryPointError",
    "GateConfig",
    "HashCapability",
    "ProcessResult",
    "SpawnError",
    "StalenessCheck",
    "compute_fingerprint",
    "dispatch",
    "find_project_root",
    "is_partial_build_failure",
    "load_config",
    "maybe_rebuild_and_run",
    "probe_hash_capability",
    "run_process",
]
