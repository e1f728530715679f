from __future__ import annotations

import argparse
import sys
import traceback
from pathlib import Path

from rebuild_gate.config import ConfigError, find_project_root, load_config
from rebuild_gate.dispatch import EntryPointError
from rebuild_gate.gate import maybe_rebuild_and_run


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rebuild-gate",
        description=(
            "Rebuild the project when its sources changed since the last recorded "
            "checksum, then run the built entry point."
        ),
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        help="Project directory (default: nearest parent holding rebuild_gate.yaml, else cwd).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Config YAML path (default: <project-root>/rebuild_gate.yaml when present).",
    )
    parser.add_argument(
        "--force-rebuild",
        action="store_true",
        help="Rebuild even when the stored checksum matches.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    project_root = args.project_root if args.project_root is not None else find_project_root()
    try:
        config = load_config(project_root, args.config)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        return maybe_rebuild_and_run(config, force=args.force_rebuild)
    except EntryPointError as e:
        print(str(e), file=sys.stderr)
        return 1
    except Exception:  # noqa: BLE001
        # Launch failures of the install/clean steps land here. They are reported
        # in full but do not change the exit status.
        print(traceback.format_exc(), file=sys.stderr)
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
