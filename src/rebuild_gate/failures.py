from __future__ import annotations

# Compiler status 2: errors reported, output still emitted. Wrapping build tools
# may surface it as status 1, leaving only this text in stderr.
PARTIAL_FAILURE_PATTERN = "exit code 2"


def is_partial_build_failure(stderr: str | None) -> bool:
    if not stderr:
        return False
    return PARTIAL_FAILURE_PATTERN in stderr
