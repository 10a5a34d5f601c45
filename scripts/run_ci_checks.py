#!/usr/bin/env python3
# =============================================================================
# structeq -- CI CHECKS RUNNER
# File:   scripts/run_ci_checks.py
# =============================================================================
#
# PURPOSE
# -------
# Runs the CI gate in two sequential stages:
#   Stage 1: pytest over tests/unit with coverage enforcement (pytest-cov)
#   Stage 2: import smoke check of the public structeq API
#
# Exit codes:
#   0 -- All stages passed.
#   1 -- Stage 1 (pytest) failed.
#   2 -- Stage 2 (import check) failed.
#
# Usage:
#   python scripts/run_ci_checks.py [--cov-floor N]
# =============================================================================

from __future__ import annotations

import argparse
import pathlib
import subprocess
import sys

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
_REPO_ROOT = pathlib.Path(__file__).parent.parent
_PYTHON    = sys.executable

_DEFAULT_COV_FLOOR = 90

_IMPORT_CHECK = (
    "import structeq; "
    "assert structeq.equals([1.0, {'a': (2,)}], [1.0, {'a': (2,)}]); "
    "assert not structeq.reflection_equals(0.0, -0.0)"
)


def _separator(char: str = "=", width: int = 72) -> str:
    return char * width


def _run(cmd: list[str], label: str) -> int:
    """
    Run a subprocess command, stream stdout/stderr live, return exit code.
    """
    print(_separator())
    print(f"CI STAGE: {label}")
    print(f"CMD:      {' '.join(cmd)}")
    print(_separator("-"))
    sys.stdout.flush()

    proc = subprocess.run(
        cmd,
        cwd=str(_REPO_ROOT),
    )
    return proc.returncode


def _fail(stage: str, rc: int) -> None:
    print(_separator())
    print(f"CI RESULT: FAIL  [stage={stage}  exit_code={rc}]")
    print(f"Merge BLOCKED: {stage} stage did not pass.")
    print(_separator())
    sys.stdout.flush()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="structeq CI gate")
    parser.add_argument(
        "--cov-floor",
        type=int,
        default=_DEFAULT_COV_FLOOR,
        help="minimum line coverage of the structeq package, in percent",
    )
    args = parser.parse_args(argv)

    print(_separator())
    print("structeq CI GATE -- starting")
    print(_separator())
    sys.stdout.flush()

    # ------------------------------------------------------------------
    # Stage 1: pytest
    # A non-zero exit code means either tests failed or coverage fell
    # below the floor.
    # ------------------------------------------------------------------
    pytest_rc = _run(
        [
            _PYTHON, "-m", "pytest",
            "--cov=structeq",
            "--cov-report=term-missing",
            f"--cov-fail-under={args.cov_floor}",
        ],
        f"pytest (tests + coverage >= {args.cov_floor}%)",
    )
    if pytest_rc != 0:
        _fail("pytest", pytest_rc)
        return 1

    print(_separator("-"))
    print("CI STAGE pytest: PASS")
    sys.stdout.flush()

    # ------------------------------------------------------------------
    # Stage 2: import check
    # Runs in a fresh interpreter so that a missing runtime dependency
    # is not masked by test-only imports.
    # ------------------------------------------------------------------
    import_rc = _run(
        [_PYTHON, "-c", _IMPORT_CHECK],
        "import check (public API)",
    )
    if import_rc != 0:
        _fail("import", import_rc)
        return 2

    print(_separator("-"))
    print("CI STAGE import: PASS")

    print(_separator())
    print("CI RESULT: PASS  [stages=pytest,import]")
    print("Merge permitted.")
    print(_separator())
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
