"""Console and subprocess helpers.

Provides a thin wrapper for running external tools (multi-gitter and
whatever command it fans out) plus the output formatting helpers used by
every rollout-waves command.
"""

from __future__ import annotations

import subprocess
import sys


def run(*args: str, check: bool = True) -> subprocess.CompletedProcess[bytes]:
    """Run an external command.

    Output is not captured - it streams directly to the terminal so users
    can follow each batch of a rollout.

    Args:
        *args: Command and arguments (e.g., "multi-gitter", "run", ...).
        check: If True (default), raise on non-zero exit.

    Returns:
        CompletedProcess with returncode for checking success.
    """
    return subprocess.run(args, check=check)


def step(msg: str) -> None:
    """Print a visually distinct step header."""
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def info(msg: str) -> None:
    print(f"  {msg}")


def warn(msg: str) -> None:
    print(f"WARNING: {msg}", file=sys.stderr)


def fatal(msg: str) -> None:
    """Print an error message and exit with code 1.

    Use for unrecoverable errors that should halt a rollout.
    """
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)
