"""Subprocess helpers for invoking external tools."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

# Exit status shells report when an executable cannot be found.
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    """Exit status and captured output of one external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


CommandRunner = Callable[..., CommandResult]


def run_command(
    args: Sequence[str],
    *,
    cwd: Path,
    merge_stderr: bool = False,
) -> CommandResult:
    """Run ``args`` in ``cwd`` and capture its output without raising on failure.

    With ``merge_stderr`` the streams are interleaved into ``stdout`` the way
    ``cmd > out 2>&1`` would. Undecodable bytes are replaced. A missing
    executable is reported as exit 127; any other failure to start as 126.
    """
    try:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=False,
            text=True,
            encoding="utf-8",
            errors="replace",
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
        )
    except FileNotFoundError:
        return CommandResult(
            returncode=COMMAND_NOT_FOUND,
            stderr=f"{args[0]}: command not found\n",
        )
    except OSError as exc:
        # Permission denied, E2BIG: the command never started.
        return CommandResult(returncode=126, stderr=f"{args[0]}: {exc}\n")
    return CommandResult(
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


__all__ = ["COMMAND_NOT_FOUND", "CommandResult", "CommandRunner", "run_command"]
