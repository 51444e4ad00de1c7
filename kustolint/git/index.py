"""Queries against the git index for tracked files."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Sequence


class GitIndexError(RuntimeError):
    """Raised when the git index cannot be read."""


class TrackedFiles:
    """Lists tracked (and untracked, not ignored) files matching pathspecs."""

    def __init__(self, runner: Callable[..., str] | None = None) -> None:
        self._runner = runner or self._default_runner

    def list(
        self,
        repo_path: Path,
        patterns: Sequence[str],
        *,
        exclude: Sequence[str] = (),
    ) -> List[str]:
        """Return ordered, deduplicated repository-relative paths."""
        if not patterns:
            return []
        args = ["git", "ls-files", "-z", "--cached", "--others", "--exclude-standard", "--"]
        args.extend(patterns)
        args.extend(f":(exclude){pattern}" for pattern in exclude)
        try:
            output = self._runner(args, cwd=repo_path)
        except (OSError, UnicodeDecodeError, subprocess.CalledProcessError) as exc:
            raise GitIndexError(f"git ls-files failed in {repo_path}: {exc}") from exc
        return _dedupe(entry for entry in output.split("\0") if entry)

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            # Non-UTF-8 paths round-trip back to argv unchanged.
            encoding="utf-8",
            errors="surrogateescape",
            capture_output=True,
        )
        return completed.stdout


def _dedupe(paths: Iterable[str]) -> List[str]:
    # Unmerged entries are listed once per stage.
    return list(dict.fromkeys(paths))


__all__ = ["GitIndexError", "TrackedFiles"]
