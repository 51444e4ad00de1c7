"""Manifest-build checker: renders every kustomization directory."""

from __future__ import annotations

import threading
import traceback
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence

from ..checkers.base import Checker
from ..config import ManifestConfig
from ..logging import build_context, get_logger
from ..models import (
    STATUS_FAILED,
    STATUS_OK,
    STATUS_SKIPPED,
    BuildFailure,
    CheckResult,
    ManifestDirectory,
)
from ..process import CommandRunner, run_command
from .locks import KeyedLock, LockTimeoutError
from .planner import concurrency_limit, lock_key, partition


class FailureLog:
    """Append-only, thread-safe record of failed directories."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._failures: List[BuildFailure] = []

    def append(self, failure: BuildFailure) -> None:
        with self._lock:
            self._failures.append(failure)

    def snapshot(self) -> List[BuildFailure]:
        with self._lock:
            return list(self._failures)

    def __len__(self) -> int:
        with self._lock:
            return len(self._failures)


class ManifestBuildChecker(Checker):
    """Builds base directories first, then overlays, on a bounded worker pool.

    Directories resolving to the same base share a lock so that concurrent
    ``kustomize build --enable-helm`` runs do not race while unpacking charts
    under that base.
    """

    name = "Kustomize build"

    def __init__(
        self,
        config: ManifestConfig | None = None,
        *,
        runner: CommandRunner | None = None,
        locks: KeyedLock | None = None,
        workers: Optional[int] = None,
    ) -> None:
        self.config = config or ManifestConfig()
        self._runner = runner or run_command
        self.locks = locks or KeyedLock(
            poll_interval=self.config.lock_poll_interval,
            timeout=self.config.lock_timeout,
        )
        self.workers = workers or self.config.concurrency or concurrency_limit()
        self.logger = get_logger("manifests")

    def run(
        self, inputs: Sequence[ManifestDirectory], root: Path, workdir: Path
    ) -> CheckResult:
        if not self.config.enabled or not inputs:
            self.logger.debug("No manifest directories to build")
            return CheckResult(name=self.name, status=STATUS_SKIPPED)

        existing = [directory for directory in inputs if (root / directory.path).is_dir()]
        for directory in inputs:
            if directory not in existing:
                self.logger.debug("Skipping vanished directory %s", directory.path)
        bases, others = partition(existing)

        failures = FailureLog()
        self.logger.debug(
            "Building %d base and %d other directories with %d workers",
            len(bases),
            len(others),
            self.workers,
        )
        self._run_phase(bases, root, workdir, failures)
        self._run_phase(others, root, workdir, failures)

        collected = sorted(failures.snapshot(), key=lambda failure: failure.path)
        return CheckResult(
            name=self.name,
            status=STATUS_FAILED if collected else STATUS_OK,
            item_count=len(bases) + len(others),
            failures=tuple(collected),
        )

    def _run_phase(
        self,
        directories: Sequence[ManifestDirectory],
        root: Path,
        workdir: Path,
        failures: FailureLog,
    ) -> None:
        if not directories:
            return
        with ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="kustolint-build"
        ) as executor:
            futures = [
                executor.submit(self.build, directory, root, workdir, failures)
                for directory in directories
            ]
            for directory, future in zip(directories, futures):
                try:
                    future.result()
                except Exception as exc:
                    with build_context(directory.path):
                        self.logger.error("%s: build crashed: %s", directory.path, exc)
                    failures.append(
                        BuildFailure(
                            path=directory.path,
                            stderr="".join(traceback.format_exception(exc)),
                        )
                    )

    def build(
        self,
        directory: ManifestDirectory,
        root: Path,
        workdir: Path,
        failures: FailureLog,
    ) -> bool:
        """Render one directory under its base lock; record a failure on non-zero exit."""
        key = lock_key(root, directory)
        build_file = workdir / f"build_{directory.artifact_name}.yaml"
        err_file = workdir / f"build_{directory.artifact_name}.err"

        try:
            with build_context(directory.path), self.locks.hold(key):
                self.logger.debug("Building %s (lock %s)", directory.path, key)
                result = self._runner(
                    [*self.config.command, directory.path], cwd=root, merge_stderr=False
                )
        except LockTimeoutError as exc:
            self.logger.warning("%s: %s", directory.path, exc)
            err_file.write_text(f"{exc}\n", encoding="utf-8")
            failures.append(BuildFailure(path=directory.path, stderr=f"{exc}\n"))
            return False

        build_file.write_text(result.stdout, encoding="utf-8")
        err_file.write_text(result.stderr, encoding="utf-8")
        if not result.ok:
            self.logger.debug("%s: build exited %d", directory.path, result.returncode)
            failures.append(
                BuildFailure(path=directory.path, stderr=result.stderr, stdout=result.stdout)
            )
            return False
        return True


__all__ = ["FailureLog", "ManifestBuildChecker"]
