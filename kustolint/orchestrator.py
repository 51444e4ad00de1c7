"""Pipeline orchestration: discover inputs, run checkers concurrently, join."""

from __future__ import annotations

import shutil
import tempfile
import traceback
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from .checkers import Checker, LintChecker, markdown_checker, shell_checker
from .config import CheckConfig, load_config
from .discovery import FileSetDiscoverer
from .logging import attach_file_sink, detach_file_sink, get_logger
from .manifests import ManifestBuildChecker
from .models import STATUS_FAILED, AnalysisReport, CheckResult, DiscoveredFiles


class StaticAnalysis:
    """Runs the markdown, shell and manifest-build checkers against one repository."""

    def __init__(
        self,
        config: CheckConfig | None = None,
        *,
        discoverer: FileSetDiscoverer | None = None,
        markdown: LintChecker | None = None,
        shell: LintChecker | None = None,
        manifests: ManifestBuildChecker | None = None,
    ) -> None:
        self._config = config
        self._discoverer = discoverer
        self._markdown = markdown
        self._shell = shell
        self._manifests = manifests
        self.logger = get_logger("orchestrator")

    def config_for(self, repo_path: Path) -> CheckConfig:
        if self._config is not None:
            return self._config
        return load_config(repo_path)

    def discover(self, path: str | Path | None = None) -> DiscoveredFiles:
        """Return the file sets that a run over ``path`` would check."""
        repo_path = self._repo_for(path)
        config = self.config_for(repo_path)
        discoverer = self._discoverer or FileSetDiscoverer(config)
        return discoverer.discover(repo_path)

    def run(self, path: str | Path | None = None) -> AnalysisReport:
        """Check the repository at ``path`` and return the joined report.

        Without a path the configured ``root`` is checked. Captured outputs are
        written to a temporary artifact directory that is removed afterwards
        unless debug mode is on, in which case it also receives a
        ``kustolint.log`` with every record tagged by the directory being built.
        """
        repo_path = self._repo_for(path)
        config = self.config_for(repo_path)
        self.logger.info("Starting static analysis for %s", repo_path)

        discoverer = self._discoverer or FileSetDiscoverer(config)
        files = discoverer.discover(repo_path)

        markdown = self._markdown or markdown_checker(config.markdown)
        shell = self._shell or shell_checker(config.shell)
        manifests = self._manifests or ManifestBuildChecker(config.manifests)

        workdir = Path(tempfile.mkdtemp(prefix="kustolint-"))
        retained: Optional[str] = None
        sink = attach_file_sink(workdir / "kustolint.log") if config.debug_mode else None
        try:
            with ThreadPoolExecutor(max_workers=3, thread_name_prefix="kustolint-check") as pool:
                md_future = pool.submit(markdown.run, files.markdown, repo_path, workdir)
                sh_future = pool.submit(shell.run, files.shell, repo_path, workdir)
                build_future = pool.submit(manifests.run, files.manifests, repo_path, workdir)
                md_result = self._join(md_future, markdown)
                sh_result = self._join(sh_future, shell)
                build_result = self._join(build_future, manifests)
        finally:
            if sink is not None:
                detach_file_sink(sink)
            if config.debug_mode:
                retained = str(workdir)
                self.logger.debug("Keeping artifacts in %s", workdir)
            else:
                shutil.rmtree(workdir, ignore_errors=True)

        report = AnalysisReport(
            root=str(repo_path),
            markdown=md_result,
            shell=sh_result,
            manifests=build_result,
            artifacts_dir=retained,
        )
        self.logger.debug("Static analysis finished with exit code %d", report.exit_code)
        return report

    def _repo_for(self, path: str | Path | None) -> Path:
        if path is None:
            path = self._config.root if self._config is not None else "."
        return _resolve_repo(path)

    def _join(self, future: Future[CheckResult], checker: Checker) -> CheckResult:
        """Wait for ``checker``; an unexpected error becomes its failed result."""
        try:
            return future.result()
        except Exception as exc:
            self.logger.error("%s crashed: %s", checker.name, exc)
            return CheckResult(
                name=checker.name,
                status=STATUS_FAILED,
                output="".join(traceback.format_exception(exc)),
            )


def _resolve_repo(path: str | Path) -> Path:
    repo_path = Path(path).expanduser().resolve()
    if not repo_path.exists():
        raise FileNotFoundError(f"Repository path not found: {path}")
    if not repo_path.is_dir():
        raise NotADirectoryError(f"Repository path is not a directory: {path}")
    return repo_path


__all__ = ["StaticAnalysis"]
