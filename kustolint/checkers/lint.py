"""Checkers that run one external linter over a tracked file set."""

from __future__ import annotations

from pathlib import Path
from typing import List

from ..config import LintToolConfig
from ..logging import get_logger
from ..models import STATUS_FAILED, STATUS_OK, STATUS_SKIPPED, CheckResult, TrackedFileSet
from ..process import CommandRunner, run_command
from .base import Checker


class LintChecker(Checker):
    """Invokes a linter once over the entire file set and buffers its output."""

    def __init__(
        self,
        name: str,
        tool: LintToolConfig,
        *,
        slug: str,
        runner: CommandRunner | None = None,
    ) -> None:
        self.name = name
        self.tool = tool
        self.slug = slug
        self._runner = runner or run_command
        self.logger = get_logger(f"checkers.{slug}")

    def run(self, inputs: TrackedFileSet, root: Path, workdir: Path) -> CheckResult:
        if not self.tool.enabled or not inputs:
            self.logger.debug("%s: nothing to check", self.name)
            return CheckResult(name=self.name, status=STATUS_SKIPPED)

        args = self.command(root) + list(inputs.paths)
        self.logger.debug(
            "%s: running %s on %d files", self.name, self.tool.command[0], len(inputs)
        )
        result = self._runner(args, cwd=root, merge_stderr=True)

        output = result.stdout + result.stderr
        (workdir / f"{self.slug}.out").write_text(output, encoding="utf-8")

        status = STATUS_OK if result.ok else STATUS_FAILED
        return CheckResult(
            name=self.name,
            status=status,
            item_count=len(inputs),
            returncode=result.returncode,
            output=output,
        )

    def command(self, root: Path) -> List[str]:
        args = list(self.tool.command)
        if self.tool.config_file and (root / self.tool.config_file).is_file():
            args.extend(["--config", self.tool.config_file])
        return args


def markdown_checker(tool: LintToolConfig, runner: CommandRunner | None = None) -> LintChecker:
    return LintChecker("Markdownlint", tool, slug="markdown", runner=runner)


def shell_checker(tool: LintToolConfig, runner: CommandRunner | None = None) -> LintChecker:
    return LintChecker("Shellcheck", tool, slug="shell", runner=runner)


__all__ = ["LintChecker", "markdown_checker", "shell_checker"]
