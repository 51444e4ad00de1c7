"""Rendering of the aggregated static analysis report."""

from __future__ import annotations

import json
from typing import Dict, List

from .models import STATUS_FAILED, STATUS_OK, AnalysisReport, BuildFailure, CheckResult

_RULE = "=============================="
_SEPARATOR = "-------------------"


class ReportWriter:
    """Formats an :class:`AnalysisReport` for humans or machines."""

    def __init__(self, *, ci_mode: bool = False) -> None:
        self.ci_mode = ci_mode

    def render_text(self, report: AnalysisReport) -> str:
        lines: List[str] = []
        lines.extend(self._group("Static Analysis Results"))
        lines.append(_RULE)
        lines.append(
            f"Found {report.markdown.item_count} Markdown files, "
            f"{report.shell.item_count} shell scripts and "
            f"{report.manifests.item_count} kustomization directories."
        )
        for result in (report.markdown, report.shell):
            lines.extend(_lint_lines(result))
        lines.extend(_build_lines(report.manifests))
        if report.artifacts_dir:
            lines.append(f"Artifacts retained in {report.artifacts_dir}")
        lines.extend(self._endgroup())
        return "\n".join(lines) + "\n"

    def render_json(self, report: AnalysisReport) -> str:
        payload: Dict[str, object] = {
            "root": report.root,
            "exit_code": report.exit_code,
            "checks": [_result_to_dict(result) for result in report.results],
        }
        if report.artifacts_dir:
            payload["artifacts_dir"] = report.artifacts_dir
        return json.dumps(payload, indent=2) + "\n"

    def _group(self, title: str) -> List[str]:
        if self.ci_mode:
            return [f"::group::{title}"]
        return [title]

    def _endgroup(self) -> List[str]:
        if self.ci_mode:
            return ["::endgroup::"]
        return [_SEPARATOR]


def _lint_lines(result: CheckResult) -> List[str]:
    if result.status == STATUS_OK:
        return [f"{result.name}: OK"]
    if result.status == STATUS_FAILED:
        if result.returncode is None:
            lines = [f"{result.name}: FAILED (error)"]
        else:
            lines = [f"{result.name}: FAILED (exit {result.returncode})"]
        if result.output:
            lines.append(result.output.rstrip("\n"))
        return lines
    return [f"{result.name}: SKIPPED"]


def _build_lines(result: CheckResult) -> List[str]:
    if result.status == STATUS_OK:
        return [f"{result.name}: OK"]
    if result.status != STATUS_FAILED:
        return [f"{result.name}: SKIPPED"]

    lines = [f"{result.name}: FAILED"]
    if not result.failures:
        # The checker itself crashed before recording directories.
        lines.extend(_indent(result.output))
        return lines
    lines.append("Failed directories and logs:")
    for failure in result.failures:
        lines.append(f"- {failure.path}")
        lines.extend(_failure_detail(failure))
    return lines


def _failure_detail(failure: BuildFailure) -> List[str]:
    if failure.stderr.strip():
        return ["  Stderr:", *_indent(failure.stderr)]
    if failure.stdout.strip():
        return ["  Stdout:", *_indent(failure.stdout)]
    return ["  (no output captured)"]


def _indent(text: str) -> List[str]:
    return [f"    {line}" for line in text.rstrip("\n").splitlines()]


def _result_to_dict(result: CheckResult) -> Dict[str, object]:
    data: Dict[str, object] = {
        "name": result.name,
        "status": result.status,
        "items": result.item_count,
    }
    if result.returncode is not None:
        data["returncode"] = result.returncode
    if result.status == STATUS_FAILED and result.output:
        data["output"] = result.output
    if result.failures:
        data["failures"] = [
            {"path": failure.path, "stderr": failure.stderr, "stdout": failure.stdout}
            for failure in result.failures
        ]
    return data


__all__ = ["ReportWriter"]
