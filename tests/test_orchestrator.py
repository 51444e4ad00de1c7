"""End-to-end tests for the static analysis pipeline with fake tools."""

from __future__ import annotations

import shutil
import sys
import threading
from pathlib import Path

import pytest

from kustolint.checkers import markdown_checker, shell_checker
from kustolint.config import CheckConfig
from kustolint.discovery import FileSetDiscoverer
from kustolint.git.index import TrackedFiles
from kustolint.manifests import ManifestBuildChecker
from kustolint.models import STATUS_FAILED, STATUS_OK, STATUS_SKIPPED
from kustolint.orchestrator import StaticAnalysis
from kustolint.report import ReportWriter
from tests._fixtures.fake_tools import FakeKustomize, FakeLinter, fake_git
from tests._fixtures.repo_builder import RepoBuilder


def _analysis(
    root: Path,
    *,
    listing: dict,
    markdown: FakeLinter | None = None,
    shell: FakeLinter | None = None,
    kustomize: FakeKustomize | None = None,
    debug: bool = False,
) -> StaticAnalysis:
    config = CheckConfig(root=root, debug_mode=debug)
    return StaticAnalysis(
        config,
        discoverer=FileSetDiscoverer(config, TrackedFiles(runner=fake_git(listing))),
        markdown=markdown_checker(config.markdown, runner=markdown or FakeLinter()),
        shell=shell_checker(config.shell, runner=shell or FakeLinter()),
        manifests=ManifestBuildChecker(
            config.manifests, runner=kustomize or FakeKustomize(), workers=2
        ),
    )


def test_failed_shell_lint_fails_run_while_other_checks_pass(repo_builder: RepoBuilder) -> None:
    repo_builder.kustomizations(["bootstrap/base", "bootstrap/dev"])
    shell = FakeLinter(returncode=1, output="In a.sh line 1:\nSC2148: Add a shebang.\n")
    analysis = _analysis(
        repo_builder.path(), listing={"*.sh": ["a.sh"]}, shell=shell
    )

    report = analysis.run(repo_builder.path())

    assert report.markdown.status == STATUS_SKIPPED
    assert report.shell.status == STATUS_FAILED
    assert report.manifests.status == STATUS_OK
    assert report.exit_code == 1
    text = ReportWriter().render_text(report)
    assert "Markdownlint: SKIPPED" in text
    assert "Shellcheck: FAILED (exit 1)" in text
    assert "SC2148: Add a shebang." in text
    assert "Kustomize build: OK" in text


def test_overlay_failure_is_the_only_listed_failure(repo_builder: RepoBuilder) -> None:
    repo_builder.kustomizations(["deploy/x/base", "deploy/x/overlay"])
    kustomize = FakeKustomize(failing={"deploy/x/overlay": "Error: bad patch\n"})
    analysis = _analysis(repo_builder.path(), listing={}, kustomize=kustomize)

    report = analysis.run(repo_builder.path())

    assert report.manifests.failed_paths == ("deploy/x/overlay",)
    assert report.exit_code == 1


def test_nothing_to_check_passes(repo_builder: RepoBuilder) -> None:
    report = _analysis(repo_builder.path(), listing={}).run(repo_builder.path())

    assert [result.status for result in report.results] == [STATUS_SKIPPED] * 3
    assert report.exit_code == 0
    assert report.artifacts_dir is None


def test_debug_mode_retains_artifacts(repo_builder: RepoBuilder) -> None:
    repo_builder.kustomizations(["deploy/apps"])
    analysis = _analysis(
        repo_builder.path(), listing={"*.md": ["README.md"]}, debug=True
    )

    report = analysis.run(repo_builder.path())

    assert report.artifacts_dir is not None
    artifacts = Path(report.artifacts_dir)
    assert (artifacts / "markdown.out").exists()
    assert (artifacts / "build_deploy_apps.yaml").exists()
    shutil.rmtree(artifacts)


def test_missing_repository_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        StaticAnalysis(CheckConfig(root=tmp_path)).run(tmp_path / "missing")


def test_discover_lists_inputs_without_running_tools(repo_builder: RepoBuilder) -> None:
    repo_builder.kustomizations(["bootstrap/dns/base"])
    kustomize = FakeKustomize()
    analysis = _analysis(
        repo_builder.path(), listing={"*.md": ["README.md"]}, kustomize=kustomize
    )

    files = analysis.discover(repo_builder.path())

    assert files.markdown.paths == ("README.md",)
    assert [directory.path for directory in files.manifests] == ["bootstrap/dns/base"]
    assert kustomize.calls == []


def test_checkers_run_concurrently(repo_builder: RepoBuilder) -> None:
    repo_builder.kustomizations(["deploy/apps"])
    # Each check blocks until all three have started.
    barrier = threading.Barrier(3, timeout=5)
    analysis = _analysis(
        repo_builder.path(),
        listing={"*.md": ["README.md"], "*.sh": ["a.sh"]},
        markdown=FakeLinter(on_call=barrier.wait),
        shell=FakeLinter(on_call=barrier.wait),
        kustomize=FakeKustomize(on_call=lambda directory: barrier.wait()),
    )

    report = analysis.run(repo_builder.path())

    assert [result.status for result in report.results] == [STATUS_OK] * 3
    assert not barrier.broken


def test_crashing_checker_is_reported_as_failed(repo_builder: RepoBuilder) -> None:
    repo_builder.kustomizations(["deploy/apps"])

    def explode() -> None:
        raise RuntimeError("markdownlint wrapper exploded")

    analysis = _analysis(
        repo_builder.path(),
        listing={"*.md": ["README.md"]},
        markdown=FakeLinter(on_call=explode),
    )

    report = analysis.run(repo_builder.path())

    assert report.markdown.status == STATUS_FAILED
    assert report.markdown.returncode is None
    assert "Traceback" in report.markdown.output
    assert "RuntimeError: markdownlint wrapper exploded" in report.markdown.output
    assert report.manifests.status == STATUS_OK
    assert report.exit_code == 1
    assert "Markdownlint: FAILED (error)" in ReportWriter().render_text(report)


def test_undecodable_build_output_is_reported(repo_builder: RepoBuilder) -> None:
    repo_builder.kustomizations(["deploy/apps"])
    config = CheckConfig(root=repo_builder.path())
    config.manifests.command = [
        sys.executable,
        "-c",
        "import sys; sys.stderr.buffer.write(b'Error: chart \\xff\\xfe\\n'); sys.exit(1)",
    ]
    analysis = StaticAnalysis(
        config,
        discoverer=FileSetDiscoverer(config, TrackedFiles(runner=fake_git({}))),
    )

    report = analysis.run()

    assert report.manifests.failed_paths == ("deploy/apps",)
    assert report.manifests.failures[0].stderr == "Error: chart \ufffd\ufffd\n"
    assert report.exit_code == 1
    assert "Error: chart" in ReportWriter().render_text(report)


def test_run_defaults_to_configured_root(repo_builder: RepoBuilder) -> None:
    repo_builder.kustomizations(["deploy/apps"])
    kustomize = FakeKustomize()
    analysis = _analysis(repo_builder.path(), listing={}, kustomize=kustomize)

    report = analysis.run()

    assert report.root == str(repo_builder.path().resolve())
    assert [call.directory for call in kustomize.calls] == ["deploy/apps"]


def test_debug_log_tags_records_with_build_directory(repo_builder: RepoBuilder) -> None:
    repo_builder.kustomizations(["deploy/apps", "deploy/infra"])

    def crash(directory: str) -> None:
        if directory == "deploy/infra":
            raise RuntimeError("helm pull failed")

    analysis = _analysis(
        repo_builder.path(),
        listing={},
        kustomize=FakeKustomize(on_call=crash),
        debug=True,
    )

    report = analysis.run()

    artifacts = Path(report.artifacts_dir)
    log_text = (artifacts / "kustolint.log").read_text(encoding="utf-8")
    assert "[deploy/infra]: deploy/infra: build crashed: helm pull failed" in log_text
    assert report.manifests.failed_paths == ("deploy/infra",)
    assert "RuntimeError: helm pull failed" in report.manifests.failures[0].stderr
    shutil.rmtree(artifacts)
