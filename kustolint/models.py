"""Core data models shared across kustolint components."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

STATUS_OK = "ok"
STATUS_FAILED = "failed"
STATUS_SKIPPED = "skipped"

ROLE_BASE = "base"
ROLE_OVERLAY = "overlay"


@dataclass(frozen=True)
class TrackedFileSet:
    """Ordered, deduplicated paths of one kind taken from the git index."""

    kind: str
    paths: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.paths)

    def __bool__(self) -> bool:
        return bool(self.paths)


@dataclass(frozen=True)
class ManifestDirectory:
    """A directory that directly contains a kustomization descriptor."""

    path: str

    @property
    def role(self) -> str:
        return ROLE_BASE if Path(self.path).name == ROLE_BASE else ROLE_OVERLAY

    @property
    def artifact_name(self) -> str:
        return self.path.replace("/", "_")


@dataclass(frozen=True)
class DiscoveredFiles:
    """Inputs for one analysis run."""

    markdown: TrackedFileSet
    shell: TrackedFileSet
    manifests: Tuple[ManifestDirectory, ...] = ()


@dataclass(frozen=True)
class BuildFailure:
    """Captured output of a manifest directory whose build failed."""

    path: str
    stderr: str = ""
    stdout: str = ""


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one checker."""

    name: str
    status: str
    item_count: int = 0
    returncode: Optional[int] = None
    output: str = ""
    failures: Tuple[BuildFailure, ...] = ()

    @property
    def failed(self) -> bool:
        return self.status == STATUS_FAILED

    @property
    def failed_paths(self) -> Tuple[str, ...]:
        return tuple(failure.path for failure in self.failures)


@dataclass(frozen=True)
class AnalysisReport:
    """Joined results of the markdown, shell and manifest-build checkers."""

    root: str
    markdown: CheckResult
    shell: CheckResult
    manifests: CheckResult
    artifacts_dir: Optional[str] = None

    @property
    def results(self) -> Tuple[CheckResult, ...]:
        return (self.markdown, self.shell, self.manifests)

    @property
    def exit_code(self) -> int:
        return 1 if any(result.failed for result in self.results) else 0
