"""Base class for checkers."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from ..models import CheckResult


class Checker(ABC):
    """Contract for one of the concurrently running validation tasks."""

    #: Label used in the report, e.g. ``Shellcheck``.
    name: str

    @abstractmethod
    def run(self, inputs: Any, root: Path, workdir: Path) -> CheckResult:
        """Check ``inputs`` relative to ``root``, buffering tool output under ``workdir``."""
