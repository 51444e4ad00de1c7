"""Scheduling helpers for manifest builds: phases, lock keys and worker counts."""

from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ..models import ROLE_BASE, ManifestDirectory

MIN_WORKERS = 2
MAX_WORKERS = 8


def concurrency_limit(cpu_count: Optional[int] = None) -> int:
    """Return ``clamp(ceil(cpu_count / 2), 2, 8)``.

    The CPU count defaults to ``os.cpu_count()``; an unknown or non-positive
    count is treated as 2.
    """
    if cpu_count is None:
        cpu_count = os.cpu_count()
    if not cpu_count or cpu_count < 1:
        cpu_count = 2
    half = math.ceil(cpu_count / 2)
    return max(MIN_WORKERS, min(MAX_WORKERS, half))


def partition(
    directories: Iterable[ManifestDirectory],
) -> Tuple[List[ManifestDirectory], List[ManifestDirectory]]:
    """Split directories into the ``base`` phase and everything else, keeping order.

    Overlays only ever reference a sibling ``base``, so building every base
    first satisfies the overlay-to-base dependency without a full graph.
    Nested overlays are not ordered against each other.
    """
    bases: List[ManifestDirectory] = []
    others: List[ManifestDirectory] = []
    for directory in directories:
        (bases if directory.role == ROLE_BASE else others).append(directory)
    return bases, others


def lock_key(root: Path, directory: ManifestDirectory) -> str:
    """Return the canonical path of ``<dir>/../base`` if it exists, else of ``<dir>``."""
    path = root / directory.path
    sibling_base = path / ".." / ROLE_BASE
    if sibling_base.is_dir():
        return str(sibling_base.resolve())
    return str(path.resolve())


__all__ = ["MAX_WORKERS", "MIN_WORKERS", "concurrency_limit", "lock_key", "partition"]
