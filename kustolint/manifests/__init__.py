"""Manifest-build checking with per-base locking."""

from .builder import FailureLog, ManifestBuildChecker
from .locks import KeyedLock, LockTimeoutError
from .planner import concurrency_limit, lock_key, partition

__all__ = [
    "FailureLog",
    "KeyedLock",
    "LockTimeoutError",
    "ManifestBuildChecker",
    "concurrency_limit",
    "lock_key",
    "partition",
]
