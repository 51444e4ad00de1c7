"""Tests for the keyed build lock."""

from __future__ import annotations

import threading
import time

import pytest

from kustolint.manifests.locks import KeyedLock, LockTimeoutError


def test_hold_releases_after_exception() -> None:
    locks = KeyedLock(poll_interval=0.001)

    with pytest.raises(RuntimeError):
        with locks.hold("/repo/x/base"):
            assert locks.locked("/repo/x/base")
            raise RuntimeError("render crashed")

    assert not locks.locked("/repo/x/base")


def test_distinct_keys_do_not_block_each_other() -> None:
    locks = KeyedLock(poll_interval=0.001, timeout=0.05)

    with locks.hold("/repo/x/base"):
        with locks.hold("/repo/y/base"):
            assert locks.locked("/repo/x/base")
            assert locks.locked("/repo/y/base")


def test_acquire_times_out_while_key_is_held() -> None:
    locks = KeyedLock(poll_interval=0.001, timeout=0.02)
    locks.acquire("/repo/x/base")

    with pytest.raises(LockTimeoutError) as excinfo:
        locks.acquire("/repo/x/base")

    assert excinfo.value.key == "/repo/x/base"
    assert "/repo/x/base" in str(excinfo.value)
    locks.release("/repo/x/base")


def test_waiter_polls_on_fixed_interval() -> None:
    now = [0.0]
    sleeps: list[float] = []

    def sleep(seconds: float) -> None:
        sleeps.append(seconds)
        now[0] += seconds

    locks = KeyedLock(poll_interval=0.25, timeout=1.0, clock=lambda: now[0], sleep=sleep)
    locks.acquire("key")

    with pytest.raises(LockTimeoutError):
        locks.acquire("key")

    assert sleeps == [0.25, 0.25, 0.25, 0.25]


def test_waiter_acquires_once_holder_releases() -> None:
    locks = KeyedLock(poll_interval=0.001)
    locks.acquire("key")
    acquired = threading.Event()

    def waiter() -> None:
        with locks.hold("key"):
            acquired.set()

    thread = threading.Thread(target=waiter)
    thread.start()
    time.sleep(0.02)
    assert not acquired.is_set()

    locks.release("key")
    thread.join(timeout=2)
    assert acquired.is_set()
