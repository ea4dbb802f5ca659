"""Tests for InFlightGuard."""

from afkbot.lib.guards import InFlightGuard


def test_second_acquire_is_refused() -> None:
    guard = InFlightGuard()

    assert guard.acquire()
    assert not guard.acquire()
    assert guard.held
    assert guard.acquisitions == 1


def test_release_frees_the_guard() -> None:
    guard = InFlightGuard()
    guard.acquire()
    guard.release()

    assert not guard.held
    assert guard.acquire()
    assert guard.acquisitions == 2


def test_release_when_free_is_noop() -> None:
    guard = InFlightGuard()
    guard.release()

    assert guard.releases == 0
    assert not guard.held
