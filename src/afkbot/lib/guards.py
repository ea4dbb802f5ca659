"""Single-flight guard for non-reentrant operation sequences.

An ``InFlightGuard`` is a plain flag: callers check-and-acquire it
synchronously before their first ``await``, and release it in a
``finally`` block. Because all callers share one event loop, no lock is
needed; a second caller simply sees the flag and backs off instead of
queueing.

Examples:
    >>> guard = InFlightGuard()
    >>> guard.acquire()
    True
    >>> guard.acquire()
    False
    >>> guard.release()
    >>> guard.held
    False
"""


class InFlightGuard:
    """Tracks whether a non-reentrant sequence is currently running.

    ``acquisitions`` and ``releases`` count state changes so callers (and
    tests) can check that every started sequence released exactly once.
    """

    def __init__(self) -> None:
        self.held: bool = False
        self.acquisitions: int = 0
        self.releases: int = 0

    def acquire(self) -> bool:
        """Take the guard. Returns False, without side effects, if held."""
        if self.held:
            return False
        self.held = True
        self.acquisitions += 1
        return True

    def release(self) -> None:
        """Free the guard. Releasing a free guard is a no-op."""
        if not self.held:
            return
        self.held = False
        self.releases += 1
