"""Cancellation and deadline tracking shared by long-running operations."""

from __future__ import annotations

import threading
import time

from .errors import CancellationError


class RunContext:
    """Deadline plus explicit cancel flag for one plugin invocation.

    Walks, HTTP calls and subprocesses consult :meth:`check` before doing
    work and :meth:`timeout` to bound how long they may block.
    """

    def __init__(self, *, deadline: float | None = None) -> None:
        self._deadline = deadline
        self._cancelled = threading.Event()

    @classmethod
    def background(cls) -> "RunContext":
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> "RunContext":
        return cls(deadline=time.monotonic() + max(float(seconds), 0.0))

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def check(self) -> None:
        """Raise :class:`CancellationError` if the context is done."""

        if self.cancelled:
            raise CancellationError("operation cancelled")
        if self.expired:
            raise CancellationError("deadline exceeded")

    def timeout(self, cap: float | None = None) -> float | None:
        """Seconds left before the deadline, bounded by ``cap``."""

        self.check()
        if self._deadline is None:
            return cap
        remaining = max(self._deadline - time.monotonic(), 0.0)
        if cap is None:
            return remaining
        return min(remaining, cap)
