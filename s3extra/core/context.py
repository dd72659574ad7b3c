"""Operation context — deadline and cancellation shared by one operation.

The host hands every lifecycle operation an ambient deadline. The context
carries it into file reads, uploads and the existence-confirmation poll so
that the first cancellation stops all remaining work.
"""

from __future__ import annotations

import threading
import time

from s3extra.core.errors import OperationCancelledError


class OperationContext:
    """Deadline plus cancellation flag for a single lifecycle operation.

    Parameters
    ----------
    timeout:
        Seconds until the deadline. ``None`` means no deadline.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Signal cancellation to everything holding this context."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or ``None`` without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """Raise ``OperationCancelledError`` if the operation must stop."""
        if self._event.is_set():
            raise OperationCancelledError("Operation was cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise OperationCancelledError("Operation deadline exceeded")

    def sleep(self, seconds: float) -> None:
        """Sleep up to *seconds*, waking early on cancellation."""
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        self._event.wait(max(0.0, seconds))
        self.check()
