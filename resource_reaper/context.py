"""Cancellation and timeout token for reaper operations.

Every blocking provider call receives the context of the operation that
issued it. Clients pass ``remaining()`` as their request timeout and call
``check()`` between requests.
"""

import threading
import time
from typing import Optional

from resource_reaper.errors import OperationCancelled


class OperationContext:
    """Carries a cancellation flag and an optional deadline."""

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Initialize operation context.

        Args:
            timeout_seconds: Seconds from now after which the operation is
                considered expired. None means no deadline.
            cancel_event: Optional event shared with another context so that
                several operations can be cancelled together.
        """
        self._cancel_event = cancel_event or threading.Event()
        self._deadline: Optional[float] = None
        if timeout_seconds is not None:
            self._deadline = time.monotonic() + timeout_seconds

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """Raise OperationCancelled if the operation should stop."""
        if self.cancelled:
            raise OperationCancelled("Operation was cancelled")
        if self.expired:
            raise OperationCancelled("Operation deadline exceeded")


def background() -> OperationContext:
    """Context that is never cancelled and has no deadline."""
    return OperationContext()
