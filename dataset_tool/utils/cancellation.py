"""
Cooperative cancellation for long running transfer operations.

A CancelToken is passed down through pushes, pulls and downloads. Blocking
steps check it between chunks and waits are performed on it, so cancelling
the token wakes sleepers immediately instead of letting them run out their
timeout. Child tokens are cancelled together with their parent, which lets a
worker pool abort its siblings without cancelling the caller.
"""

import threading
import time
from typing import List, Optional

from ..exceptions import OperationCancelledError


class CancelToken:
    """Thread-safe cancellation signal with parent/child propagation."""

    def __init__(self, parent: Optional["CancelToken"] = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: List["CancelToken"] = []
        self._reason: Optional[str] = None
        if parent is not None:
            parent._attach(self)

    def _attach(self, child: "CancelToken") -> None:
        with self._lock:
            self._children.append(child)
            cancelled = self._event.is_set()
            reason = self._reason
        if cancelled:
            child.cancel(reason)

    def child(self) -> "CancelToken":
        """Create a token that is cancelled whenever this one is."""
        return CancelToken(parent=self)

    def cancel(self, reason: Optional[str] = None) -> None:
        """Cancel this token and every child token. Repeated calls are no-ops."""
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            children = list(self._children)
        for child in children:
            child.cancel(reason)

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called on this token or an ancestor."""
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or until timeout elapses.

        Returns:
            True if the token was cancelled, False if the timeout elapsed
        """
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelledError if the token has been cancelled."""
        if self._event.is_set():
            raise OperationCancelledError(self._reason or "operation cancelled")


def raise_if_cancelled(cancel: Optional[CancelToken]) -> None:
    """Check an optional token, raising OperationCancelledError if it is set."""
    if cancel is not None:
        cancel.raise_if_cancelled()


def wait_until(deadline: float, cancel: Optional[CancelToken] = None) -> bool:
    """
    Sleep until an absolute unix timestamp or until cancelled.

    Never sleeps past the deadline and returns immediately when the deadline
    has already passed.

    Args:
        deadline: Absolute time (seconds since the epoch) to wake up at
        cancel: Optional token that interrupts the wait

    Returns:
        True if the wait was interrupted by cancellation, False otherwise
    """
    remaining = deadline - time.time()
    if cancel is None:
        if remaining > 0:
            time.sleep(remaining)
        return False
    if remaining <= 0:
        return cancel.cancelled
    return cancel.wait(remaining)


__all__ = ["CancelToken", "raise_if_cancelled", "wait_until"]
