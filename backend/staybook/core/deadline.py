"""
Caller-supplied deadlines and cancellation for service operations.

A ``Deadline`` is passed down from the API layer (or any caller) into the
services. Services call ``check()`` between steps; inside a transaction the
resulting ``OperationCancelledException`` triggers a rollback.
"""

from __future__ import annotations

import threading
import time
from typing import Optional

from .exceptions import OperationCancelledException


class Deadline:
    """Monotonic-clock deadline with an optional explicit cancel switch."""

    def __init__(self, expires_at: Optional[float] = None) -> None:
        self._expires_at = expires_at
        self._cancelled = threading.Event()

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(time.monotonic() + seconds)

    @classmethod
    def never(cls) -> "Deadline":
        return cls(None)

    def cancel(self) -> None:
        """Request cancellation; the next ``check()`` raises."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def remaining_seconds(self) -> Optional[float]:
        """Seconds left, ``None`` when unbounded, never negative."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def remaining_ms(self) -> Optional[int]:
        remaining = self.remaining_seconds()
        if remaining is None:
            return None
        return max(1, int(remaining * 1000))

    def check(self, operation: str) -> None:
        """Raise ``OperationCancelledException`` if cancelled or expired."""
        if self.cancelled:
            raise OperationCancelledException(operation, reason="cancelled by caller")
        if self.expired:
            raise OperationCancelledException(operation)


def check_deadline(deadline: Optional[Deadline], operation: str) -> None:
    """``Deadline.check`` that tolerates ``None``."""
    if deadline is not None:
        deadline.check(operation)
