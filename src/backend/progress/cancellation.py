"""
Cooperative cancellation for harvest/sweep runs.

A run never gets interrupted preemptively. The engines poll the token at
fixed points (top of each scroll tick, each analysis item, each sweep pass
and each swept item) and decide locally whether cancellation is fatal.
"""

from __future__ import annotations

import threading


class OperationCancelledError(RuntimeError):
    """Raised when a user-requested stop is fatal to the current phase."""

    def __init__(self, message: str = "Operation cancelled by user") -> None:
        super().__init__(message)


class CancellationToken:
    """
    Thread-safe, one-way cancel flag.

    The scheduler (event loop) and the CLI signal handler may both set it;
    engines only read it.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError()
