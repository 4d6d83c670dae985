"""Cooperative cancellation.

Operations poll the token at fixed checkpoints (entry and per-item
boundaries); nothing is interrupted mid-copy.
"""

from __future__ import annotations

import threading

from zipflow.core.errors import OperationCancelledError


class CancellationToken:
    """Thread-safe cancel flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    @classmethod
    def none(cls) -> CancellationToken:
        """Token that is never cancelled."""
        return cls()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError()
