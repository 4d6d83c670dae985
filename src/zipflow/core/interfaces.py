"""Capabilities injected into plugins and handlers.

These are Protocols so tests can pass any object with the right shape
(for example a GUID provider that returns a fixed sequence).
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from zipflow.core.cancellation import CancellationToken
    from zipflow.core.item import Item


class IGuidProvider(Protocol):
    """Source of fresh unique identifiers."""

    def new_guid(self) -> str:
        """Return a new unique identifier string."""
        ...


class IOperationHandler(Protocol):
    """One archive operation (compress or decompress).

    Handlers run to completion on the caller's thread and poll the
    cancellation token at entry and before each item.
    """

    def handle(
        self,
        items: Sequence[Item] | None,
        options: Any,
        token: CancellationToken,
    ) -> Any:
        """Run the operation.

        Args:
            items: Normalized input items
            options: Operation options (ExecuteOptions)
            token: Cancellation token

        Returns:
            Item for compress, list of Items for decompress

        Raises:
            OperationError: If a precondition fails or the token is cancelled
        """
        ...


class UuidGuidProvider:
    """Default GUID provider backed by uuid4."""

    def new_guid(self) -> str:
        return str(uuid.uuid4())
