"""Error taxonomy for the ledger core."""

from __future__ import annotations

from typing import Iterable, Optional


class LedgerError(Exception):
    """Base class for ledger errors."""


class EventValidationError(LedgerError):
    """A draft is missing required fields or carries fields foreign to its type."""

    def __init__(self, message: str, fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.fields = tuple(sorted(fields))


class EventStoreError(LedgerError):
    """The storage layer failed; the operation had no partial effect."""

    def __init__(
        self, operation: str, event_id: Optional[int] = None, detail: str = ""
    ) -> None:
        target = f" (event_id={event_id})" if event_id is not None else ""
        message = f"Event store {operation} failed{target}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.operation = operation
        self.event_id = event_id
