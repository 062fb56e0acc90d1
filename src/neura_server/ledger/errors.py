"""Typed store and ledger exceptions.

Two families live here:

- :class:`StoreError` and its subclasses signal infrastructure failures while
  reading or writing the snapshot file.  They carry a
  :class:`StoreOperationContext` so API boundaries can log a stable operation
  name and map the failure to a deterministic 5xx response.
- :class:`LedgerError` and its subclasses are domain outcomes (unknown id,
  wrong owner, bad input, insufficient balance, double completion).  Raising
  one inside a store transaction aborts the unit of work without saving.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class StoreOperationContext:
    """Structured operation metadata carried by store exceptions.

    Attributes:
        operation: Stable operation identifier (for example
            ``"store.save"``).
        details: Optional human-readable context for logs and debugging.
    """

    operation: str
    details: str | None = None


class StoreError(RuntimeError):
    """Base exception for snapshot-store failures."""


class StoreOperationError(StoreError):
    """Base exception for snapshot read/write failures.

    Args:
        context: Structured operation metadata.
        cause: Optional underlying exception.
    """

    def __init__(
        self,
        *,
        context: StoreOperationContext,
        cause: Exception | None = None,
    ) -> None:
        message = context.operation
        if context.details:
            message = f"{message}: {context.details}"
        super().__init__(message)
        self.context = context
        self.cause = cause


class SnapshotReadError(StoreOperationError):
    """The snapshot file exists but could not be read or parsed."""


class PersistenceError(StoreOperationError):
    """Writing or atomically replacing the snapshot file failed."""


class LedgerError(Exception):
    """Base exception for domain outcomes of ledger operations.

    Attributes:
        code: Machine-friendly error key returned to API clients.
    """

    code = "ledger_error"


class NotFoundError(LedgerError):
    """A session, boost, or withdrawal id is unknown."""

    code = "not_found"


class UnauthorizedError(LedgerError):
    """The caller's session does not own the referenced record."""

    code = "unauthorized"


class InvalidInputError(LedgerError):
    """A required field is missing or a value is out of range."""

    code = "invalid_input"


class InsufficientBalanceError(LedgerError):
    """The withdrawal amount exceeds the session balance."""

    code = "insufficient_balance"


class AlreadyCompletedError(LedgerError):
    """The withdrawal has already been finalized."""

    code = "already_completed"
