"""Withdrawal ledger.

Creating a withdrawal debits the session balance immediately (a pessimistic
hold) and records the request as ``pending``.  Completion, triggered once the
external offer-wall verification succeeds, flips the status to ``completed``
exactly once and moves no balance.

There is no refund path: a withdrawal that is never completed keeps its hold.

Withdrawal records are keyed by id and outlive their session, so completion
still works after the session has been swept.
"""

from __future__ import annotations

import math
import uuid
from typing import TYPE_CHECKING, Any

from neura_server.ledger.errors import (
    AlreadyCompletedError,
    InsufficientBalanceError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from neura_server.ledger.schema import DEFAULT_NETWORK, MIN_WITHDRAWAL
from neura_server.ledger.stats import as_number
from neura_server.ledger.timestamps import to_iso

if TYPE_CHECKING:
    from neura_server.ledger.store import LedgerStore

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"


def parse_amount(value: Any) -> float | None:
    """Return ``value`` as a finite float, or ``None`` if it is not one."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(amount):
        return None
    return amount


class WithdrawalLedger:
    def __init__(self, store: "LedgerStore", *, min_amount: float = MIN_WITHDRAWAL) -> None:
        self._store = store
        self.min_amount = min_amount

    def create(
        self,
        snapshot: dict[str, Any],
        session_id: str,
        wallet_address: str | None,
        amount: Any,
        network: str | None = DEFAULT_NETWORK,
    ) -> dict[str, Any]:
        """Debit the session and record a pending withdrawal.

        Returns:
            ``{"withdrawalId", "newBalance"}``.

        Raises:
            NotFoundError: Unknown session.
            InvalidInputError: Missing wallet, or amount not a finite number
                of at least the minimum.
            InsufficientBalanceError: Amount exceeds the balance.
        """
        session = snapshot["sessions"].get(session_id)
        if session is None:
            raise NotFoundError("Session not found")

        if not isinstance(wallet_address, str) or not wallet_address.strip():
            raise InvalidInputError("Wallet address is required")

        parsed = parse_amount(amount)
        if parsed is None:
            raise InvalidInputError("Amount must be a number")
        if parsed < self.min_amount:
            raise InvalidInputError(f"Minimum withdrawal is {self.min_amount} NRX")

        balance = as_number(session["minedTokens"])
        if balance < parsed:
            raise InsufficientBalanceError("Insufficient balance")

        withdrawal_id = uuid.uuid4().hex
        snapshot["withdrawals"][withdrawal_id] = {
            "id": withdrawal_id,
            "sessionId": session_id,
            "walletAddress": wallet_address.strip(),
            "amount": parsed,
            "network": (network or "").strip() or DEFAULT_NETWORK,
            "status": STATUS_PENDING,
            "createdAt": to_iso(self._store.now()),
            "completedAt": None,
            "ogadsVerified": False,
        }

        session["minedTokens"] = balance - parsed
        session["withdrawals"].append(withdrawal_id)
        return {"withdrawalId": withdrawal_id, "newBalance": session["minedTokens"]}

    def complete(
        self, snapshot: dict[str, Any], withdrawal_id: str, session_id: str
    ) -> dict[str, Any]:
        """Finalize a pending withdrawal after external verification.

        Raises:
            NotFoundError: Unknown withdrawal.
            UnauthorizedError: ``session_id`` does not own it.
            AlreadyCompletedError: It was already completed; nothing changes.
        """
        withdrawal = snapshot["withdrawals"].get(withdrawal_id)
        if withdrawal is None:
            raise NotFoundError("Withdrawal not found")
        if withdrawal["sessionId"] != session_id:
            raise UnauthorizedError("Unauthorized")
        if withdrawal["status"] == STATUS_COMPLETED:
            raise AlreadyCompletedError("Withdrawal already completed")

        withdrawal["status"] = STATUS_COMPLETED
        withdrawal["completedAt"] = to_iso(self._store.now())
        withdrawal["ogadsVerified"] = True
        return dict(withdrawal)
