"""Withdrawal endpoints: request (with immediate balance hold) and complete."""

from fastapi import APIRouter

from neura_server.api.models import (
    SessionRefRequest,
    WithdrawalCompleteResponse,
    WithdrawalCreateRequest,
    WithdrawalCreateResponse,
)
from neura_server.ledger import LedgerService


def router(service: LedgerService) -> APIRouter:
    """Build the withdrawal router bound to the ledger service."""
    api = APIRouter()

    @api.post("/api/withdrawals", response_model=WithdrawalCreateResponse)
    def create_withdrawal(request: WithdrawalCreateRequest):
        """
        Request a withdrawal.

        The amount is debited from the session balance immediately and the
        withdrawal stays pending until completed.
        """
        result = service.create_withdrawal(
            request.session_id, request.wallet_address, request.amount, request.network
        )
        return WithdrawalCreateResponse.model_validate(result)

    @api.post(
        "/api/withdrawals/{withdrawal_id}/complete", response_model=WithdrawalCompleteResponse
    )
    def complete_withdrawal(withdrawal_id: str, request: SessionRefRequest):
        """Mark a pending withdrawal completed after external verification."""
        result = service.complete_withdrawal(withdrawal_id, request.session_id)
        return WithdrawalCompleteResponse.model_validate(result)

    return api
