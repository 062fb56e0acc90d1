"""Boost endpoints: grant a boost, then verify it after the offer-wall task."""

from fastapi import APIRouter

from neura_server.api.models import (
    BoostCreateRequest,
    BoostCreateResponse,
    BoostVerifyResponse,
    SessionRefRequest,
)
from neura_server.ledger import LedgerService


def router(service: LedgerService) -> APIRouter:
    """Build the boost router bound to the ledger service."""
    api = APIRouter()

    @api.post("/api/boosts", response_model=BoostCreateResponse)
    def create_boost(request: BoostCreateRequest):
        """Grant an unverified boost of 10-24 speed units."""
        result = service.create_boost(request.session_id, request.requested_at, request.task_type)
        return BoostCreateResponse.model_validate(result)

    @api.post("/api/boosts/{boost_id}/verify", response_model=BoostVerifyResponse)
    def verify_boost(boost_id: str, request: SessionRefRequest):
        """
        Verify a boost and apply it to the owning session.

        Repeating the call is harmless: the speed increase is applied once.
        """
        result = service.verify_boost(boost_id, request.session_id)
        message = "Boost verified and applied" if result["applied"] else "Boost already applied"
        return BoostVerifyResponse.model_validate({**result, "message": message})

    return api
