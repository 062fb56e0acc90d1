"""Mining session endpoints (create, read state, save state)."""

from typing import Any

from fastapi import APIRouter, Body

from neura_server.api.models import (
    SessionCreateRequest,
    SessionCreateResponse,
    SessionSaveResponse,
    SessionStateResponse,
)
from neura_server.ledger import LedgerService


def router(service: LedgerService) -> APIRouter:
    """Build the session router bound to the ledger service."""
    api = APIRouter()

    @api.post("/api/session", response_model=SessionCreateResponse)
    def create_session(request: SessionCreateRequest | None = None):
        """Start a session with a zero balance and the default mining speed."""
        request = request or SessionCreateRequest()
        result = service.create_session(request.ua, request.started_at)
        return SessionCreateResponse.model_validate(result)

    @api.get("/api/session/{session_id}/state", response_model=SessionStateResponse)
    def get_session_state(session_id: str):
        """
        Return the session's mining state.

        The first read on a new UTC day zeroes the daily counter.
        """
        return SessionStateResponse.model_validate(service.get_session_state(session_id))

    @api.post("/api/session/{session_id}/state", response_model=SessionSaveResponse)
    def save_session_state(session_id: str, payload: dict[str, Any] = Body(...)):
        """
        Save client-reported mining state.

        Only fields present in the body are applied; invalid numbers keep the
        stored value.
        """
        return SessionSaveResponse.model_validate(service.set_session_state(session_id, payload))

    return api
