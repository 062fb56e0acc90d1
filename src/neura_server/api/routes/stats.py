"""Activity tracking, dashboard statistics and the admin snapshot export."""

from typing import Any

from fastapi import APIRouter, Body, HTTPException

from neura_server.api.models import SuccessResponse
from neura_server.ledger import LedgerService


def router(service: LedgerService) -> APIRouter:
    """Build the stats/activity router bound to the ledger service."""
    api = APIRouter()

    @api.post("/api/activity", response_model=SuccessResponse)
    def track_activity(payload: dict[str, Any] = Body(...)):
        """Append a client activity record (the log keeps the latest 1000)."""
        service.track_activity(payload)
        return SuccessResponse(success=True, message="Activity logged")

    @api.get("/api/stats")
    def get_stats() -> dict[str, Any]:
        """Aggregate counters plus recent activities and withdrawals."""
        return service.get_stats()

    @api.get("/api/admin/data")
    def export_snapshot() -> dict[str, Any]:
        """
        Dump the entire snapshot.

        Served only when ``security.admin_export`` resolves to enabled
        ("auto" follows non-production mode).
        """
        from neura_server.config import config

        if not config.admin_export_enabled:
            raise HTTPException(status_code=404, detail="Not Found")
        return service.export_snapshot()

    return api
