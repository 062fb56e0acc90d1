"""API route registration.

Each resource module exposes ``router(service)`` returning an ``APIRouter``
bound to the ledger service; ``health`` needs no service and exposes a plain
``router``.
"""

from fastapi import FastAPI

from neura_server.api.routes import boosts, health, sessions, stats, withdrawals
from neura_server.ledger import LedgerService


def register_routes(app: FastAPI, service: LedgerService) -> None:
    """Register all API routes with the FastAPI app."""
    app.include_router(health.router)
    app.include_router(sessions.router(service))
    app.include_router(boosts.router(service))
    app.include_router(withdrawals.router(service))
    app.include_router(stats.router(service))
