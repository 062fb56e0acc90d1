"""Health and root endpoints.

Provides the root ``/`` endpoint (API identity and version) and
``/api/health`` (liveness with server time and process uptime).

The version string is read from ``neura_server.__version__`` which is
resolved at import time via ``importlib.metadata``.
"""

import time

from fastapi import APIRouter

from neura_server import __version__
from neura_server.api.models import HealthResponse
from neura_server.ledger.timestamps import to_iso, utc_now

_STARTED = time.monotonic()

router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint showing API identity and current version."""
    return {"message": "Neura Token Backend API", "version": __version__}


@router.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=to_iso(utc_now()),
        uptime=round(time.monotonic() - _STARTED, 3),
    )
