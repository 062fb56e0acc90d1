"""
FastAPI backend server for the Neura mining game.

This module builds and configures the FastAPI application:
- CORS middleware for the browser client
- The ledger service that owns the snapshot file
- Exception handlers mapping ledger/store errors to HTTP statuses
- All API routes
- A background task that periodically sweeps inactive sessions

The ledger store is opened when the app starts and closed when it stops
(FastAPI lifespan).  Route handlers are plain ``def`` functions so FastAPI
runs them in its threadpool; the store's lock serialises them.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from neura_server import __version__
from neura_server.api.errors import register_exception_handlers
from neura_server.api.routes import register_routes
from neura_server.ledger import LedgerService

logger = logging.getLogger(__name__)


async def sweep_periodically(service: LedgerService, interval_seconds: float) -> None:
    """Run a retention sweep now and then every ``interval_seconds``.

    Any failure is logged and the loop continues with the next tick.
    """
    while True:
        try:
            await asyncio.to_thread(service.sweep_expired_sessions)
        except Exception:
            logger.warning("retention sweep failed", exc_info=True)
        await asyncio.sleep(interval_seconds)


def create_app(service: LedgerService | None = None, *, sweeper: bool | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        service: Ledger service to serve.  Defaults to one built from config.
        sweeper: Start the periodic retention sweep.  Defaults to
            ``retention.enabled``.

    Returns:
        Configured FastAPI app.
    """
    from neura_server.config import config

    service = service or LedgerService.from_config()
    run_sweeper = config.retention.enabled if sweeper is None else sweeper

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        service.open()
        task = None
        if run_sweeper:
            task = asyncio.create_task(
                sweep_periodically(service, config.retention.sweep_interval_seconds)
            )
        try:
            yield
        finally:
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            service.close()

    docs = config.docs_should_be_enabled
    app = FastAPI(
        title="Neura Token Backend",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
    )
    app.state.ledger = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.cors_origins,
        allow_credentials=config.security.cors_allow_credentials,
        allow_methods=config.security.cors_allow_methods,
        allow_headers=config.security.cors_allow_headers,
    )

    register_exception_handlers(app)
    register_routes(app, service)
    return app


def start_server(host: str | None = None, port: int | None = None) -> None:
    """Configure logging and run the app under uvicorn."""
    import uvicorn

    from neura_server.config import config, configure_logging

    configure_logging()
    host = host or config.server.host
    port = port or config.server.port
    logger.info("Neura Token Backend on %s:%s, store %s", host, port, config.store.absolute_path)
    uvicorn.run(create_app(), host=host, port=port, log_config=None)


if __name__ == "__main__":
    start_server()
