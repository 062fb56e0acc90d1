"""
Shared pytest fixtures for the Neura backend test suite.

This module provides fixtures that are automatically available to all test files:
- A temporary snapshot file wired into the config via ``use_test_store``
- A controllable clock so daily resets and retention can be tested exactly
- An open ``LedgerService`` with a seeded random source
- A FastAPI TestClient bound to that service (periodic sweeper disabled)
"""

import random
from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from neura_server.api.server import create_app
from neura_server.config import use_test_store
from neura_server.ledger import LedgerService, LedgerStore

START = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ============================================================================
# STORE FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def store_path(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Point the configured store at a fresh temporary snapshot file.

    The file itself does not exist yet; opening a store creates it.
    """
    path = tmp_path / "data" / "database.json"
    with use_test_store(path):
        yield path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="function")
def service(store_path: Path, clock: FakeClock) -> Generator[LedgerService, None, None]:
    """
    Open ledger service over the temporary store.

    Boost amounts come from a seeded ``random.Random`` so runs are repeatable.
    """
    store = LedgerStore(store_path, clock=clock)
    svc = LedgerService(store, rng=random.Random(1234))
    with svc:
        yield svc


@pytest.fixture
def session_id(service: LedgerService) -> str:
    """A freshly created session with a zero balance."""
    return service.create_session("pytest-agent")["sessionId"]


@pytest.fixture
def funded_session(service: LedgerService, session_id: str) -> str:
    """A session holding 10 mined tokens."""
    service.set_session_state(session_id, {"minedTokens": 10})
    return session_id


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def test_client(service: LedgerService) -> Generator[TestClient, None, None]:
    """
    FastAPI TestClient bound to the test service.

    Usage:
        def test_health(test_client):
            response = test_client.get("/api/health")
            assert response.status_code == 200
    """
    app = create_app(service, sweeper=False)
    with TestClient(app) as client:
        yield client
