"""Shared test fixtures."""

import os

# Settings are read at import time by src.main; tests never touch a real .env
os.environ.setdefault("JWT_SECRET", "test-secret-do-not-use-in-production")
os.environ.setdefault("POLL_INTERVAL_SECONDS", "0")
os.environ.setdefault("CUSTODIAN_ADDRESS", "rCUSTODIANxxxxxxxxxxxxxxxxxxxxxxx")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
