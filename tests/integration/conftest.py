"""Integration-test fixtures.

All integration tests share a single event-loop so that the process-wide
SQLAlchemy async engine pool and Redis pool remain valid across the entire
test session. PostgreSQL and Redis are real (alembic upgrade head applied); the
signing gateway and ledger are scripted, since neither has a local stand-in.
"""

import pytest_asyncio
from helpers import ScriptedGateway, ScriptedLedger
from httpx import ASGITransport, AsyncClient

from config.settings import get_settings
from src.main import app
from src.rw_asset.application.orchestrator import AssetLifecycleOrchestrator
from src.rw_common.locks import redis_entity_lock
from src.rw_gateway.providers import (
    get_asset_orchestrator,
    get_offer_service,
    get_poll_sweeper,
    get_signing_gateway,
    get_signing_status_service,
    get_webhook_handler,
)
from src.rw_offer.application.service import OfferReconciliationService
from src.rw_reconcile.application.poll import PollSweeper
from src.rw_reconcile.application.status import SigningRequestStatusService
from src.rw_reconcile.application.webhook import WebhookHandler


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def ledger() -> ScriptedLedger:
    return ScriptedLedger()


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client(gateway: ScriptedGateway, ledger: ScriptedLedger) -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client with real storage and scripted externals."""
    settings = get_settings().model_copy(update={"POLL_ITEM_DELAY_SECONDS": 0})
    offers = OfferReconciliationService(settings, gateway, ledger=ledger)
    assets = AssetLifecycleOrchestrator(
        settings, gateway, ledger=ledger, lock=redis_entity_lock(settings)
    )
    app.dependency_overrides.update(
        {
            get_signing_gateway: lambda: gateway,
            get_offer_service: lambda: offers,
            get_asset_orchestrator: lambda: assets,
            get_webhook_handler: lambda: WebhookHandler(offers, assets),
            get_poll_sweeper: lambda: PollSweeper(settings, offers, assets),
            get_signing_status_service: lambda: SigningRequestStatusService(
                gateway, offers, assets
            ),
        }
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
