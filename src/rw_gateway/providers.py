"""Composition root: builds adapters and services from Settings.

This is the only place besides main.py and alembic/env.py that calls
get_settings(); everything below receives its configuration through
constructors. Routers depend on these functions, so tests swap any of them
with app.dependency_overrides.
"""

from functools import lru_cache

from config.settings import get_settings
from src.rw_asset.application.orchestrator import AssetLifecycleOrchestrator
from src.rw_asset.application.service import AssetApplicationService
from src.rw_common.locks import EntityLock, redis_entity_lock
from src.rw_gateway.auth.sign_in import SignInClaims, redis_sign_in_claims
from src.rw_ledger.infrastructure.xrpl_client import XrplLedgerClient
from src.rw_offer.application.service import OfferReconciliationService
from src.rw_reconcile.application.poll import PollSweeper
from src.rw_reconcile.application.status import SigningRequestStatusService
from src.rw_reconcile.application.webhook import WebhookHandler
from src.rw_signing.infrastructure.xumm_client import XummGateway


@lru_cache
def get_signing_gateway() -> XummGateway:
    return XummGateway(get_settings())


@lru_cache
def get_ledger_client() -> XrplLedgerClient:
    return XrplLedgerClient(get_settings())


@lru_cache
def get_entity_lock() -> EntityLock:
    return redis_entity_lock(get_settings())


@lru_cache
def get_sign_in_claims() -> SignInClaims:
    return redis_sign_in_claims(get_settings())


@lru_cache
def get_offer_service() -> OfferReconciliationService:
    return OfferReconciliationService(
        get_settings(), get_signing_gateway(), ledger=get_ledger_client()
    )


@lru_cache
def get_asset_orchestrator() -> AssetLifecycleOrchestrator:
    return AssetLifecycleOrchestrator(
        get_settings(),
        get_signing_gateway(),
        ledger=get_ledger_client(),
        lock=get_entity_lock(),
    )


@lru_cache
def get_asset_service() -> AssetApplicationService:
    return AssetApplicationService()


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    return WebhookHandler(get_offer_service(), get_asset_orchestrator())


@lru_cache
def get_poll_sweeper() -> PollSweeper:
    return PollSweeper(get_settings(), get_offer_service(), get_asset_orchestrator())


@lru_cache
def get_signing_status_service() -> SigningRequestStatusService:
    return SigningRequestStatusService(
        get_signing_gateway(), get_offer_service(), get_asset_orchestrator()
    )


async def close_clients() -> None:
    """Close the signing gateway HTTP client (called on app shutdown)."""
    if get_signing_gateway.cache_info().currsize:
        await get_signing_gateway().aclose()
