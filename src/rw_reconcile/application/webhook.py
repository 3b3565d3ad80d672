"""WebhookHandler: push-driven reconciliation.

The body is decoded at the boundary (fail closed), then routed by signing
request id: offers first, then assets. Both targets apply conditional
transitions, so a duplicate delivery converges on the same state.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.rw_asset.application.orchestrator import AssetLifecycleOrchestrator
from src.rw_common.errors import NotFoundError
from src.rw_offer.application.service import OfferReconciliationService
from src.rw_reconcile.application.schemas import WebhookResult
from src.rw_signing.infrastructure.decoding import decode_webhook

logger = logging.getLogger(__name__)


class WebhookHandler:
    def __init__(
        self,
        offers: OfferReconciliationService,
        assets: AssetLifecycleOrchestrator,
    ) -> None:
        self._offers = offers
        self._assets = assets

    async def handle(self, db: AsyncSession, body: Any) -> WebhookResult:
        event = decode_webhook(body)
        request_id = event.request_id

        if await self._offers.find_by_request_id(db, request_id) is not None:
            synced = await self._offers.apply_external_event(db, event)
            logger.info(
                "Webhook %s -> offer %s %s (updated=%s)",
                request_id, synced.offer.id, synced.offer.status.value, synced.updated,
            )
            return WebhookResult(
                resulting_status=synced.offer.status.value,
                entity="offer",
                entity_id=synced.offer.id,
                updated=synced.updated,
            )

        if await self._assets.find_by_request_id(db, request_id) is not None:
            applied = await self._assets.apply_external_event(db, event)
            asset = applied.asset
            logger.info(
                "Webhook %s -> asset %s %s flow=%s (updated=%s)",
                request_id, asset.id, asset.status.value, applied.flow.value, applied.updated,
            )
            return WebhookResult(
                resulting_status=asset.status.value,
                entity="asset",
                entity_id=asset.id,
                updated=applied.updated,
                purchase_stage=asset.purchase_stage.value if asset.purchase_stage else None,
            )

        logger.warning("Webhook for unknown signing request %s", request_id)
        raise NotFoundError(f"Unknown signing request: {request_id}")
