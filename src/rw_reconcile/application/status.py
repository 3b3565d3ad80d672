"""SigningRequestStatusService: read-only status of a signing request.

Pulls the request from the gateway and names the offer or asset it is linked
to. Nothing is transitioned here; check_and_sync and the sweep do that.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.rw_asset.application.orchestrator import AssetLifecycleOrchestrator
from src.rw_common.datetime_utils import iso_or_none
from src.rw_common.errors import GatewayUnavailable
from src.rw_offer.application.service import OfferReconciliationService
from src.rw_reconcile.application.schemas import SigningRequestStatusOut
from src.rw_signing.domain.gateway import SigningGatewayProtocol


class SigningRequestStatusService:
    def __init__(
        self,
        gateway: SigningGatewayProtocol,
        offers: OfferReconciliationService,
        assets: AssetLifecycleOrchestrator,
    ) -> None:
        self._gateway = gateway
        self._offers = offers
        self._assets = assets

    async def lookup(self, db: AsyncSession, request_id: str) -> SigningRequestStatusOut:
        if not self._gateway.is_available():
            raise GatewayUnavailable("Signing gateway credentials not configured")
        status = await self._gateway.get_status(request_id)
        out = SigningRequestStatusOut(
            request_id=request_id,
            signed=status.signed,
            cancelled=status.cancelled,
            expired=status.expired,
            resolved=status.resolved,
            account=status.counterparty_address,
            tx_id=status.settlement_tx_id,
            tx_type=status.tx_type,
            resolved_at=iso_or_none(status.resolved_at),
        )

        offer = await self._offers.find_by_request_id(db, request_id)
        if offer is not None:
            return out.model_copy(
                update={"entity": "offer", "entity_id": offer.id, "entity_status": offer.status.value}
            )
        asset = await self._assets.find_by_request_id(db, request_id)
        if asset is not None:
            flow = asset.flow_for(request_id)
            return out.model_copy(
                update={
                    "entity": "asset",
                    "entity_id": asset.id,
                    "entity_status": asset.status.value,
                    "flow": flow.value if flow else None,
                }
            )
        return out
