"""Asset domain models: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

from src.rw_common.enums import (
    AssetFlow,
    AssetStatus,
    AssetTransactionStatus,
    EscrowStatus,
    PurchaseStage,
)


@dataclass
class Asset:
    id: str
    name: str
    price_drops: int
    token_currency: str
    token_issuer: str
    seller_address: str
    owner_address: str
    status: AssetStatus = AssetStatus.ACTIVE
    description: str | None = None
    image_url: str | None = None
    escrow_status: EscrowStatus | None = None
    # Signing-request links, one per flow
    escrow_request_id: str | None = None
    purchase_request_id: str | None = None
    settlement_request_id: str | None = None
    # Purchase saga sub-state; non-null iff status is pending_purchase
    purchase_stage: PurchaseStage | None = None
    pending_buyer: str | None = None
    payment_tx_hash: str | None = None
    escrow_tx_hash: str | None = None
    issuance_tx_hash: str | None = None
    error_message: str | None = None
    listed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_listed(self) -> bool:
        return self.status is AssetStatus.FOR_SALE and self.escrow_status is EscrowStatus.ESCROWED

    def flow_for(self, request_id: str) -> AssetFlow | None:
        """Which flow a signing-request id is linked to on this asset."""
        if request_id == self.escrow_request_id:
            return AssetFlow.ESCROW
        if request_id == self.purchase_request_id:
            return AssetFlow.PURCHASE
        if request_id == self.settlement_request_id:
            return AssetFlow.SETTLEMENT
        return None


@dataclass
class AssetTransaction:
    """Completed sale, recorded in the same DB transaction as the ownership change."""

    id: str
    asset_id: str
    buyer_address: str
    seller_address: str
    price_drops: int
    payment_tx_hash: str | None
    settlement_tx_hash: str | None
    status: AssetTransactionStatus = AssetTransactionStatus.COMPLETED
    created_at: datetime | None = None


@dataclass
class AssetPage:
    items: list[Asset] = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False


@dataclass(frozen=True)
class AssetEventResult:
    asset: Asset
    flow: AssetFlow
    updated: bool
