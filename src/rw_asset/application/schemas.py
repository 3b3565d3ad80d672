"""Pydantic schemas for the asset API (camelCase on the wire)."""

from pydantic import Field

from src.rw_asset.domain.models import Asset, AssetPage, AssetTransaction
from src.rw_common.datetime_utils import iso_or_none
from src.rw_common.drops import drops_to_display
from src.rw_common.response import CamelModel
from src.rw_signing.domain.models import SigningRequest


class CreateAssetRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    image_url: str | None = None
    price_drops: int = Field(..., gt=0)
    token_currency: str = Field(..., min_length=3, max_length=40)
    token_issuer: str | None = None  # defaults to the custodian


class SigningActionRequest(CamelModel):
    push_target: str | None = None


class AssetOut(CamelModel):
    id: str
    name: str
    description: str | None
    image_url: str | None
    price_drops: int
    price_display: str
    token_currency: str
    token_issuer: str
    seller_address: str
    owner_address: str
    status: str
    escrow_status: str | None
    escrow_request_id: str | None
    purchase_request_id: str | None
    settlement_request_id: str | None
    purchase_stage: str | None
    pending_buyer: str | None
    payment_tx_hash: str | None
    escrow_tx_hash: str | None
    issuance_tx_hash: str | None
    error_message: str | None
    listed_at: str | None
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_domain(cls, a: Asset) -> "AssetOut":
        return cls(
            id=a.id,
            name=a.name,
            description=a.description,
            image_url=a.image_url,
            price_drops=a.price_drops,
            price_display=drops_to_display(a.price_drops),
            token_currency=a.token_currency,
            token_issuer=a.token_issuer,
            seller_address=a.seller_address,
            owner_address=a.owner_address,
            status=a.status.value,
            escrow_status=a.escrow_status.value if a.escrow_status else None,
            escrow_request_id=a.escrow_request_id,
            purchase_request_id=a.purchase_request_id,
            settlement_request_id=a.settlement_request_id,
            purchase_stage=a.purchase_stage.value if a.purchase_stage else None,
            pending_buyer=a.pending_buyer,
            payment_tx_hash=a.payment_tx_hash,
            escrow_tx_hash=a.escrow_tx_hash,
            issuance_tx_hash=a.issuance_tx_hash,
            error_message=a.error_message,
            listed_at=iso_or_none(a.listed_at),
            created_at=iso_or_none(a.created_at),
            updated_at=iso_or_none(a.updated_at),
        )


class AssetListResponse(CamelModel):
    items: list[AssetOut]
    next_cursor: str | None
    has_more: bool

    @classmethod
    def from_page(cls, page: AssetPage) -> "AssetListResponse":
        return cls(
            items=[AssetOut.from_domain(a) for a in page.items],
            next_cursor=page.next_cursor,
            has_more=page.has_more,
        )


class SigningActionResponse(CamelModel):
    """Returned when an asset action needs an out-of-band signature."""

    asset: AssetOut
    signing_request_id: str
    link: str
    pushed: bool

    @classmethod
    def from_result(cls, asset: Asset, request: SigningRequest) -> "SigningActionResponse":
        return cls(
            asset=AssetOut.from_domain(asset),
            signing_request_id=request.id,
            link=request.link,
            pushed=request.pushed,
        )


class AssetTransactionOut(CamelModel):
    id: str
    asset_id: str
    buyer_address: str
    seller_address: str
    price_drops: int
    payment_tx_hash: str | None
    settlement_tx_hash: str | None
    status: str
    created_at: str | None

    @classmethod
    def from_domain(cls, t: AssetTransaction) -> "AssetTransactionOut":
        return cls(
            id=t.id,
            asset_id=t.asset_id,
            buyer_address=t.buyer_address,
            seller_address=t.seller_address,
            price_drops=t.price_drops,
            payment_tx_hash=t.payment_tx_hash,
            settlement_tx_hash=t.settlement_tx_hash,
            status=t.status.value,
            created_at=iso_or_none(t.created_at),
        )
