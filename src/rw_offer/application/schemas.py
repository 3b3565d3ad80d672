"""Pydantic schemas for the offer API.

Wire names are camelCase (assetUnitId, signingRequestId, ...); Python
attributes stay snake_case via the alias generator.
"""

from pydantic import Field

from src.rw_common.datetime_utils import iso_or_none
from src.rw_common.drops import drops_to_display
from src.rw_common.response import CamelModel
from src.rw_offer.domain.models import Offer, OfferPage, SyncResult

_PUSHED_MESSAGE = "Offer creation request sent to your wallet. Please sign to create the offer."
_LINK_MESSAGE = "Open the link (or scan its QR code) in your wallet to sign and create the offer."


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateOfferRequest(CamelModel):
    asset_unit_id: str = Field(..., min_length=1, max_length=128)
    kind: str
    initiator: str = Field(..., min_length=1, max_length=64)
    amount: int
    push_target: str | None = None  # wallet user token for push delivery


class OfferStatusRequest(CamelModel):
    signing_request_id: str | None = None
    offer_id: str | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class CreateOfferResponse(CamelModel):
    signing_request_id: str
    link: str | None
    message: str
    offer_id: str
    pushed: bool

    @classmethod
    def from_offer(cls, offer: Offer) -> "CreateOfferResponse":
        return cls(
            signing_request_id=offer.signing_request_id,
            link=offer.link,
            message=_PUSHED_MESSAGE if offer.pushed else _LINK_MESSAGE,
            offer_id=offer.id,
            pushed=offer.pushed,
        )


class OfferStatusResponse(CamelModel):
    id: str
    status: str
    settlement_tx_id: str | None = None
    error_message: str | None = None
    updated: bool = False

    @classmethod
    def from_sync(cls, result: SyncResult) -> "OfferStatusResponse":
        offer = result.offer
        return cls(
            id=offer.id,
            status=offer.status.value,
            settlement_tx_id=offer.tx_hash,
            error_message=offer.error_message,
            updated=result.updated,
        )


class OfferOut(CamelModel):
    id: str
    asset_unit_id: str
    kind: str
    initiator: str
    owner_address: str | None
    amount: int
    amount_display: str
    signing_request_id: str
    status: str
    settlement_tx_id: str | None
    error_message: str | None
    link: str | None
    request_expires_at: str | None
    signed_at: str | None
    completed_at: str | None
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_domain(cls, offer: Offer) -> "OfferOut":
        return cls(
            id=offer.id,
            asset_unit_id=offer.asset_unit_id,
            kind=offer.kind.value,
            initiator=offer.initiator,
            owner_address=offer.owner_address,
            amount=offer.amount,
            amount_display=drops_to_display(offer.amount),
            signing_request_id=offer.signing_request_id,
            status=offer.status.value,
            settlement_tx_id=offer.tx_hash,
            error_message=offer.error_message,
            link=offer.link,
            request_expires_at=iso_or_none(offer.request_expires_at),
            signed_at=iso_or_none(offer.signed_at),
            completed_at=iso_or_none(offer.completed_at),
            created_at=iso_or_none(offer.created_at),
            updated_at=iso_or_none(offer.updated_at),
        )


class OfferListResponse(CamelModel):
    items: list[OfferOut]
    next_cursor: str | None
    has_more: bool

    @classmethod
    def from_page(cls, page: OfferPage) -> "OfferListResponse":
        return cls(
            items=[OfferOut.from_domain(o) for o in page.items],
            next_cursor=page.next_cursor,
            has_more=page.has_more,
        )
