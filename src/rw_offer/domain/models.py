"""Offer domain models: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

from src.rw_common.enums import OfferKind, OfferStatus


@dataclass
class Offer:
    id: str
    asset_unit_id: str  # ledger token id
    kind: OfferKind
    initiator: str
    amount: int  # drops
    signing_request_id: str  # unique, immutable
    status: OfferStatus = OfferStatus.PENDING
    owner_address: str | None = None  # buy side only
    link: str | None = None
    pushed: bool = False
    request_created_at: datetime | None = None
    request_expires_at: datetime | None = None
    tx_hash: str | None = None
    signed_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


@dataclass(frozen=True)
class OfferIntent:
    """Input to create_offer: a signing request already issued for the offer."""

    asset_unit_id: str
    kind: str
    initiator: str
    amount: int
    signing_request_id: str
    request_expires_at: datetime
    owner_address: str | None = None
    link: str | None = None
    pushed: bool = False
    request_created_at: datetime | None = None


@dataclass(frozen=True)
class OfferTransition:
    """Field changes implied by a gateway status for a pending offer."""

    status: OfferStatus
    tx_hash: str | None = None
    signed_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None


@dataclass
class OfferFilter:
    initiator: str | None = None
    owner_address: str | None = None
    asset_unit_id: str | None = None
    kind: OfferKind | None = None
    status: OfferStatus | None = None
    cursor: str | None = None
    limit: int = 50


@dataclass(frozen=True)
class SyncResult:
    offer: Offer
    updated: bool


@dataclass
class OfferPage:
    items: list[Offer] = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False
