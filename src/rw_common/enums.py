"""Global enums: must match DB CHECK constraints exactly (see alembic revisions)."""

from enum import Enum


class OfferKind(str, Enum):
    SELL = "sell"
    BUY = "buy"


class OfferStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"
    EXPIRED = "expired"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not OfferStatus.PENDING


TERMINAL_OFFER_STATUSES = frozenset(s for s in OfferStatus if s.is_terminal)


class AssetStatus(str, Enum):
    ACTIVE = "active"
    PENDING_ESCROW = "pending_escrow"
    FOR_SALE = "for_sale"
    PENDING_PURCHASE = "pending_purchase"
    SOLD = "sold"


class EscrowStatus(str, Enum):
    ESCROWED = "escrowed"


class PurchaseStage(str, Enum):
    """Durable sub-state of an asset in pending_purchase.

    awaiting_payment  -> buyer payment request issued, not yet confirmed
    payment_confirmed -> payment settled on ledger, custodian transfer not yet issued
    settlement_issued -> custodian transfer request issued, not yet confirmed
    settlement_failed -> custodian transfer signed but not resolved; operator retry
    """

    AWAITING_PAYMENT = "awaiting_payment"
    PAYMENT_CONFIRMED = "payment_confirmed"
    SETTLEMENT_ISSUED = "settlement_issued"
    SETTLEMENT_FAILED = "settlement_failed"


class AssetFlow(str, Enum):
    """Which signing-request link on an asset a request id belongs to."""

    ESCROW = "escrow"
    PURCHASE = "purchase"
    SETTLEMENT = "settlement"


class AssetTransactionStatus(str, Enum):
    COMPLETED = "completed"
