"""Domain models for rw_signing: pure dataclasses, no transport detail."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# Error recorded when a request was signed but its submission never resolved
SIGNED_NOT_RESOLVED = "Transaction signed but not resolved"


@dataclass(frozen=True)
class TransactionIntent:
    """A ledger transaction the gateway should get signed out-of-band."""

    tx_json: dict[str, Any]
    instruction: str | None = None


@dataclass(frozen=True)
class SigningRequest:
    """Result of creating a signing request."""

    id: str
    link: str
    pushed: bool = False


@dataclass(frozen=True)
class SigningStatus:
    """Current state of a signing request as reported by the gateway.

    ``tx_type`` and ``resolved_at`` are only known on pulled statuses; pushed
    webhook bodies leave them None.
    """

    signed: bool
    resolved: bool
    cancelled: bool
    expired: bool
    settlement_tx_id: str | None = None
    counterparty_address: str | None = None
    tx_type: str | None = None
    resolved_at: datetime | None = None

    @property
    def settled(self) -> bool:
        """Signed and resolved with a transaction identifier."""
        return self.signed and self.resolved and bool(self.settlement_tx_id)


@dataclass(frozen=True)
class SigningEvent:
    """A pushed notification about one signing request."""

    request_id: str
    status: SigningStatus
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)
