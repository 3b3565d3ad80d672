"""Offer state machine.

pending -> expired    gateway reports expiry
pending -> rejected   gateway reports cancellation
pending -> completed  signed, resolved, with a settlement transaction id
pending -> failed     signed but not resolved
Every other state is terminal and absorbing.
"""

from datetime import datetime

from src.rw_common.datetime_utils import utc_now
from src.rw_common.enums import OfferStatus
from src.rw_offer.domain.models import OfferTransition
from src.rw_signing.domain.models import SIGNED_NOT_RESOLVED, SigningStatus


def implied_offer_transition(
    status: SigningStatus, now: datetime | None = None
) -> OfferTransition | None:
    """Map a gateway status to the transition for a pending offer, or None."""
    now = now or utc_now()
    if status.expired:
        return OfferTransition(status=OfferStatus.EXPIRED)
    if status.cancelled:
        return OfferTransition(status=OfferStatus.REJECTED)
    if status.settled:
        return OfferTransition(
            status=OfferStatus.COMPLETED,
            tx_hash=status.settlement_tx_id,
            signed_at=now,
            completed_at=now,
        )
    if status.signed:
        return OfferTransition(
            status=OfferStatus.FAILED,
            signed_at=now,
            error_message=SIGNED_NOT_RESOLVED,
        )
    return None
