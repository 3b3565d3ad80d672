"""Classification of a signing status into a saga step outcome.

The same precedence as offers applies: expiry, then cancellation, then a
settled signature, then a signature that never resolved.
"""

from enum import Enum

from src.rw_signing.domain.models import SigningStatus


class FlowOutcome(str, Enum):
    OPEN = "open"  # nothing to do yet
    CONFIRMED = "confirmed"  # signed, resolved, transaction id known
    ABORTED = "aborted"  # expired or cancelled before signing
    FAILED = "failed"  # signed but the ledger submission never resolved


def classify(status: SigningStatus) -> FlowOutcome:
    if status.expired or status.cancelled:
        return FlowOutcome.ABORTED
    if status.settled:
        return FlowOutcome.CONFIRMED
    if status.signed:
        return FlowOutcome.FAILED
    return FlowOutcome.OPEN
