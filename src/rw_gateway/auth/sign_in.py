"""Exchanging a signed SignIn request for an access token.

Only SignIn requests count as proof of wallet control: other signing-request
ids (offers, escrow) are visible to anyone. Each request is exchanged at most
once; claims are redis SET NX keys that outlive the acceptance window.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from redis.exceptions import RedisError

from config.settings import Settings
from src.rw_common.datetime_utils import utc_now
from src.rw_common.errors import PersistenceError, SignInPendingError, SignInRejectedError
from src.rw_common.redis_client import get_redis
from src.rw_signing.domain.intents import SIGN_IN_TX_TYPE
from src.rw_signing.domain.models import SigningStatus

logger = logging.getLogger(__name__)

# Returns True the first time a request id is claimed, False afterwards
SignInClaims = Callable[[str], Awaitable[bool]]

# Clock skew allowance between the gateway and this service
_CLAIM_MARGIN_SECONDS = 60


def signed_in_wallet(
    request_id: str,
    status: SigningStatus,
    max_age_seconds: int,
    now: datetime | None = None,
) -> str:
    """Wallet proven by a signed SignIn request, or raise."""
    if not status.signed or not status.counterparty_address:
        raise SignInPendingError(request_id)
    if status.tx_type != SIGN_IN_TX_TYPE:
        logger.warning(
            "Sign-in attempted with %s request %s", status.tx_type or "untyped", request_id
        )
        raise SignInRejectedError(f"Signing request {request_id} is not a sign-in request")
    now = now or utc_now()
    if status.resolved_at is None or now - status.resolved_at > timedelta(seconds=max_age_seconds):
        raise SignInRejectedError(f"Sign-in request {request_id} is too old; sign in again")
    return status.counterparty_address


def redis_sign_in_claims(settings: Settings) -> SignInClaims:
    ttl = settings.SIGNIN_MAX_AGE_SECONDS + _CLAIM_MARGIN_SECONDS

    async def _claim(request_id: str) -> bool:
        try:
            redis = await get_redis(settings)
            claimed = await redis.set(f"signin:{request_id}", "1", nx=True, ex=ttl)
        except RedisError as exc:
            raise PersistenceError(f"Sign-in claim store unavailable: {exc}") from exc
        return bool(claimed)

    return _claim
