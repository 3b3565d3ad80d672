"""JWT token creation and verification for wallet sessions.

HS256 (symmetric HMAC) with the shared JWT_SECRET. The subject is the
ledger address that signed the sign-in request; there are no refresh
tokens: a wallet signs in again when its access token expires.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import Settings
from src.rw_common.errors import InvalidCredentialsError


def create_access_token(wallet_address: str, settings: Settings) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": wallet_address,
        "type": "access",
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM))


def decode_token(token: str, settings: Settings) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: signature, expiry or token type check failed.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidCredentialsError()
    return payload
