"""FastAPI dependencies: get_current_wallet, require_custodian.

Usage in any protected router:
    from src.rw_gateway.auth.dependencies import get_current_wallet

    @router.post("/protected")
    async def protected(wallet: str = Depends(get_current_wallet)):
        ...
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config.settings import Settings, get_settings
from src.rw_common.errors import ForbiddenError, InvalidCredentialsError
from src.rw_gateway.auth.jwt_handler import decode_token

_bearer = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_wallet(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> str:
    """Return the wallet address carried by the Bearer token, or 401."""
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        payload = decode_token(credentials.credentials, settings)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
    return payload["sub"]


async def require_custodian(
    wallet: Annotated[str, Depends(get_current_wallet)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> str:
    """Operator-only endpoints: the caller must be the custodian wallet."""
    if not settings.CUSTODIAN_ADDRESS or wallet != settings.CUSTODIAN_ADDRESS:
        raise ForbiddenError("Custodian wallet required")
    return wallet
