"""Wallet sign-in.

POST /auth/signin                 issue a SignIn signing request
GET  /auth/signin/{request_id}    exchange a signed SignIn request for an access token

The wallet proves control of its address by signing; no passwords are stored.
A request is exchanged once, and only while it is recent.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Request, status

from config.settings import Settings, get_settings
from src.rw_common.errors import GatewayUnavailable, SignInRejectedError
from src.rw_common.response import ApiResponse, respond
from src.rw_gateway.auth.jwt_handler import create_access_token
from src.rw_gateway.auth.schemas import SignInRequest, SignInStarted, SignInToken
from src.rw_gateway.auth.sign_in import SignInClaims, signed_in_wallet
from src.rw_gateway.providers import get_sign_in_claims, get_signing_gateway
from src.rw_signing.domain.gateway import SigningGatewayProtocol
from src.rw_signing.domain.intents import sign_in

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

Gateway = Annotated[SigningGatewayProtocol, Depends(get_signing_gateway)]
AppSettings = Annotated[Settings, Depends(get_settings)]


@router.post("/signin", status_code=status.HTTP_201_CREATED)
async def start_sign_in(
    request: Request,
    gateway: Gateway,
    settings: AppSettings,
    body: Annotated[SignInRequest | None, Body()] = None,
) -> ApiResponse:
    if not gateway.is_available():
        raise GatewayUnavailable("Signing gateway is not configured")
    signing = await gateway.create(
        sign_in(),
        settings.SIGNIN_REQUEST_EXPIRY_SECONDS,
        push_target=body.push_target if body else None,
    )
    data = SignInStarted(signing_request_id=signing.id, link=signing.link, pushed=signing.pushed)
    return respond(request, data, message="Sign the request in your wallet to sign in")


@router.get("/signin/{request_id}")
async def finish_sign_in(
    request_id: str,
    request: Request,
    gateway: Gateway,
    settings: AppSettings,
    claims: Annotated[SignInClaims, Depends(get_sign_in_claims)],
) -> ApiResponse:
    signing_status = await gateway.get_status(request_id)
    wallet = signed_in_wallet(request_id, signing_status, settings.SIGNIN_MAX_AGE_SECONDS)
    if not await claims(request_id):
        logger.warning("Replayed sign-in request %s for %s refused", request_id, wallet)
        raise SignInRejectedError(f"Sign-in request {request_id} has already been used")

    logger.info("Wallet %s signed in via %s", wallet, request_id)
    data = SignInToken(
        access_token=create_access_token(wallet, settings),
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        wallet_address=wallet,
    )
    return respond(request, data, message="Signed in")
