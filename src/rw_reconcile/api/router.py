"""Reconciliation endpoints.

POST /webhooks/signing   push delivery from the signing gateway (either body variant)
POST /reconcile/poll     run one poll sweep now (cron; X-Cron-Secret when configured)
GET  /signing-requests/{request_id}/status   gateway status plus the linked offer or asset
"""

import hmac
import json
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import Settings, get_settings
from src.rw_common.database import get_db_session
from src.rw_common.errors import ForbiddenError, ValidationError
from src.rw_common.response import ApiResponse, respond
from src.rw_gateway.providers import (
    get_poll_sweeper,
    get_signing_status_service,
    get_webhook_handler,
)
from src.rw_reconcile.application.poll import PollSweeper
from src.rw_reconcile.application.status import SigningRequestStatusService
from src.rw_reconcile.application.webhook import WebhookHandler

webhook_router = APIRouter(prefix="/webhooks", tags=["reconcile"])
poll_router = APIRouter(prefix="/reconcile", tags=["reconcile"])
status_router = APIRouter(prefix="/signing-requests", tags=["reconcile"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@webhook_router.post("/signing")
async def signing_webhook(
    request: Request,
    handler: Annotated[WebhookHandler, Depends(get_webhook_handler)],
    db: DbSession,
) -> ApiResponse:
    raw = await request.body()
    try:
        body = json.loads(raw)
    except ValueError:
        raise ValidationError("Webhook body is not valid JSON") from None
    result = await handler.handle(db, body)
    return respond(request, result)


async def verify_cron_secret(
    settings: Annotated[Settings, Depends(get_settings)],
    x_cron_secret: Annotated[str | None, Header()] = None,
) -> None:
    if not settings.CRON_SECRET:
        return
    if x_cron_secret is None or not hmac.compare_digest(x_cron_secret, settings.CRON_SECRET):
        raise ForbiddenError("Invalid cron secret")


@poll_router.post("/poll", dependencies=[Depends(verify_cron_secret)])
async def run_poll(
    request: Request,
    sweeper: Annotated[PollSweeper, Depends(get_poll_sweeper)],
    db: DbSession,
) -> ApiResponse:
    report = await sweeper.run(db)
    return respond(request, report, message="Poll sweep complete")


@status_router.get("/{request_id}/status")
async def signing_request_status(
    request_id: str,
    request: Request,
    service: Annotated[SigningRequestStatusService, Depends(get_signing_status_service)],
    db: DbSession,
) -> ApiResponse:
    result = await service.lookup(db, request_id)
    return respond(request, result)
