"""rw_offer REST endpoints.

POST /offers                 issue an NFT offer signing request, record it pending
POST /offers/status          check-and-sync by signingRequestId or offerId
GET  /offers/status          same, via query parameters
GET  /offers                 filtered list with cursor pagination
GET  /offers/stats           counts by status
GET  /offers/{offer_id}      full detail
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.rw_common.database import get_db_session
from src.rw_common.enums import OfferKind, OfferStatus
from src.rw_common.response import ApiResponse, respond
from src.rw_gateway.providers import get_offer_service
from src.rw_offer.application.schemas import (
    CreateOfferRequest,
    CreateOfferResponse,
    OfferListResponse,
    OfferOut,
    OfferStatusRequest,
    OfferStatusResponse,
)
from src.rw_offer.application.service import OfferReconciliationService
from src.rw_offer.domain.models import OfferFilter

router = APIRouter(prefix="/offers", tags=["offers"])

OfferService = Annotated[OfferReconciliationService, Depends(get_offer_service)]
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def _check(
    service: OfferReconciliationService,
    db: AsyncSession,
    signing_request_id: str | None,
    offer_id: str | None,
) -> OfferStatusResponse:
    if not signing_request_id:
        offer = await service.get_offer(db, offer_id=offer_id)
        signing_request_id = offer.signing_request_id
    result = await service.check_and_sync(db, signing_request_id)
    return OfferStatusResponse.from_sync(result)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_offer(
    body: CreateOfferRequest,
    request: Request,
    service: OfferService,
    db: DbSession,
) -> ApiResponse:
    offer = await service.submit_offer(
        db,
        asset_unit_id=body.asset_unit_id,
        kind=body.kind,
        initiator=body.initiator,
        amount=body.amount,
        push_target=body.push_target,
    )
    data = CreateOfferResponse.from_offer(offer)
    return respond(request, data, message=data.message)


@router.post("/status")
async def check_offer_status(
    body: OfferStatusRequest,
    request: Request,
    service: OfferService,
    db: DbSession,
) -> ApiResponse:
    data = await _check(service, db, body.signing_request_id, body.offer_id)
    return respond(request, data)


@router.get("/status")
async def get_offer_status(
    request: Request,
    service: OfferService,
    db: DbSession,
    signing_request_id: str | None = Query(None, alias="signingRequestId"),
    offer_id: str | None = Query(None, alias="offerId"),
) -> ApiResponse:
    data = await _check(service, db, signing_request_id, offer_id)
    return respond(request, data)


@router.get("")
async def list_offers(
    request: Request,
    service: OfferService,
    db: DbSession,
    initiator: str | None = Query(None),
    owner_address: str | None = Query(None, alias="ownerAddress"),
    asset_unit_id: str | None = Query(None, alias="assetUnitId"),
    kind: OfferKind | None = Query(None),
    offer_status: OfferStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    page = await service.list_offers(
        db,
        OfferFilter(
            initiator=initiator,
            owner_address=owner_address,
            asset_unit_id=asset_unit_id,
            kind=kind,
            status=offer_status,
            cursor=cursor,
            limit=limit,
        ),
    )
    return respond(request, OfferListResponse.from_page(page))


@router.get("/stats")
async def offer_stats(request: Request, service: OfferService, db: DbSession) -> ApiResponse:
    return respond(request, await service.offer_stats(db))


@router.get("/{offer_id}")
async def get_offer(
    offer_id: str,
    request: Request,
    service: OfferService,
    db: DbSession,
) -> ApiResponse:
    offer = await service.get_offer(db, offer_id=offer_id)
    return respond(request, OfferOut.from_domain(offer))
