"""rw_asset REST endpoints.

POST /assets                               create (owner = caller wallet)
GET  /assets                               list, filter by owner/status
GET  /assets/marketplace                   for_sale + escrowed
GET  /assets/{asset_id}                    detail
POST /assets/{asset_id}/escrow             seller: issue escrow signing request
POST /assets/{asset_id}/trustline          holder: issue trust line signing request
POST /assets/{asset_id}/purchase           buyer: issue payment signing request (trust line required)
POST /assets/{asset_id}/issue              owner: custodian issues the token to the owner
POST /assets/{asset_id}/remove-from-sale   seller: custodian returns the token
POST /assets/{asset_id}/settlement/retry   custodian: re-issue a failed settlement
GET  /assets/{asset_id}/transactions       completed sales
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import Settings, get_settings
from src.rw_asset.application.orchestrator import AssetLifecycleOrchestrator
from src.rw_asset.application.schemas import (
    AssetListResponse,
    AssetOut,
    AssetTransactionOut,
    CreateAssetRequest,
    SigningActionRequest,
    SigningActionResponse,
)
from src.rw_asset.application.service import AssetApplicationService
from src.rw_common.database import get_db_session
from src.rw_common.enums import AssetStatus
from src.rw_common.response import ApiResponse, respond
from src.rw_gateway.auth.dependencies import get_current_wallet, require_custodian
from src.rw_gateway.providers import get_asset_orchestrator, get_asset_service

router = APIRouter(prefix="/assets", tags=["assets"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Wallet = Annotated[str, Depends(get_current_wallet)]
Assets = Annotated[AssetApplicationService, Depends(get_asset_service)]
Orchestrator = Annotated[AssetLifecycleOrchestrator, Depends(get_asset_orchestrator)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_asset(
    body: CreateAssetRequest,
    request: Request,
    wallet: Wallet,
    service: Assets,
    db: DbSession,
    settings: Annotated[Settings, Depends(get_settings)],
) -> ApiResponse:
    asset = await service.create_asset(
        db,
        owner=wallet,
        name=body.name,
        price_drops=body.price_drops,
        token_currency=body.token_currency,
        token_issuer=body.token_issuer or settings.CUSTODIAN_ADDRESS,
        description=body.description,
        image_url=body.image_url,
    )
    return respond(request, AssetOut.from_domain(asset), message="Asset created")


@router.get("")
async def list_assets(
    request: Request,
    service: Assets,
    db: DbSession,
    owner: str | None = Query(None),
    asset_status: AssetStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    page = await service.list_assets(db, owner, asset_status, cursor, limit)
    return respond(request, AssetListResponse.from_page(page))


@router.get("/marketplace")
async def list_marketplace(
    request: Request,
    service: Assets,
    db: DbSession,
    limit: int = Query(50, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    page = await service.list_marketplace(db, cursor, limit)
    return respond(request, AssetListResponse.from_page(page))


@router.get("/{asset_id}")
async def get_asset(asset_id: str, request: Request, service: Assets, db: DbSession) -> ApiResponse:
    asset = await service.get_asset(db, asset_id)
    return respond(request, AssetOut.from_domain(asset))


@router.post("/{asset_id}/escrow")
async def request_escrow(
    asset_id: str,
    request: Request,
    wallet: Wallet,
    orchestrator: Orchestrator,
    db: DbSession,
    body: Annotated[SigningActionRequest | None, Body()] = None,
) -> ApiResponse:
    push_target = body.push_target if body else None
    asset, signing = await orchestrator.request_escrow(db, asset_id, wallet, push_target)
    return respond(
        request,
        SigningActionResponse.from_result(asset, signing),
        message="Sign the transfer to place the asset in custody",
    )


@router.post("/{asset_id}/trustline")
async def request_trustline(
    asset_id: str,
    request: Request,
    wallet: Wallet,
    orchestrator: Orchestrator,
    db: DbSession,
    body: Annotated[SigningActionRequest | None, Body()] = None,
) -> ApiResponse:
    push_target = body.push_target if body else None
    asset, signing = await orchestrator.request_trustline(db, asset_id, wallet, push_target)
    return respond(
        request,
        SigningActionResponse.from_result(asset, signing),
        message="Sign the trust line to be able to receive the asset token",
    )


@router.post("/{asset_id}/purchase")
async def request_purchase(
    asset_id: str,
    request: Request,
    wallet: Wallet,
    orchestrator: Orchestrator,
    db: DbSession,
    body: Annotated[SigningActionRequest | None, Body()] = None,
) -> ApiResponse:
    push_target = body.push_target if body else None
    asset, signing = await orchestrator.request_purchase(db, asset_id, wallet, push_target)
    return respond(
        request,
        SigningActionResponse.from_result(asset, signing),
        message="Sign the payment to purchase the asset",
    )


@router.post("/{asset_id}/issue")
async def issue_token(
    asset_id: str,
    request: Request,
    wallet: Wallet,
    orchestrator: Orchestrator,
    db: DbSession,
) -> ApiResponse:
    asset = await orchestrator.issue_token(db, asset_id, wallet)
    return respond(request, AssetOut.from_domain(asset), message="Asset token issued")


@router.post("/{asset_id}/remove-from-sale")
async def remove_from_sale(
    asset_id: str,
    request: Request,
    wallet: Wallet,
    orchestrator: Orchestrator,
    db: DbSession,
) -> ApiResponse:
    asset = await orchestrator.remove_from_sale(db, asset_id, wallet)
    return respond(request, AssetOut.from_domain(asset), message="Asset removed from sale")


@router.post("/{asset_id}/settlement/retry")
async def retry_settlement(
    asset_id: str,
    request: Request,
    _custodian: Annotated[str, Depends(require_custodian)],
    orchestrator: Orchestrator,
    db: DbSession,
) -> ApiResponse:
    asset = await orchestrator.retry_settlement(db, asset_id)
    return respond(request, AssetOut.from_domain(asset))


@router.get("/{asset_id}/transactions")
async def list_transactions(
    asset_id: str, request: Request, service: Assets, db: DbSession
) -> ApiResponse:
    records = await service.list_transactions(db, asset_id)
    items = [AssetTransactionOut.from_domain(t).model_dump(by_alias=True) for t in records]
    return respond(request, {"items": items})
