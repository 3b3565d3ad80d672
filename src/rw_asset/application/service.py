"""AssetApplicationService: asset CRUD and read-only listings.

Lifecycle transitions live in the orchestrator; this layer only creates
assets (always `active`) and serves reads.
"""

from collections.abc import Awaitable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.rw_asset.domain.models import Asset, AssetPage, AssetTransaction
from src.rw_asset.domain.repository import AssetRepositoryProtocol
from src.rw_asset.infrastructure.persistence import AssetRepository
from src.rw_common.drops import validate_amount
from src.rw_common.enums import AssetStatus
from src.rw_common.errors import AssetNotFoundError, PersistenceError, ValidationError
from src.rw_common.id_generator import generate_id
from src.rw_common.pagination import clamp_limit, cursor_decode, cursor_encode

T = TypeVar("T")


class AssetApplicationService:
    def __init__(self, repo: AssetRepositoryProtocol | None = None) -> None:
        self._repo: AssetRepositoryProtocol = repo or AssetRepository()

    async def _read(self, db: AsyncSession, op: Awaitable[T]) -> T:
        try:
            return await op
        except SQLAlchemyError as exc:
            await db.rollback()
            raise PersistenceError(f"Asset store read failed: {exc.__class__.__name__}") from exc

    async def create_asset(
        self,
        db: AsyncSession,
        owner: str,
        name: str,
        price_drops: int,
        token_currency: str,
        token_issuer: str,
        description: str | None = None,
        image_url: str | None = None,
    ) -> Asset:
        try:
            validate_amount(price_drops, allow_zero=False)
        except ValueError as exc:
            raise ValidationError(f"Invalid price: {exc}") from exc
        if not token_issuer:
            raise ValidationError("Token issuer is required")

        asset = Asset(
            id=generate_id(),
            name=name,
            description=description,
            image_url=image_url,
            price_drops=price_drops,
            token_currency=token_currency,
            token_issuer=token_issuer,
            seller_address=owner,
            owner_address=owner,
        )
        try:
            created = await self._repo.insert(db, asset)
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            raise PersistenceError("Could not store asset") from exc
        return created

    async def get_asset(self, db: AsyncSession, asset_id: str) -> Asset:
        asset = await self._read(db, self._repo.get_by_id(db, asset_id))
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    async def _page(
        self,
        db: AsyncSession,
        owner_address: str | None,
        status: AssetStatus | None,
        marketplace_only: bool,
        cursor: str | None,
        limit: int | None,
    ) -> AssetPage:
        size = clamp_limit(limit)
        cursor_ts, cursor_id = cursor_decode(cursor)
        assets = await self._read(
            db,
            self._repo.list_assets(
                db, owner_address, status, marketplace_only, cursor_ts, cursor_id, size + 1
            ),
        )
        has_more = len(assets) > size
        page = assets[:size]
        next_cursor = (
            cursor_encode(page[-1].created_at, page[-1].id)
            if has_more and page and page[-1].created_at
            else None
        )
        return AssetPage(items=page, next_cursor=next_cursor, has_more=has_more)

    async def list_assets(
        self,
        db: AsyncSession,
        owner_address: str | None = None,
        status: AssetStatus | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> AssetPage:
        return await self._page(db, owner_address, status, False, cursor, limit)

    async def list_marketplace(
        self, db: AsyncSession, cursor: str | None = None, limit: int | None = None
    ) -> AssetPage:
        """Assets that are for sale with the token held in custody."""
        return await self._page(db, None, None, True, cursor, limit)

    async def list_transactions(self, db: AsyncSession, asset_id: str) -> list[AssetTransaction]:
        await self.get_asset(db, asset_id)
        return await self._read(db, self._repo.list_transactions(db, asset_id))
