# src/rw_asset/domain/repository.py
"""AssetRepository Protocol.

Every mutating method is one conditional UPDATE keyed on the asset id, its
expected status/stage and (for reconciliation steps) the linked request id.
A None return means the expected state no longer held.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rw_asset.domain.models import Asset, AssetTransaction
from src.rw_common.enums import AssetStatus


class AssetRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, asset: Asset) -> Asset: ...

    async def get_by_id(self, db: AsyncSession, asset_id: str) -> Asset | None: ...

    async def get_by_request_id(self, db: AsyncSession, request_id: str) -> Asset | None: ...

    async def list_assets(
        self,
        db: AsyncSession,
        owner_address: str | None,
        status: AssetStatus | None,
        marketplace_only: bool,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Asset]: ...

    async def list_ids_by_status(
        self, db: AsyncSession, status: AssetStatus, limit: int
    ) -> list[str]: ...

    # --- escrow ---
    async def mark_escrow_requested(
        self, db: AsyncSession, asset_id: str, seller: str, request_id: str
    ) -> Asset | None: ...

    async def confirm_escrow(
        self, db: AsyncSession, asset_id: str, request_id: str, tx_hash: str | None, now: datetime
    ) -> Asset | None: ...

    async def revert_escrow(
        self, db: AsyncSession, asset_id: str, request_id: str, error_message: str | None
    ) -> Asset | None: ...

    # --- purchase ---
    async def mark_purchase_requested(
        self, db: AsyncSession, asset_id: str, buyer: str, request_id: str
    ) -> Asset | None: ...

    async def confirm_payment(
        self, db: AsyncSession, asset_id: str, request_id: str, tx_hash: str | None
    ) -> Asset | None: ...

    async def revert_purchase(
        self, db: AsyncSession, asset_id: str, request_id: str, error_message: str | None
    ) -> Asset | None: ...

    # --- settlement ---
    async def mark_settlement_issued(
        self, db: AsyncSession, asset_id: str, request_id: str
    ) -> Asset | None: ...

    async def revert_settlement(
        self, db: AsyncSession, asset_id: str, request_id: str
    ) -> Asset | None: ...

    async def fail_settlement(
        self, db: AsyncSession, asset_id: str, request_id: str, error_message: str
    ) -> Asset | None: ...

    async def reset_failed_settlement(self, db: AsyncSession, asset_id: str) -> Asset | None: ...

    async def complete_settlement(
        self, db: AsyncSession, asset_id: str, request_id: str
    ) -> Asset | None: ...

    async def insert_transaction(self, db: AsyncSession, record: AssetTransaction) -> None: ...

    async def list_transactions(
        self, db: AsyncSession, asset_id: str
    ) -> list[AssetTransaction]: ...

    # --- removal ---
    async def mark_removed_from_sale(
        self, db: AsyncSession, asset_id: str, seller: str
    ) -> Asset | None: ...

    async def annotate_error(
        self, db: AsyncSession, asset_id: str, error_message: str
    ) -> None: ...

    # --- token delivery ---
    async def record_issuance(
        self, db: AsyncSession, asset_id: str, holder: str, tx_hash: str
    ) -> Asset | None: ...
