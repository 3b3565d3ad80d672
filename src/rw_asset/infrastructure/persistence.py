"""AssetRepository: raw SQL implementation of AssetRepositoryProtocol.

Each saga step is a single conditional UPDATE ... RETURNING. The WHERE clause
names the expected status, purchase stage and linked request id, so a stale
or duplicate reconciliation call matches no row and writes nothing.
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rw_asset.domain.models import Asset, AssetTransaction
from src.rw_common.enums import (
    AssetStatus,
    AssetTransactionStatus,
    EscrowStatus,
    PurchaseStage,
)

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_COLUMNS = """
    id, name, description, image_url, price_drops, token_currency, token_issuer,
    seller_address, owner_address, status, escrow_status,
    escrow_request_id, purchase_request_id, settlement_request_id,
    purchase_stage, pending_buyer, payment_tx_hash, escrow_tx_hash, issuance_tx_hash,
    error_message, listed_at, created_at, updated_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO assets (id, name, description, image_url, price_drops,
        token_currency, token_issuer, seller_address, owner_address, status)
    VALUES (:id, :name, :description, :image_url, :price_drops,
        :token_currency, :token_issuer, :seller_address, :owner_address, 'active')
    RETURNING {_COLUMNS}
""")

_GET_BY_ID_SQL = text(f"SELECT {_COLUMNS} FROM assets WHERE id = :id")

_GET_BY_REQUEST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM assets
    WHERE escrow_request_id = :request_id
       OR purchase_request_id = :request_id
       OR settlement_request_id = :request_id
    LIMIT 1
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM assets
    WHERE
        (CAST(:owner_address AS TEXT) IS NULL OR owner_address = CAST(:owner_address AS TEXT))
        AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
        AND (NOT CAST(:marketplace_only AS BOOLEAN) OR (status = 'for_sale' AND escrow_status = 'escrowed'))
        AND (
            CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
            OR created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
            OR (
                created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
                AND id < CAST(:cursor_id AS TEXT)
            )
        )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_IDS_BY_STATUS_SQL = text("""
    SELECT id FROM assets
    WHERE status = :status
    ORDER BY updated_at ASC
    LIMIT :limit
""")

# --- escrow ---

_MARK_ESCROW_REQUESTED_SQL = text(f"""
    UPDATE assets
    SET status = 'pending_escrow', escrow_request_id = :request_id,
        seller_address = :seller, error_message = NULL, updated_at = NOW()
    WHERE id = :id AND status = 'active' AND owner_address = :seller
    RETURNING {_COLUMNS}
""")

_CONFIRM_ESCROW_SQL = text(f"""
    UPDATE assets
    SET status = 'for_sale', escrow_status = 'escrowed',
        escrow_tx_hash = :tx_hash, listed_at = :now,
        error_message = NULL, updated_at = NOW()
    WHERE id = :id AND status = 'pending_escrow' AND escrow_request_id = :request_id
    RETURNING {_COLUMNS}
""")

_REVERT_ESCROW_SQL = text(f"""
    UPDATE assets
    SET status = 'active', escrow_request_id = NULL,
        error_message = CAST(:error_message AS TEXT), updated_at = NOW()
    WHERE id = :id AND status = 'pending_escrow' AND escrow_request_id = :request_id
    RETURNING {_COLUMNS}
""")

# --- purchase ---

_MARK_PURCHASE_REQUESTED_SQL = text(f"""
    UPDATE assets
    SET status = 'pending_purchase', purchase_stage = 'awaiting_payment',
        pending_buyer = :buyer, purchase_request_id = :request_id,
        settlement_request_id = NULL, payment_tx_hash = NULL,
        error_message = NULL, updated_at = NOW()
    WHERE id = :id AND status = 'for_sale' AND escrow_status = 'escrowed'
    RETURNING {_COLUMNS}
""")

_CONFIRM_PAYMENT_SQL = text(f"""
    UPDATE assets
    SET purchase_stage = 'payment_confirmed', payment_tx_hash = :tx_hash,
        updated_at = NOW()
    WHERE id = :id AND status = 'pending_purchase'
      AND purchase_stage = 'awaiting_payment' AND purchase_request_id = :request_id
    RETURNING {_COLUMNS}
""")

_REVERT_PURCHASE_SQL = text(f"""
    UPDATE assets
    SET status = 'for_sale', purchase_stage = NULL, pending_buyer = NULL,
        purchase_request_id = NULL, error_message = CAST(:error_message AS TEXT),
        updated_at = NOW()
    WHERE id = :id AND status = 'pending_purchase'
      AND purchase_stage = 'awaiting_payment' AND purchase_request_id = :request_id
    RETURNING {_COLUMNS}
""")

# --- settlement ---

_MARK_SETTLEMENT_ISSUED_SQL = text(f"""
    UPDATE assets
    SET purchase_stage = 'settlement_issued', settlement_request_id = :request_id,
        error_message = NULL, updated_at = NOW()
    WHERE id = :id AND status = 'pending_purchase' AND purchase_stage = 'payment_confirmed'
    RETURNING {_COLUMNS}
""")

_REVERT_SETTLEMENT_SQL = text(f"""
    UPDATE assets
    SET purchase_stage = 'payment_confirmed', settlement_request_id = NULL,
        updated_at = NOW()
    WHERE id = :id AND status = 'pending_purchase'
      AND purchase_stage = 'settlement_issued' AND settlement_request_id = :request_id
    RETURNING {_COLUMNS}
""")

_FAIL_SETTLEMENT_SQL = text(f"""
    UPDATE assets
    SET purchase_stage = 'settlement_failed', error_message = :error_message,
        updated_at = NOW()
    WHERE id = :id AND status = 'pending_purchase'
      AND purchase_stage = 'settlement_issued' AND settlement_request_id = :request_id
    RETURNING {_COLUMNS}
""")

_RESET_FAILED_SETTLEMENT_SQL = text(f"""
    UPDATE assets
    SET purchase_stage = 'payment_confirmed', settlement_request_id = NULL,
        error_message = NULL, updated_at = NOW()
    WHERE id = :id AND status = 'pending_purchase' AND purchase_stage = 'settlement_failed'
    RETURNING {_COLUMNS}
""")

_COMPLETE_SETTLEMENT_SQL = text(f"""
    UPDATE assets
    SET status = 'active', owner_address = pending_buyer, pending_buyer = NULL,
        purchase_stage = NULL, escrow_status = NULL, listed_at = NULL,
        error_message = NULL, updated_at = NOW()
    WHERE id = :id AND status = 'pending_purchase'
      AND purchase_stage = 'settlement_issued' AND settlement_request_id = :request_id
    RETURNING {_COLUMNS}
""")

_INSERT_TRANSACTION_SQL = text("""
    INSERT INTO asset_transactions (id, asset_id, buyer_address, seller_address,
        price_drops, payment_tx_hash, settlement_tx_hash, status)
    VALUES (:id, :asset_id, :buyer_address, :seller_address,
        :price_drops, :payment_tx_hash, :settlement_tx_hash, :status)
""")

_LIST_TRANSACTIONS_SQL = text("""
    SELECT id, asset_id, buyer_address, seller_address, price_drops,
           payment_tx_hash, settlement_tx_hash, status, created_at
    FROM asset_transactions
    WHERE asset_id = :asset_id
    ORDER BY created_at DESC, id DESC
""")

# --- removal ---

_MARK_REMOVED_SQL = text(f"""
    UPDATE assets
    SET status = 'active', owner_address = :seller, escrow_status = NULL,
        listed_at = NULL, escrow_request_id = NULL, purchase_request_id = NULL,
        settlement_request_id = NULL, error_message = NULL, updated_at = NOW()
    WHERE id = :id AND status = 'for_sale' AND escrow_status = 'escrowed'
      AND seller_address = :seller
    RETURNING {_COLUMNS}
""")

_ANNOTATE_ERROR_SQL = text("""
    UPDATE assets SET error_message = :error_message, updated_at = NOW()
    WHERE id = :id
""")

# --- token delivery ---

_RECORD_ISSUANCE_SQL = text(f"""
    UPDATE assets
    SET issuance_tx_hash = :tx_hash, error_message = NULL, updated_at = NOW()
    WHERE id = :id AND owner_address = :holder AND issuance_tx_hash IS NULL
    RETURNING {_COLUMNS}
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_asset(row: Any) -> Asset:
    return Asset(
        id=row.id,
        name=row.name,
        description=row.description,
        image_url=row.image_url,
        price_drops=row.price_drops,
        token_currency=row.token_currency,
        token_issuer=row.token_issuer,
        seller_address=row.seller_address,
        owner_address=row.owner_address,
        status=AssetStatus(row.status),
        escrow_status=EscrowStatus(row.escrow_status) if row.escrow_status else None,
        escrow_request_id=row.escrow_request_id,
        purchase_request_id=row.purchase_request_id,
        settlement_request_id=row.settlement_request_id,
        purchase_stage=PurchaseStage(row.purchase_stage) if row.purchase_stage else None,
        pending_buyer=row.pending_buyer,
        payment_tx_hash=row.payment_tx_hash,
        escrow_tx_hash=row.escrow_tx_hash,
        issuance_tx_hash=row.issuance_tx_hash,
        error_message=row.error_message,
        listed_at=row.listed_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_transaction(row: Any) -> AssetTransaction:
    return AssetTransaction(
        id=row.id,
        asset_id=row.asset_id,
        buyer_address=row.buyer_address,
        seller_address=row.seller_address,
        price_drops=row.price_drops,
        payment_tx_hash=row.payment_tx_hash,
        settlement_tx_hash=row.settlement_tx_hash,
        status=AssetTransactionStatus(row.status),
        created_at=row.created_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AssetRepository:
    """Concrete implementation of AssetRepositoryProtocol using raw SQL."""

    async def _one(self, db: AsyncSession, sql: Any, params: dict[str, Any]) -> Asset | None:
        result = await db.execute(sql, params)
        row = result.fetchone()
        return _row_to_asset(row) if row else None

    async def insert(self, db: AsyncSession, asset: Asset) -> Asset:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": asset.id,
                "name": asset.name,
                "description": asset.description,
                "image_url": asset.image_url,
                "price_drops": asset.price_drops,
                "token_currency": asset.token_currency,
                "token_issuer": asset.token_issuer,
                "seller_address": asset.seller_address,
                "owner_address": asset.owner_address,
            },
        )
        return _row_to_asset(result.fetchone())

    async def get_by_id(self, db: AsyncSession, asset_id: str) -> Asset | None:
        return await self._one(db, _GET_BY_ID_SQL, {"id": asset_id})

    async def get_by_request_id(self, db: AsyncSession, request_id: str) -> Asset | None:
        return await self._one(db, _GET_BY_REQUEST_SQL, {"request_id": request_id})

    async def list_assets(
        self,
        db: AsyncSession,
        owner_address: str | None,
        status: AssetStatus | None,
        marketplace_only: bool,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Asset]:
        result = await db.execute(
            _LIST_SQL,
            {
                "owner_address": owner_address,
                "status": status.value if status else None,
                "marketplace_only": marketplace_only,
                "cursor_ts": cursor_ts,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_asset(row) for row in result.fetchall()]

    async def list_ids_by_status(
        self, db: AsyncSession, status: AssetStatus, limit: int
    ) -> list[str]:
        result = await db.execute(_IDS_BY_STATUS_SQL, {"status": status.value, "limit": limit})
        return [row.id for row in result.fetchall()]

    # --- escrow ---

    async def mark_escrow_requested(
        self, db: AsyncSession, asset_id: str, seller: str, request_id: str
    ) -> Asset | None:
        return await self._one(
            db,
            _MARK_ESCROW_REQUESTED_SQL,
            {"id": asset_id, "seller": seller, "request_id": request_id},
        )

    async def confirm_escrow(
        self, db: AsyncSession, asset_id: str, request_id: str, tx_hash: str | None, now: datetime
    ) -> Asset | None:
        return await self._one(
            db,
            _CONFIRM_ESCROW_SQL,
            {"id": asset_id, "request_id": request_id, "tx_hash": tx_hash, "now": now},
        )

    async def revert_escrow(
        self, db: AsyncSession, asset_id: str, request_id: str, error_message: str | None
    ) -> Asset | None:
        return await self._one(
            db,
            _REVERT_ESCROW_SQL,
            {"id": asset_id, "request_id": request_id, "error_message": error_message},
        )

    # --- purchase ---

    async def mark_purchase_requested(
        self, db: AsyncSession, asset_id: str, buyer: str, request_id: str
    ) -> Asset | None:
        return await self._one(
            db,
            _MARK_PURCHASE_REQUESTED_SQL,
            {"id": asset_id, "buyer": buyer, "request_id": request_id},
        )

    async def confirm_payment(
        self, db: AsyncSession, asset_id: str, request_id: str, tx_hash: str | None
    ) -> Asset | None:
        return await self._one(
            db,
            _CONFIRM_PAYMENT_SQL,
            {"id": asset_id, "request_id": request_id, "tx_hash": tx_hash},
        )

    async def revert_purchase(
        self, db: AsyncSession, asset_id: str, request_id: str, error_message: str | None
    ) -> Asset | None:
        return await self._one(
            db,
            _REVERT_PURCHASE_SQL,
            {"id": asset_id, "request_id": request_id, "error_message": error_message},
        )

    # --- settlement ---

    async def mark_settlement_issued(
        self, db: AsyncSession, asset_id: str, request_id: str
    ) -> Asset | None:
        return await self._one(
            db, _MARK_SETTLEMENT_ISSUED_SQL, {"id": asset_id, "request_id": request_id}
        )

    async def revert_settlement(
        self, db: AsyncSession, asset_id: str, request_id: str
    ) -> Asset | None:
        return await self._one(
            db, _REVERT_SETTLEMENT_SQL, {"id": asset_id, "request_id": request_id}
        )

    async def fail_settlement(
        self, db: AsyncSession, asset_id: str, request_id: str, error_message: str
    ) -> Asset | None:
        return await self._one(
            db,
            _FAIL_SETTLEMENT_SQL,
            {"id": asset_id, "request_id": request_id, "error_message": error_message},
        )

    async def reset_failed_settlement(self, db: AsyncSession, asset_id: str) -> Asset | None:
        return await self._one(db, _RESET_FAILED_SETTLEMENT_SQL, {"id": asset_id})

    async def complete_settlement(
        self, db: AsyncSession, asset_id: str, request_id: str
    ) -> Asset | None:
        return await self._one(
            db, _COMPLETE_SETTLEMENT_SQL, {"id": asset_id, "request_id": request_id}
        )

    async def insert_transaction(self, db: AsyncSession, record: AssetTransaction) -> None:
        await db.execute(
            _INSERT_TRANSACTION_SQL,
            {
                "id": record.id,
                "asset_id": record.asset_id,
                "buyer_address": record.buyer_address,
                "seller_address": record.seller_address,
                "price_drops": record.price_drops,
                "payment_tx_hash": record.payment_tx_hash,
                "settlement_tx_hash": record.settlement_tx_hash,
                "status": record.status.value,
            },
        )

    async def list_transactions(
        self, db: AsyncSession, asset_id: str
    ) -> list[AssetTransaction]:
        result = await db.execute(_LIST_TRANSACTIONS_SQL, {"asset_id": asset_id})
        return [_row_to_transaction(row) for row in result.fetchall()]

    # --- removal ---

    async def mark_removed_from_sale(
        self, db: AsyncSession, asset_id: str, seller: str
    ) -> Asset | None:
        return await self._one(db, _MARK_REMOVED_SQL, {"id": asset_id, "seller": seller})

    async def annotate_error(
        self, db: AsyncSession, asset_id: str, error_message: str
    ) -> None:
        await db.execute(_ANNOTATE_ERROR_SQL, {"id": asset_id, "error_message": error_message})

    # --- token delivery ---

    async def record_issuance(
        self, db: AsyncSession, asset_id: str, holder: str, tx_hash: str
    ) -> Asset | None:
        return await self._one(
            db, _RECORD_ISSUANCE_SQL, {"id": asset_id, "holder": holder, "tx_hash": tx_hash}
        )
