"""OfferRepository: concrete implementation of OfferRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
Every status change is a single conditional UPDATE ... WHERE status = 'pending'
RETURNING; a None result means another writer got there first.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.rw_common.enums import OfferKind, OfferStatus
from src.rw_common.errors import PersistenceConflict
from src.rw_offer.domain.models import Offer, OfferFilter, OfferTransition

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_COLUMNS = """
    id, asset_unit_id, kind, initiator, owner_address, amount,
    signing_request_id, request_created_at, request_expires_at, link, pushed,
    status, tx_hash, signed_at, completed_at, error_message,
    created_at, updated_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO offers (id, asset_unit_id, kind, initiator, owner_address, amount,
        signing_request_id, request_created_at, request_expires_at, link, pushed, status)
    VALUES (:id, :asset_unit_id, :kind, :initiator, :owner_address, :amount,
        :signing_request_id, COALESCE(CAST(:request_created_at AS TIMESTAMPTZ), NOW()),
        :request_expires_at, :link, :pushed, 'pending')
    RETURNING {_COLUMNS}
""")

_GET_BY_ID_SQL = text(f"SELECT {_COLUMNS} FROM offers WHERE id = :id")

_GET_BY_REQUEST_SQL = text(
    f"SELECT {_COLUMNS} FROM offers WHERE signing_request_id = :request_id"
)

_TRANSITION_SQL = text(f"""
    UPDATE offers
    SET status = :status,
        tx_hash = COALESCE(CAST(:tx_hash AS TEXT), tx_hash),
        signed_at = COALESCE(CAST(:signed_at AS TIMESTAMPTZ), signed_at),
        completed_at = COALESCE(CAST(:completed_at AS TIMESTAMPTZ), completed_at),
        error_message = COALESCE(CAST(:error_message AS TEXT), error_message),
        updated_at = NOW()
    WHERE signing_request_id = :request_id
      AND status = 'pending'
    RETURNING {_COLUMNS}
""")

_EXPIRE_SQL = text("""
    UPDATE offers
    SET status = 'expired', updated_at = NOW()
    WHERE status = 'pending'
      AND request_expires_at < :now
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM offers
    WHERE
        (CAST(:initiator AS TEXT) IS NULL OR initiator = CAST(:initiator AS TEXT))
        AND (CAST(:owner_address AS TEXT) IS NULL OR owner_address = CAST(:owner_address AS TEXT))
        AND (CAST(:asset_unit_id AS TEXT) IS NULL OR asset_unit_id = CAST(:asset_unit_id AS TEXT))
        AND (CAST(:kind AS TEXT) IS NULL OR kind = CAST(:kind AS TEXT))
        AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
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

_PENDING_IDS_SQL = text("""
    SELECT signing_request_id
    FROM offers
    WHERE status = 'pending'
    ORDER BY created_at ASC
    LIMIT :limit
""")

_COUNT_BY_STATUS_SQL = text("""
    SELECT status, COUNT(*) AS n
    FROM offers
    GROUP BY status
""")

# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_offer(row: Any) -> Offer:
    return Offer(
        id=row.id,
        asset_unit_id=row.asset_unit_id,
        kind=OfferKind(row.kind),
        initiator=row.initiator,
        owner_address=row.owner_address,
        amount=row.amount,
        signing_request_id=row.signing_request_id,
        request_created_at=row.request_created_at,
        request_expires_at=row.request_expires_at,
        link=row.link,
        pushed=row.pushed,
        status=OfferStatus(row.status),
        tx_hash=row.tx_hash,
        signed_at=row.signed_at,
        completed_at=row.completed_at,
        error_message=row.error_message,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OfferRepository:
    """Concrete implementation of OfferRepositoryProtocol using raw SQL."""

    async def insert(self, db: AsyncSession, offer: Offer) -> Offer:
        try:
            result = await db.execute(
                _INSERT_SQL,
                {
                    "id": offer.id,
                    "asset_unit_id": offer.asset_unit_id,
                    "kind": offer.kind.value,
                    "initiator": offer.initiator,
                    "owner_address": offer.owner_address,
                    "amount": offer.amount,
                    "signing_request_id": offer.signing_request_id,
                    "request_created_at": offer.request_created_at,
                    "request_expires_at": offer.request_expires_at,
                    "link": offer.link,
                    "pushed": offer.pushed,
                },
            )
        except IntegrityError as exc:
            raise PersistenceConflict(
                f"Offer for signing request {offer.signing_request_id} already exists"
            ) from exc
        return _row_to_offer(result.fetchone())

    async def get_by_id(self, db: AsyncSession, offer_id: str) -> Offer | None:
        result = await db.execute(_GET_BY_ID_SQL, {"id": offer_id})
        row = result.fetchone()
        return _row_to_offer(row) if row else None

    async def get_by_request_id(self, db: AsyncSession, request_id: str) -> Offer | None:
        result = await db.execute(_GET_BY_REQUEST_SQL, {"request_id": request_id})
        row = result.fetchone()
        return _row_to_offer(row) if row else None

    async def transition_pending(
        self, db: AsyncSession, request_id: str, transition: OfferTransition
    ) -> Offer | None:
        result = await db.execute(
            _TRANSITION_SQL,
            {
                "request_id": request_id,
                "status": transition.status.value,
                "tx_hash": transition.tx_hash,
                "signed_at": transition.signed_at,
                "completed_at": transition.completed_at,
                "error_message": transition.error_message,
            },
        )
        row = result.fetchone()
        return _row_to_offer(row) if row else None

    async def expire_pending(self, db: AsyncSession, now: datetime) -> int:
        result = await db.execute(_EXPIRE_SQL, {"now": now})
        return result.rowcount or 0

    async def list_offers(
        self,
        db: AsyncSession,
        flt: OfferFilter,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Offer]:
        result = await db.execute(
            _LIST_SQL,
            {
                "initiator": flt.initiator,
                "owner_address": flt.owner_address,
                "asset_unit_id": flt.asset_unit_id,
                "kind": flt.kind.value if flt.kind else None,
                "status": flt.status.value if flt.status else None,
                "cursor_ts": cursor_ts,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_offer(row) for row in result.fetchall()]

    async def list_pending_request_ids(self, db: AsyncSession, limit: int) -> list[str]:
        result = await db.execute(_PENDING_IDS_SQL, {"limit": limit})
        return [row.signing_request_id for row in result.fetchall()]

    async def count_by_status(self, db: AsyncSession) -> dict[str, int]:
        result = await db.execute(_COUNT_BY_STATUS_SQL)
        return {row.status: row.n for row in result.fetchall()}
