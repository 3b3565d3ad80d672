"""OfferReconciliationService: owns the offer state machine.

Transactions are owned here: every public write commits on success and rolls
back on failure. Pull (check_and_sync) and push (apply_external_event) feed
the same conditional transition, so concurrent drivers converge.
"""

import logging
from collections.abc import Awaitable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import Settings
from src.rw_common.datetime_utils import expires_after, utc_now
from src.rw_common.drops import validate_amount
from src.rw_common.enums import OfferKind, OfferStatus
from src.rw_common.errors import (
    GatewayUnavailable,
    InvalidOfferError,
    NotFoundError,
    OfferNotFoundError,
    PersistenceConflict,
    PersistenceError,
)
from src.rw_common.id_generator import generate_id
from src.rw_common.pagination import clamp_limit, cursor_decode, cursor_encode
from src.rw_ledger.domain.client import LedgerClientProtocol
from src.rw_offer.domain.models import (
    Offer,
    OfferFilter,
    OfferIntent,
    OfferPage,
    SyncResult,
)
from src.rw_offer.domain.repository import OfferRepositoryProtocol
from src.rw_offer.domain.transitions import implied_offer_transition
from src.rw_offer.infrastructure.persistence import OfferRepository
from src.rw_signing.domain import intents
from src.rw_signing.domain.gateway import SigningGatewayProtocol
from src.rw_signing.domain.models import SigningEvent, SigningStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


def validate_offer_fields(
    kind: str, amount: int, initiator: str, asset_unit_id: str
) -> OfferKind:
    """Check kind/amount/address invariants; return the parsed kind."""
    try:
        parsed = OfferKind(kind)
    except ValueError as exc:
        raise InvalidOfferError(f"kind must be 'sell' or 'buy', got {kind!r}") from exc
    try:
        validate_amount(amount, allow_zero=parsed is not OfferKind.BUY)
    except ValueError as exc:
        if parsed is OfferKind.BUY and amount == 0:
            raise InvalidOfferError("Amount must be non-zero for buy offers") from exc
        raise InvalidOfferError(str(exc)) from exc
    if not initiator or not initiator.strip():
        raise InvalidOfferError("initiator is required")
    if not asset_unit_id or not asset_unit_id.strip():
        raise InvalidOfferError("assetUnitId is required")
    return parsed


class OfferReconciliationService:
    def __init__(
        self,
        settings: Settings,
        gateway: SigningGatewayProtocol,
        ledger: LedgerClientProtocol | None = None,
        repo: OfferRepositoryProtocol | None = None,
    ) -> None:
        self._settings = settings
        self._gateway = gateway
        self._ledger = ledger
        self._repo: OfferRepositoryProtocol = repo or OfferRepository()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_offer(self, db: AsyncSession, intent: OfferIntent) -> Offer:
        kind = validate_offer_fields(
            intent.kind, intent.amount, intent.initiator, intent.asset_unit_id
        )
        if not intent.signing_request_id:
            raise InvalidOfferError("signingRequestId is required")
        offer = Offer(
            id=generate_id(),
            asset_unit_id=intent.asset_unit_id,
            kind=kind,
            initiator=intent.initiator,
            owner_address=intent.owner_address,
            amount=intent.amount,
            signing_request_id=intent.signing_request_id,
            request_created_at=intent.request_created_at,
            request_expires_at=intent.request_expires_at,
            link=intent.link,
            pushed=intent.pushed,
        )
        try:
            created = await self._repo.insert(db, offer)
            await db.commit()
        except PersistenceConflict:
            await db.rollback()
            raise
        except SQLAlchemyError as exc:
            await db.rollback()
            raise PersistenceError(f"Could not store offer: {exc.__class__.__name__}") from exc
        logger.info(
            "Offer %s created: %s %s drops on %s (request %s)",
            created.id, created.kind.value, created.amount,
            created.asset_unit_id, created.signing_request_id,
        )
        return created

    async def submit_offer(
        self,
        db: AsyncSession,
        asset_unit_id: str,
        kind: str,
        initiator: str,
        amount: int,
        push_target: str | None = None,
    ) -> Offer:
        """Issue an NFT create-offer signing request and record it as pending."""
        parsed = validate_offer_fields(kind, amount, initiator, asset_unit_id)
        if not self._gateway.is_available():
            raise GatewayUnavailable("Signing gateway credentials not configured")

        owner: str | None = None
        if parsed is OfferKind.BUY:
            if self._ledger is None:
                raise GatewayUnavailable("Ledger client not configured")
            owner = await self._ledger.get_nft_owner(asset_unit_id)
            if owner is None:
                raise NotFoundError(f"Token not found on ledger: {asset_unit_id}")
            if owner == initiator:
                raise InvalidOfferError("Cannot create buy offer for your own token")

        intent = intents.nft_create_offer(
            parsed, initiator, asset_unit_id, amount,
            destination=self._settings.CUSTODIAN_ADDRESS, owner=owner,
        )
        expiry = self._settings.OFFER_REQUEST_EXPIRY_SECONDS
        issued_at = utc_now()
        request = await self._gateway.create(intent, expiry, push_target)
        return await self.create_offer(
            db,
            OfferIntent(
                asset_unit_id=asset_unit_id,
                kind=parsed.value,
                initiator=initiator,
                amount=amount,
                signing_request_id=request.id,
                request_created_at=issued_at,
                request_expires_at=expires_after(expiry, issued_at),
                owner_address=owner,
                link=request.link,
                pushed=request.pushed,
            ),
        )

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def check_and_sync(self, db: AsyncSession, request_id: str) -> SyncResult:
        offer = await self._load_by_request(db, request_id)
        if offer.is_terminal or not self._gateway.is_available():
            return SyncResult(offer=offer, updated=False)
        try:
            status = await self._gateway.get_status(request_id)
        except GatewayUnavailable as exc:
            logger.warning("Offer %s status check skipped: %s", request_id, exc.message)
            return SyncResult(offer=offer, updated=False)
        return await self._apply(db, offer, status)

    async def apply_external_event(self, db: AsyncSession, event: SigningEvent) -> SyncResult:
        offer = await self._load_by_request(db, event.request_id)
        if offer.is_terminal:
            logger.debug("Duplicate event for terminal offer %s ignored", offer.id)
            return SyncResult(offer=offer, updated=False)
        return await self._apply(db, offer, event.status)

    async def _apply(self, db: AsyncSession, offer: Offer, status: SigningStatus) -> SyncResult:
        transition = implied_offer_transition(status)
        if transition is None:
            return SyncResult(offer=offer, updated=False)

        request_id = offer.signing_request_id
        for _ in range(2):
            try:
                updated = await self._repo.transition_pending(db, request_id, transition)
                await db.commit()
            except SQLAlchemyError as exc:
                await db.rollback()
                raise PersistenceError(f"Could not update offer {offer.id}") from exc
            if updated is not None:
                logger.info(
                    "Offer %s: pending -> %s (request %s)",
                    updated.id, updated.status.value, request_id,
                )
                return SyncResult(offer=updated, updated=True)

            # Lost the conditional update: re-read, retry once if still pending
            current = await self._load_by_request(db, request_id)
            if current.is_terminal:
                logger.debug(
                    "Offer %s already %s; transition to %s skipped",
                    current.id, current.status.value, transition.status.value,
                )
                return SyncResult(offer=current, updated=False)
        raise PersistenceConflict(f"Offer {offer.id} could not be transitioned")

    async def sweep_expired(self, db: AsyncSession) -> int:
        """Bulk pending -> expired for offers past their stored expiry."""
        try:
            count = await self._repo.expire_pending(db, utc_now())
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            raise PersistenceError("Could not expire offers") from exc
        if count:
            logger.info("Expired %d pending offers", count)
        return count

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _read(self, db: AsyncSession, op: Awaitable[T]) -> T:
        try:
            return await op
        except SQLAlchemyError as exc:
            await db.rollback()
            raise PersistenceError(f"Offer store read failed: {exc.__class__.__name__}") from exc

    async def _load_by_request(self, db: AsyncSession, request_id: str) -> Offer:
        offer = await self._read(db, self._repo.get_by_request_id(db, request_id))
        if offer is None:
            raise OfferNotFoundError(request_id)
        return offer

    async def get_offer(
        self,
        db: AsyncSession,
        offer_id: str | None = None,
        request_id: str | None = None,
    ) -> Offer:
        if request_id:
            return await self._load_by_request(db, request_id)
        if not offer_id:
            raise InvalidOfferError("signingRequestId or offerId is required")
        offer = await self._read(db, self._repo.get_by_id(db, offer_id))
        if offer is None:
            raise OfferNotFoundError(offer_id)
        return offer

    async def find_by_request_id(self, db: AsyncSession, request_id: str) -> Offer | None:
        return await self._read(db, self._repo.get_by_request_id(db, request_id))

    async def list_offers(self, db: AsyncSession, flt: OfferFilter) -> OfferPage:
        limit = clamp_limit(flt.limit)
        cursor_ts, cursor_id = cursor_decode(flt.cursor)
        offers = await self._read(
            db, self._repo.list_offers(db, flt, cursor_ts, cursor_id, limit + 1)
        )
        has_more = len(offers) > limit
        page = offers[:limit]
        next_cursor = (
            cursor_encode(page[-1].created_at, page[-1].id)
            if has_more and page and page[-1].created_at
            else None
        )
        return OfferPage(items=page, next_cursor=next_cursor, has_more=has_more)

    async def list_pending_request_ids(self, db: AsyncSession) -> list[str]:
        return await self._read(
            db, self._repo.list_pending_request_ids(db, self._settings.POLL_BATCH_LIMIT)
        )

    async def offer_stats(self, db: AsyncSession) -> dict[str, int]:
        counts = await self._read(db, self._repo.count_by_status(db))
        stats = {s.value: counts.get(s.value, 0) for s in OfferStatus}
        stats["total"] = sum(stats.values())
        return stats
