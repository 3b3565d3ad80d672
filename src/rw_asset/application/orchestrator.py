"""AssetLifecycleOrchestrator: escrow and purchase sagas for custodial assets.

Escrow:    active -> pending_escrow -> for_sale/escrowed
                                    -> active (expired, cancelled, or signed but unresolved)
Purchase:  for_sale -> pending_purchase with purchase_stage
             awaiting_payment  -> payment_confirmed   (buyer payment settled, committed)
             payment_confirmed -> settlement_issued   (custodian transfer requested)
             settlement_issued -> active, owner = pending_buyer, sale recorded
           Rollbacks:
             awaiting_payment aborted/failed -> for_sale, buyer and link cleared
             settlement_issued aborted       -> payment_confirmed -> settlement_issued (re-issued
                                                at once; a later sweep retries if that fails)
             settlement_issued failed        -> settlement_failed, operator retry only

Holders need a trust line for the asset token before it can reach them:
request_trustline hands out the TrustSet to sign, request_purchase refuses
buyers without one, and issue_token delivers a custodian-issued token to its
owner.

Store writes are conditional UPDATEs. Steps that talk to the gateway or the
ledger run under a per-asset lock so one asset never has two requests in flight.
"""

import logging
from collections.abc import Awaitable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import Settings
from src.rw_asset.domain.models import Asset, AssetEventResult, AssetTransaction
from src.rw_asset.domain.repository import AssetRepositoryProtocol
from src.rw_asset.domain.transitions import FlowOutcome, classify
from src.rw_asset.infrastructure.persistence import AssetRepository
from src.rw_common.datetime_utils import utc_now
from src.rw_common.enums import AssetFlow, AssetStatus, PurchaseStage
from src.rw_common.errors import (
    AppError,
    AssetNotFoundError,
    AssetStateError,
    ForbiddenError,
    GatewayUnavailable,
    InternalError,
    LedgerSubmissionFailed,
    NotFoundError,
    PersistenceConflict,
    PersistenceError,
    TrustlineRequiredError,
    ValidationError,
)
from src.rw_common.id_generator import generate_id
from src.rw_common.locks import EntityLock, LocalEntityLock
from src.rw_ledger.domain.client import LedgerClientProtocol
from src.rw_signing.domain import intents
from src.rw_signing.domain.gateway import SigningGatewayProtocol
from src.rw_signing.domain.models import (
    SIGNED_NOT_RESOLVED,
    SigningEvent,
    SigningRequest,
    SigningStatus,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AssetLifecycleOrchestrator:
    def __init__(
        self,
        settings: Settings,
        gateway: SigningGatewayProtocol,
        ledger: LedgerClientProtocol | None = None,
        lock: EntityLock | None = None,
        repo: AssetRepositoryProtocol | None = None,
    ) -> None:
        self._settings = settings
        self._gateway = gateway
        self._ledger = ledger
        self._lock: EntityLock = lock or LocalEntityLock()
        self._repo: AssetRepositoryProtocol = repo or AssetRepository()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _commit(self, db: AsyncSession, op: Awaitable[T]) -> T:
        try:
            result = await op
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            raise PersistenceError(f"Asset store write failed: {exc.__class__.__name__}") from exc
        return result

    async def _read(self, db: AsyncSession, op: Awaitable[T]) -> T:
        try:
            return await op
        except SQLAlchemyError as exc:
            await db.rollback()
            raise PersistenceError(f"Asset store read failed: {exc.__class__.__name__}") from exc

    async def _load(self, db: AsyncSession, asset_id: str) -> Asset:
        asset = await self._read(db, self._repo.get_by_id(db, asset_id))
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    def _custodian(self) -> str:
        if not self._settings.CUSTODIAN_ADDRESS:
            raise InternalError("Custodian address not configured")
        return self._settings.CUSTODIAN_ADDRESS

    async def _status(self, request_id: str) -> SigningStatus | None:
        """Gateway status, or None when the gateway cannot answer right now."""
        if not self._gateway.is_available():
            return None
        try:
            return await self._gateway.get_status(request_id)
        except GatewayUnavailable as exc:
            logger.warning("Status check for request %s skipped: %s", request_id, exc.message)
            return None

    def _lost(self, asset: Asset, step: str) -> bool:
        logger.debug("Asset %s: %s lost to a concurrent writer", asset.id, step)
        return False

    def _ledger_client(self) -> LedgerClientProtocol:
        if self._ledger is None:
            raise GatewayUnavailable("Ledger client not configured")
        return self._ledger

    async def _require_trustline(self, holder: str, asset: Asset) -> None:
        if holder == asset.token_issuer:
            return
        ledger = self._ledger_client()
        if not await ledger.has_trustline(holder, asset.token_currency, asset.token_issuer):
            raise TrustlineRequiredError(holder, asset.token_currency)

    # ------------------------------------------------------------------
    # Escrow
    # ------------------------------------------------------------------

    async def request_escrow(
        self,
        db: AsyncSession,
        asset_id: str,
        seller: str,
        push_target: str | None = None,
    ) -> tuple[Asset, SigningRequest]:
        async with self._lock(f"asset:{asset_id}"):
            asset = await self._load(db, asset_id)
            if asset.owner_address != seller:
                raise ForbiddenError("Only the current owner can escrow this asset")
            if asset.status is not AssetStatus.ACTIVE:
                raise AssetStateError(asset_id, asset.status.value, "be escrowed")
            intent = intents.escrow_transfer(
                asset.id, asset.name, seller, self._custodian(),
                asset.token_currency, asset.token_issuer,
            )
            request = await self._gateway.create(
                intent, self._settings.ASSET_REQUEST_EXPIRY_SECONDS, push_target
            )
            updated = await self._commit(
                db, self._repo.mark_escrow_requested(db, asset_id, seller, request.id)
            )
            if updated is None:
                raise PersistenceConflict(f"Asset {asset_id} changed while requesting escrow")
        logger.info("Asset %s: active -> pending_escrow (request %s)", asset_id, request.id)
        return updated, request

    async def check_escrow(self, db: AsyncSession, asset: Asset) -> bool:
        if asset.status is not AssetStatus.PENDING_ESCROW or not asset.escrow_request_id:
            return False
        status = await self._status(asset.escrow_request_id)
        if status is None:
            return False
        return await self._apply_escrow(db, asset, asset.escrow_request_id, status)

    async def _apply_escrow(
        self, db: AsyncSession, asset: Asset, request_id: str, status: SigningStatus
    ) -> bool:
        outcome = classify(status)
        if outcome is FlowOutcome.OPEN:
            return False
        if outcome is FlowOutcome.CONFIRMED:
            updated = await self._commit(
                db,
                self._repo.confirm_escrow(
                    db, asset.id, request_id, status.settlement_tx_id, utc_now()
                ),
            )
        else:
            error = SIGNED_NOT_RESOLVED if outcome is FlowOutcome.FAILED else None
            updated = await self._commit(
                db, self._repo.revert_escrow(db, asset.id, request_id, error)
            )
        if updated is None:
            return self._lost(asset, f"escrow {outcome.value}")
        logger.info(
            "Asset %s: pending_escrow -> %s (escrow %s)",
            asset.id, updated.status.value, outcome.value,
        )
        return True

    # ------------------------------------------------------------------
    # Purchase
    # ------------------------------------------------------------------

    async def request_purchase(
        self,
        db: AsyncSession,
        asset_id: str,
        buyer: str,
        push_target: str | None = None,
    ) -> tuple[Asset, SigningRequest]:
        async with self._lock(f"asset:{asset_id}"):
            asset = await self._load(db, asset_id)
            if not asset.is_listed:
                raise AssetStateError(asset_id, asset.status.value, "be purchased")
            if buyer == asset.seller_address:
                raise ValidationError("Cannot purchase your own asset")
            # The settlement transfer would fail on the ledger without it
            await self._require_trustline(buyer, asset)
            intent = intents.purchase_payment(
                asset.id, asset.name, buyer, asset.seller_address, asset.price_drops
            )
            request = await self._gateway.create(
                intent, self._settings.ASSET_REQUEST_EXPIRY_SECONDS, push_target
            )
            updated = await self._commit(
                db, self._repo.mark_purchase_requested(db, asset_id, buyer, request.id)
            )
            if updated is None:
                raise PersistenceConflict(f"Asset {asset_id} changed while requesting purchase")
        logger.info(
            "Asset %s: for_sale -> pending_purchase buyer=%s (request %s)",
            asset_id, buyer, request.id,
        )
        return updated, request

    async def check_purchase(self, db: AsyncSession, asset: Asset) -> bool:
        """Advance the purchase saga one step from wherever it stopped."""
        if asset.status is not AssetStatus.PENDING_PURCHASE:
            return False
        stage = asset.purchase_stage
        if stage is PurchaseStage.AWAITING_PAYMENT and asset.purchase_request_id:
            status = await self._status(asset.purchase_request_id)
            if status is None:
                return False
            return await self._apply_payment(db, asset, asset.purchase_request_id, status)
        if stage is PurchaseStage.PAYMENT_CONFIRMED:
            return await self._issue_settlement(db, asset.id)
        if stage is PurchaseStage.SETTLEMENT_ISSUED and asset.settlement_request_id:
            status = await self._status(asset.settlement_request_id)
            if status is None:
                return False
            return await self._apply_settlement(db, asset, asset.settlement_request_id, status)
        # settlement_failed waits for retry_settlement
        return False

    async def _apply_payment(
        self, db: AsyncSession, asset: Asset, request_id: str, status: SigningStatus
    ) -> bool:
        outcome = classify(status)
        if outcome is FlowOutcome.OPEN:
            return False
        if outcome is not FlowOutcome.CONFIRMED:
            error = SIGNED_NOT_RESOLVED if outcome is FlowOutcome.FAILED else None
            updated = await self._commit(
                db, self._repo.revert_purchase(db, asset.id, request_id, error)
            )
            if updated is None:
                return self._lost(asset, f"payment {outcome.value}")
            logger.info("Asset %s: pending_purchase -> for_sale (payment %s)", asset.id, outcome.value)
            return True

        updated = await self._commit(
            db, self._repo.confirm_payment(db, asset.id, request_id, status.settlement_tx_id)
        )
        if updated is None:
            return self._lost(asset, "payment confirmation")
        logger.info(
            "Asset %s: payment confirmed (tx %s), issuing settlement",
            asset.id, status.settlement_tx_id,
        )
        await self._resume_settlement(db, asset.id)
        return True

    async def _resume_settlement(self, db: AsyncSession, asset_id: str) -> None:
        """Issue the settlement now; on any failure the durable payment_confirmed
        stage stays and the next sweep resumes from there."""
        try:
            await self._issue_settlement(db, asset_id)
        except AppError as exc:
            logger.warning("Asset %s: settlement issuance deferred: %s", asset_id, exc.message)

    async def _issue_settlement(self, db: AsyncSession, asset_id: str) -> bool:
        async with self._lock(f"asset:{asset_id}"):
            asset = await self._load(db, asset_id)
            if asset.purchase_stage is not PurchaseStage.PAYMENT_CONFIRMED or not asset.pending_buyer:
                return False
            intent = intents.settlement_transfer(
                asset.id, asset.name, self._custodian(), asset.pending_buyer,
                asset.token_currency, asset.token_issuer,
            )
            request = await self._gateway.create(
                intent, self._settings.ASSET_REQUEST_EXPIRY_SECONDS
            )
            updated = await self._commit(
                db, self._repo.mark_settlement_issued(db, asset_id, request.id)
            )
        if updated is None:
            return self._lost(asset, "settlement issuance")
        logger.info(
            "Asset %s: payment_confirmed -> settlement_issued (request %s)", asset_id, request.id
        )
        return True

    async def _apply_settlement(
        self, db: AsyncSession, asset: Asset, request_id: str, status: SigningStatus
    ) -> bool:
        outcome = classify(status)
        if outcome is FlowOutcome.OPEN:
            return False
        if outcome is FlowOutcome.ABORTED:
            updated = await self._commit(
                db, self._repo.revert_settlement(db, asset.id, request_id)
            )
            if updated is None:
                return self._lost(asset, "settlement rollback")
            logger.info("Asset %s: settlement aborted, re-issuing", asset.id)
            await self._resume_settlement(db, asset.id)
            return True
        if outcome is FlowOutcome.FAILED:
            updated = await self._commit(
                db, self._repo.fail_settlement(db, asset.id, request_id, SIGNED_NOT_RESOLVED)
            )
            if updated is None:
                return self._lost(asset, "settlement failure")
            logger.error("Asset %s: settlement signed but not resolved; operator retry required", asset.id)
            return True

        # Ownership change and sale record commit together
        try:
            updated = await self._repo.complete_settlement(db, asset.id, request_id)
            if updated is not None:
                await self._repo.insert_transaction(
                    db,
                    AssetTransaction(
                        id=generate_id(),
                        asset_id=asset.id,
                        buyer_address=updated.owner_address,
                        seller_address=asset.seller_address,
                        price_drops=asset.price_drops,
                        payment_tx_hash=asset.payment_tx_hash,
                        settlement_tx_hash=status.settlement_tx_id,
                    ),
                )
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            raise PersistenceError(f"Could not commit settlement for asset {asset.id}") from exc
        if updated is None:
            return self._lost(asset, "settlement completion")
        logger.info(
            "Asset %s: sold to %s (settlement tx %s)",
            asset.id, updated.owner_address, status.settlement_tx_id,
        )
        return True

    async def retry_settlement(self, db: AsyncSession, asset_id: str) -> Asset:
        """Operator action: re-issue a settlement that was signed but never resolved."""
        asset = await self._load(db, asset_id)
        if asset.purchase_stage is not PurchaseStage.SETTLEMENT_FAILED:
            current = asset.purchase_stage or asset.status
            raise AssetStateError(asset_id, current.value, "retry settlement")
        reset = await self._commit(db, self._repo.reset_failed_settlement(db, asset_id))
        if reset is None:
            raise PersistenceConflict(f"Asset {asset_id} changed while retrying settlement")
        logger.info("Asset %s: settlement retry requested", asset_id)
        await self._issue_settlement(db, asset_id)
        return await self._load(db, asset_id)

    # ------------------------------------------------------------------
    # Lookups for the reconciliation drivers
    # ------------------------------------------------------------------

    async def get(self, db: AsyncSession, asset_id: str) -> Asset:
        return await self._load(db, asset_id)

    async def pending_asset_ids(self, db: AsyncSession, status: AssetStatus) -> list[str]:
        return await self._read(
            db, self._repo.list_ids_by_status(db, status, self._settings.POLL_BATCH_LIMIT)
        )

    async def find_by_request_id(self, db: AsyncSession, request_id: str) -> Asset | None:
        return await self._read(db, self._repo.get_by_request_id(db, request_id))

    async def apply_external_event(self, db: AsyncSession, event: SigningEvent) -> AssetEventResult:
        asset = await self.find_by_request_id(db, event.request_id)
        flow = asset.flow_for(event.request_id) if asset else None
        if asset is None or flow is None:
            raise NotFoundError(f"No asset linked to signing request {event.request_id}")

        updated = False
        if flow is AssetFlow.ESCROW and asset.status is AssetStatus.PENDING_ESCROW:
            updated = await self._apply_escrow(db, asset, event.request_id, event.status)
        elif flow is AssetFlow.PURCHASE and asset.purchase_stage is PurchaseStage.AWAITING_PAYMENT:
            updated = await self._apply_payment(db, asset, event.request_id, event.status)
        elif flow is AssetFlow.SETTLEMENT and asset.purchase_stage is PurchaseStage.SETTLEMENT_ISSUED:
            updated = await self._apply_settlement(db, asset, event.request_id, event.status)
        else:
            logger.debug(
                "Event for asset %s (%s) ignored in status %s",
                asset.id, flow.value, asset.status.value,
            )
        current = await self._load(db, asset.id) if updated else asset
        return AssetEventResult(asset=current, flow=flow, updated=updated)

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    async def remove_from_sale(self, db: AsyncSession, asset_id: str, seller: str) -> Asset:
        """Custodian returns the escrowed token to the seller, then delists."""
        ledger = self._ledger_client()
        async with self._lock(f"asset:{asset_id}"):
            asset = await self._load(db, asset_id)
            if asset.seller_address != seller:
                raise ForbiddenError("Only the seller can remove this asset from sale")
            if not asset.is_listed:
                raise AssetStateError(asset_id, asset.status.value, "be removed from sale")
            tx = intents.return_from_escrow(
                asset.id, asset.name, self._custodian(), seller,
                asset.token_currency, asset.token_issuer,
            )
            result = await ledger.submit_and_wait(tx)
            if not result.success:
                await self._commit(
                    db,
                    self._repo.annotate_error(
                        db, asset_id, f"Return from escrow failed: {result.result_code}"
                    ),
                )
                logger.error("Asset %s: return from escrow failed: %s", asset_id, result.result_code)
                raise LedgerSubmissionFailed(result.result_code)
            updated = await self._commit(
                db, self._repo.mark_removed_from_sale(db, asset_id, seller)
            )
        if updated is None:
            raise PersistenceConflict(f"Asset {asset_id} changed while being removed from sale")
        logger.info("Asset %s: removed from sale, returned to %s (tx %s)", asset_id, seller, result.tx_hash)
        return updated

    # ------------------------------------------------------------------
    # Token delivery
    # ------------------------------------------------------------------

    async def request_trustline(
        self,
        db: AsyncSession,
        asset_id: str,
        holder: str,
        push_target: str | None = None,
    ) -> tuple[Asset, SigningRequest]:
        """TrustSet for ``holder`` to sign; the asset itself does not change."""
        asset = await self._load(db, asset_id)
        if holder == asset.token_issuer:
            raise ValidationError("The token issuer needs no trust line")
        intent = intents.trust_set(
            asset.id, asset.name, holder, asset.token_currency, asset.token_issuer
        )
        request = await self._gateway.create(
            intent, self._settings.ASSET_REQUEST_EXPIRY_SECONDS, push_target
        )
        logger.info("Asset %s: trust line request %s for %s", asset_id, request.id, holder)
        return asset, request

    async def issue_token(self, db: AsyncSession, asset_id: str, holder: str) -> Asset:
        """Custodian issues one unit of the asset token to its owner.

        Only tokens the custodian issues itself can be delivered this way.
        Issuance is recorded once; asking again returns the asset unchanged.
        """
        ledger = self._ledger_client()
        async with self._lock(f"asset:{asset_id}"):
            asset = await self._load(db, asset_id)
            if asset.owner_address != holder:
                raise ForbiddenError("Only the current owner can receive this asset's token")
            if asset.issuance_tx_hash:
                return asset
            if asset.status is not AssetStatus.ACTIVE:
                raise AssetStateError(asset_id, asset.status.value, "have its token issued")
            custodian = self._custodian()
            if asset.token_issuer != custodian:
                raise ValidationError("Asset token is not issued by the custodian")
            await self._require_trustline(holder, asset)

            tx = intents.issue_to_holder(
                asset.id, asset.name, custodian, holder, asset.token_currency
            )
            result = await ledger.submit_and_wait(tx)
            if not result.success or not result.tx_hash:
                await self._commit(
                    db,
                    self._repo.annotate_error(
                        db, asset_id, f"Token issuance failed: {result.result_code}"
                    ),
                )
                logger.error("Asset %s: token issuance failed: %s", asset_id, result.result_code)
                raise LedgerSubmissionFailed(result.result_code)
            updated = await self._commit(
                db, self._repo.record_issuance(db, asset_id, holder, result.tx_hash)
            )
        if updated is None:
            raise PersistenceConflict(f"Asset {asset_id} changed while issuing its token")
        logger.info("Asset %s: token issued to %s (tx %s)", asset_id, holder, result.tx_hash)
        return updated
