"""Time-driven reconciliation: PollSweeper and its background PollScheduler.

A sweep is the correctness backstop for lost webhooks:
  1. bulk-expire pending offers past their stored expiry
  2. check_and_sync every pending offer
  3. check_escrow every pending_escrow asset
  4. check_purchase every pending_purchase asset (resumes interrupted sagas)

Items run one at a time with a small delay between them. A failure on one
item, or on listing one phase, is rolled back and recorded in the report;
the rest of the sweep still runs.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.settings import Settings
from src.rw_asset.application.orchestrator import AssetLifecycleOrchestrator
from src.rw_common.enums import AssetStatus
from src.rw_common.errors import AppError
from src.rw_offer.application.service import OfferReconciliationService
from src.rw_reconcile.application.schemas import ItemResult, SweepReport

logger = logging.getLogger(__name__)


class PollSweeper:
    def __init__(
        self,
        settings: Settings,
        offers: OfferReconciliationService,
        assets: AssetLifecycleOrchestrator,
    ) -> None:
        self._delay = settings.POLL_ITEM_DELAY_SECONDS
        self._offers = offers
        self._assets = assets
        self._running = asyncio.Lock()

    async def run(self, db: AsyncSession) -> SweepReport:
        async with self._running:
            return await self._sweep(db)

    async def _sweep(self, db: AsyncSession) -> SweepReport:
        report = SweepReport()
        try:
            report.expired = await self._offers.sweep_expired(db)
        except AppError as exc:
            logger.error("Offer expiry sweep failed: %s", exc.message)
            report.per_item_result.append(
                ItemResult(entity="offer", key="expired_offers", ok=False, error=exc.message)
            )

        offer_ids = await self._enumerate(
            db, report, "offer", "pending_offers", self._offers.list_pending_request_ids(db)
        )
        escrow_ids = await self._enumerate(
            db, report, "asset", "pending_escrow",
            self._assets.pending_asset_ids(db, AssetStatus.PENDING_ESCROW),
        )
        purchase_ids = await self._enumerate(
            db, report, "asset", "pending_purchase",
            self._assets.pending_asset_ids(db, AssetStatus.PENDING_PURCHASE),
        )

        work: list[tuple[str, str, Callable[[], Awaitable[ItemResult]]]] = []
        for request_id in offer_ids:
            work.append(("offer", request_id, lambda rid=request_id: self._offer_item(db, rid)))
        for asset_id in escrow_ids:
            work.append(("asset", asset_id, lambda aid=asset_id: self._escrow_item(db, aid)))
        for asset_id in purchase_ids:
            work.append(("asset", asset_id, lambda aid=asset_id: self._purchase_item(db, aid)))

        for index, (entity, key, step) in enumerate(work):
            if index and self._delay > 0:
                await asyncio.sleep(self._delay)
            item = await self._isolated(db, entity, key, step)
            report.per_item_result.append(item)

        report.scanned = len(work)
        report.transitioned = report.expired + sum(1 for r in report.per_item_result if r.transitioned)
        logger.info(
            "Poll sweep: scanned=%d transitioned=%d expired=%d failed=%d",
            report.scanned, report.transitioned, report.expired,
            sum(1 for r in report.per_item_result if not r.ok),
        )
        return report

    async def _enumerate(
        self,
        db: AsyncSession,
        report: SweepReport,
        entity: str,
        phase: str,
        listing: Awaitable[list[str]],
    ) -> list[str]:
        """Ids for one sweep phase; a failed listing skips only that phase."""
        try:
            return await listing
        except AppError as exc:
            await db.rollback()
            logger.error("Sweep could not list %s: %s", phase, exc.message)
            report.per_item_result.append(
                ItemResult(entity=entity, key=phase, ok=False, error=exc.message)
            )
            return []

    async def _isolated(
        self,
        db: AsyncSession,
        entity: str,
        key: str,
        step: Callable[[], Awaitable[ItemResult]],
    ) -> ItemResult:
        try:
            return await step()
        except AppError as exc:
            await db.rollback()
            logger.warning("Sweep item %s %s failed: %s", entity, key, exc.message)
            return ItemResult(entity=entity, key=key, ok=False, error=exc.message)
        except Exception as exc:
            await db.rollback()
            logger.exception("Sweep item %s %s raised", entity, key)
            return ItemResult(entity=entity, key=key, ok=False, error=exc.__class__.__name__)

    async def _offer_item(self, db: AsyncSession, request_id: str) -> ItemResult:
        result = await self._offers.check_and_sync(db, request_id)
        return ItemResult(
            entity="offer",
            key=request_id,
            ok=True,
            transitioned=result.updated,
            status=result.offer.status.value,
        )

    async def _escrow_item(self, db: AsyncSession, asset_id: str) -> ItemResult:
        asset = await self._assets.get(db, asset_id)
        moved = await self._assets.check_escrow(db, asset)
        return await self._asset_result(db, asset_id, moved)

    async def _purchase_item(self, db: AsyncSession, asset_id: str) -> ItemResult:
        asset = await self._assets.get(db, asset_id)
        moved = await self._assets.check_purchase(db, asset)
        return await self._asset_result(db, asset_id, moved)

    async def _asset_result(self, db: AsyncSession, asset_id: str, moved: bool) -> ItemResult:
        current = await self._assets.get(db, asset_id)
        status = current.status.value
        if current.purchase_stage:
            status = f"{status}/{current.purchase_stage.value}"
        return ItemResult(entity="asset", key=asset_id, ok=True, transitioned=moved, status=status)


class PollScheduler:
    """Runs PollSweeper.run every interval on its own session until stopped."""

    def __init__(
        self,
        sweeper: PollSweeper,
        session_factory: async_sessionmaker[AsyncSession],
        interval_seconds: float,
    ) -> None:
        self._sweeper = sweeper
        self._session_factory = session_factory
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="poll-sweeper")
        logger.info("Poll scheduler started (every %ss)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Poll scheduler stopped")

    async def tick(self) -> SweepReport:
        async with self._session_factory() as db:
            return await self._sweeper.run(db)

    async def _loop(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception:
                logger.exception("Poll sweep tick failed")
            await asyncio.sleep(self._interval)
