# src/rw_offer/domain/repository.py
"""OfferRepository Protocol: interface contract for the offer store."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rw_offer.domain.models import Offer, OfferFilter, OfferTransition


class OfferRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, offer: Offer) -> Offer: ...

    async def get_by_id(self, db: AsyncSession, offer_id: str) -> Offer | None: ...

    async def get_by_request_id(self, db: AsyncSession, request_id: str) -> Offer | None: ...

    async def transition_pending(
        self, db: AsyncSession, request_id: str, transition: OfferTransition
    ) -> Offer | None: ...

    async def expire_pending(self, db: AsyncSession, now: datetime) -> int: ...

    async def list_offers(
        self,
        db: AsyncSession,
        flt: OfferFilter,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Offer]: ...

    async def list_pending_request_ids(self, db: AsyncSession, limit: int) -> list[str]: ...

    async def count_by_status(self, db: AsyncSession) -> dict[str, int]: ...
