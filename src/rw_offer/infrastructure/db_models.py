# src/rw_offer/infrastructure/db_models.py
"""SQLAlchemy ORM model for the offers table (DDL reference only; queries use raw SQL).

Alembic revision 001_create_offers.py is the authoritative DDL source.
"""
from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from src.rw_common.database import Base


class OfferORM(Base):
    __tablename__ = "offers"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    asset_unit_id: Mapped[str] = mapped_column(String(128), nullable=False)
    kind: Mapped[str] = mapped_column(String(10), nullable=False)
    initiator: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_address: Mapped[str | None] = mapped_column(String(64))
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    signing_request_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    request_created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    request_expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    link: Mapped[str | None] = mapped_column(Text)
    pushed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    tx_hash: Mapped[str | None] = mapped_column(String(64))
    signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    error_message: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
