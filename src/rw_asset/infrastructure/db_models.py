# src/rw_asset/infrastructure/db_models.py
"""SQLAlchemy ORM models for assets and asset_transactions (DDL reference only).

Alembic revisions 002-004 are the authoritative DDL source; queries use raw SQL.
"""
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from src.rw_common.database import Base


class AssetORM(Base):
    __tablename__ = "assets"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(Text)
    price_drops: Mapped[int] = mapped_column(BigInteger, nullable=False)
    token_currency: Mapped[str] = mapped_column(String(40), nullable=False)
    token_issuer: Mapped[str] = mapped_column(String(64), nullable=False)
    seller_address: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_address: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    escrow_status: Mapped[str | None] = mapped_column(String(20))
    escrow_request_id: Mapped[str | None] = mapped_column(String(64))
    purchase_request_id: Mapped[str | None] = mapped_column(String(64))
    settlement_request_id: Mapped[str | None] = mapped_column(String(64))
    purchase_stage: Mapped[str | None] = mapped_column(String(20))
    pending_buyer: Mapped[str | None] = mapped_column(String(64))
    payment_tx_hash: Mapped[str | None] = mapped_column(String(64))
    escrow_tx_hash: Mapped[str | None] = mapped_column(String(64))
    issuance_tx_hash: Mapped[str | None] = mapped_column(String(64))
    error_message: Mapped[str | None] = mapped_column(Text)
    listed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class AssetTransactionORM(Base):
    __tablename__ = "asset_transactions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    asset_id: Mapped[str] = mapped_column(ForeignKey("assets.id"), nullable=False)
    buyer_address: Mapped[str] = mapped_column(String(64), nullable=False)
    seller_address: Mapped[str] = mapped_column(String(64), nullable=False)
    price_drops: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payment_tx_hash: Mapped[str | None] = mapped_column(String(64))
    settlement_tx_hash: Mapped[str | None] = mapped_column(String(64))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="completed")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
