"""003: create asset_transactions table

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE asset_transactions (
            id                  VARCHAR(32)     PRIMARY KEY,
            asset_id            VARCHAR(32)     NOT NULL REFERENCES assets (id),
            buyer_address       VARCHAR(64)     NOT NULL,
            seller_address      VARCHAR(64)     NOT NULL,
            price_drops         BIGINT          NOT NULL,
            payment_tx_hash     VARCHAR(64),
            settlement_tx_hash  VARCHAR(64),
            status              VARCHAR(20)     NOT NULL DEFAULT 'completed',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_asset_tx_price_gt_0 CHECK (price_drops > 0),
            CONSTRAINT ck_asset_tx_status     CHECK (status IN ('completed'))
        );
    """)
    op.execute("""
        CREATE INDEX idx_asset_tx_asset
        ON asset_transactions (asset_id, created_at DESC);
    """)
    op.execute("COMMENT ON TABLE asset_transactions IS 'Completed sales, one row per settled purchase';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS asset_transactions CASCADE;")
