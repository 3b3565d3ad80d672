"""001: create updated_at trigger function and offers table

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE offers (
            id                  VARCHAR(32)     PRIMARY KEY,
            asset_unit_id       VARCHAR(128)    NOT NULL,
            kind                VARCHAR(10)     NOT NULL,
            initiator           VARCHAR(64)     NOT NULL,
            owner_address       VARCHAR(64),
            amount              BIGINT          NOT NULL,
            signing_request_id  VARCHAR(64)     NOT NULL,
            request_created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            request_expires_at  TIMESTAMPTZ     NOT NULL,
            link                TEXT,
            pushed              BOOLEAN         NOT NULL DEFAULT FALSE,
            status              VARCHAR(20)     NOT NULL DEFAULT 'pending',
            tx_hash             VARCHAR(64),
            signed_at           TIMESTAMPTZ,
            completed_at        TIMESTAMPTZ,
            error_message       TEXT,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_offers_signing_request_id UNIQUE (signing_request_id),
            CONSTRAINT ck_offers_kind               CHECK (kind IN ('sell', 'buy')),
            CONSTRAINT ck_offers_amount_gte_0       CHECK (amount >= 0),
            CONSTRAINT ck_offers_buy_amount_gt_0    CHECK (kind <> 'buy' OR amount > 0),
            CONSTRAINT ck_offers_status             CHECK (
                status IN ('pending', 'completed', 'rejected', 'expired', 'failed')
            )
        );
    """)
    op.execute("CREATE INDEX idx_offers_initiator ON offers (initiator, created_at DESC, id DESC);")
    op.execute("CREATE INDEX idx_offers_owner ON offers (owner_address, created_at DESC, id DESC);")
    op.execute("CREATE INDEX idx_offers_asset_unit ON offers (asset_unit_id, created_at DESC);")
    op.execute("""
        CREATE INDEX idx_offers_pending_expiry
        ON offers (request_expires_at)
        WHERE status = 'pending';
    """)
    op.execute("""
        CREATE TRIGGER trg_offers_updated_at
            BEFORE UPDATE ON offers
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE offers IS 'NFT offers awaiting or past wallet signature, keyed by signing request';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS offers CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
