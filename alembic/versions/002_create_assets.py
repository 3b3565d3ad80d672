"""002: create assets table

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE assets (
            id                      VARCHAR(32)     PRIMARY KEY,
            name                    VARCHAR(200)    NOT NULL,
            description             TEXT,
            image_url               TEXT,
            price_drops             BIGINT          NOT NULL,
            token_currency          VARCHAR(40)     NOT NULL,
            token_issuer            VARCHAR(64)     NOT NULL,
            seller_address          VARCHAR(64)     NOT NULL,
            owner_address           VARCHAR(64)     NOT NULL,
            status                  VARCHAR(20)     NOT NULL DEFAULT 'active',
            escrow_status           VARCHAR(20),
            escrow_request_id       VARCHAR(64),
            purchase_request_id     VARCHAR(64),
            settlement_request_id   VARCHAR(64),
            purchase_stage          VARCHAR(20),
            pending_buyer           VARCHAR(64),
            payment_tx_hash         VARCHAR(64),
            escrow_tx_hash          VARCHAR(64),
            error_message           TEXT,
            listed_at               TIMESTAMPTZ,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_assets_price_gt_0         CHECK (price_drops > 0),
            CONSTRAINT ck_assets_status             CHECK (
                status IN ('active', 'pending_escrow', 'for_sale', 'pending_purchase', 'sold')
            ),
            CONSTRAINT ck_assets_escrow_status      CHECK (
                escrow_status IS NULL OR escrow_status = 'escrowed'
            ),
            CONSTRAINT ck_assets_purchase_stage     CHECK (
                purchase_stage IS NULL OR purchase_stage IN (
                    'awaiting_payment', 'payment_confirmed', 'settlement_issued', 'settlement_failed'
                )
            ),
            CONSTRAINT ck_assets_pending_buyer      CHECK (
                (status = 'pending_purchase') = (pending_buyer IS NOT NULL)
            ),
            CONSTRAINT ck_assets_stage_consistency  CHECK (
                (status = 'pending_purchase') = (purchase_stage IS NOT NULL)
            ),
            CONSTRAINT ck_assets_escrow_request     CHECK (
                status <> 'pending_escrow' OR escrow_request_id IS NOT NULL
            )
        );
    """)
    op.execute("CREATE INDEX idx_assets_owner ON assets (owner_address, created_at DESC, id DESC);")
    op.execute("CREATE INDEX idx_assets_status ON assets (status, created_at DESC, id DESC);")
    op.execute("CREATE INDEX idx_assets_escrow_request ON assets (escrow_request_id);")
    op.execute("CREATE INDEX idx_assets_purchase_request ON assets (purchase_request_id);")
    op.execute("CREATE INDEX idx_assets_settlement_request ON assets (settlement_request_id);")
    op.execute("""
        CREATE TRIGGER trg_assets_updated_at
            BEFORE UPDATE ON assets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE assets IS 'Tokenised assets and their escrow/purchase saga state';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS assets CASCADE;")
