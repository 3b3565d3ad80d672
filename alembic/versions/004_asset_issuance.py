"""004: record custodian token issuance on assets

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("ALTER TABLE assets ADD COLUMN issuance_tx_hash VARCHAR(64);")
    op.execute(
        "COMMENT ON COLUMN assets.issuance_tx_hash IS "
        "'Ledger hash of the custodian issuing the token to its owner; set once';"
    )


def downgrade() -> None:
    op.execute("ALTER TABLE assets DROP COLUMN IF EXISTS issuance_tx_hash;")
