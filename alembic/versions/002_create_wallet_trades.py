"""002: create wallet_trades table

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
        CREATE TABLE wallet_trades (
            id          BIGSERIAL       PRIMARY KEY,
            app_id      VARCHAR(64)     NOT NULL,
            user_id     VARCHAR(128)    NOT NULL,
            kind        VARCHAR(8)      NOT NULL,
            symbol      VARCHAR(64)     NOT NULL,
            price       NUMERIC(38, 18) NOT NULL,
            shares      NUMERIC(38, 18) NOT NULL,
            value       NUMERIC(38, 18) NOT NULL,
            version     BIGINT          NOT NULL,
            executed_at BIGINT          NOT NULL,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wallet_trades_kind CHECK (kind IN ('BUY', 'SELL'))
        );
    """)
    op.execute(
        "CREATE INDEX idx_wallet_trades_user ON wallet_trades (app_id, user_id, id);"
    )
    op.execute(
        "COMMENT ON TABLE wallet_trades IS "
        "'Append-only log of committed wallet trades';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_trades CASCADE;")
