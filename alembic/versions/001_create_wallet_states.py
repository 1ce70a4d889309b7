"""001: create wallet_states table

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
        CREATE TABLE wallet_states (
            app_id      VARCHAR(64)     NOT NULL,
            user_id     VARCHAR(128)    NOT NULL,
            doc_id      VARCHAR(32)     NOT NULL DEFAULT 'current_state',
            balance     NUMERIC(38, 18) NOT NULL,
            shares      NUMERIC(38, 18) NOT NULL DEFAULT 0,
            version     BIGINT          NOT NULL DEFAULT 0,
            updated_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_wallet_states              PRIMARY KEY (app_id, user_id, doc_id),
            CONSTRAINT ck_wallet_states_balance_gte_0 CHECK (balance >= 0),
            CONSTRAINT ck_wallet_states_shares_gte_0  CHECK (shares >= 0)
        );
    """)
    op.execute(
        "COMMENT ON TABLE wallet_states IS "
        "'Paper-trading wallet per (app, user); doc_id is always current_state';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_states CASCADE;")
