"""002: create last_balances table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE last_balances (
            player_uuid     VARCHAR(36)         PRIMARY KEY,
            balance         DOUBLE PRECISION    NOT NULL
        );
    """)
    op.execute(
        "COMMENT ON TABLE last_balances IS "
        "'Last recorded balance per player — one row each, never purged';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS last_balances CASCADE;")
