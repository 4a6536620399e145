"""001: create player_balances table

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE player_balances (
            id              BIGSERIAL           PRIMARY KEY,
            player_uuid     VARCHAR(36)         NOT NULL,
            timestamp       BIGINT              NOT NULL,
            balance         DOUBLE PRECISION    NOT NULL
        );
    """)
    op.execute("CREATE INDEX idx_player_uuid ON player_balances (player_uuid);")
    op.execute("CREATE INDEX idx_timestamp ON player_balances (timestamp);")
    op.execute(
        "COMMENT ON TABLE player_balances IS "
        "'Balance history — append-only, rows only removed by retention purge; timestamp in epoch millis';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS player_balances CASCADE;")
