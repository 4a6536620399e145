"""SQLAlchemy ORM models for bt_ledger.

These map to existing tables created by Alembic migrations.
DO NOT add/remove columns here without a corresponding migration.
"""

from sqlalchemy import BigInteger, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from src.bt_common.database import Base


class PlayerBalanceORM(Base):
    __tablename__ = "player_balances"
    __table_args__ = (
        Index("idx_player_uuid", "player_uuid"),
        Index("idx_timestamp", "timestamp"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    player_uuid: Mapped[str] = mapped_column(String(36), nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)  # epoch millis
    balance: Mapped[float] = mapped_column(Float(precision=53), nullable=False)
    # NOTE: No updated_at, player_balances is append-only


class LastBalanceORM(Base):
    __tablename__ = "last_balances"

    player_uuid: Mapped[str] = mapped_column(String(36), primary_key=True)
    balance: Mapped[float] = mapped_column(Float(precision=53), nullable=False)
