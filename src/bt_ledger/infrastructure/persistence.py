"""BalanceRepository — concrete implementation of BalanceRepositoryProtocol.

Plain parameterised SQL over two tables:
  player_balances — append-only history, one row per significant change
  last_balances   — one row per player, overwritten on every change

Transaction ownership: the CALLER (BalanceLedger) opens the session and
commits or rolls back. Nothing here commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bt_ledger.domain.models import BalanceSample, LastKnownBalance, TopBalance

# ---------------------------------------------------------------------------
# SQL: writes
# ---------------------------------------------------------------------------

_INSERT_SAMPLE_SQL = text("""
    INSERT INTO player_balances (player_uuid, timestamp, balance)
    VALUES (:player_uuid, :timestamp, :balance)
""")

_UPSERT_LAST_SQL = text("""
    INSERT INTO last_balances (player_uuid, balance)
    VALUES (:player_uuid, :balance)
    ON CONFLICT (player_uuid) DO UPDATE
        SET balance = EXCLUDED.balance
""")

_DELETE_BEFORE_SQL = text("""
    DELETE FROM player_balances
    WHERE timestamp < :cutoff
""")

# ---------------------------------------------------------------------------
# SQL: reads
# ---------------------------------------------------------------------------

_LIST_LAST_SQL = text("""
    SELECT player_uuid, balance
    FROM last_balances
""")

_LIST_HISTORY_SQL = text("""
    SELECT player_uuid, timestamp, balance
    FROM player_balances
    WHERE player_uuid = :player_uuid
    ORDER BY timestamp DESC, id DESC
    LIMIT :limit
""")

# Latest history row per player, richest first; ties broken by uuid.
_LIST_TOP_SQL = text("""
    SELECT player_uuid, balance
    FROM (
        SELECT player_uuid, balance,
               ROW_NUMBER() OVER (
                   PARTITION BY player_uuid
                   ORDER BY timestamp DESC, id DESC
               ) AS rn
        FROM player_balances
    ) latest
    WHERE rn = 1
    ORDER BY balance DESC, player_uuid ASC
    LIMIT :limit
""")


def _row_to_sample(row: object) -> BalanceSample:
    return BalanceSample(
        identity=row.player_uuid,  # type: ignore[attr-defined]
        timestamp=int(row.timestamp),  # type: ignore[attr-defined]
        balance=float(row.balance),  # type: ignore[attr-defined]
    )


def _row_to_last(row: object) -> LastKnownBalance:
    return LastKnownBalance(
        identity=row.player_uuid,  # type: ignore[attr-defined]
        balance=float(row.balance),  # type: ignore[attr-defined]
    )


def _row_to_top(row: object) -> TopBalance:
    return TopBalance(
        identity=row.player_uuid,  # type: ignore[attr-defined]
        balance=float(row.balance),  # type: ignore[attr-defined]
    )


class BalanceRepository:
    """Concrete repository — one SQL statement per method."""

    async def insert_sample(
        self, db: AsyncSession, identity: str, timestamp: int, balance: float
    ) -> None:
        await db.execute(
            _INSERT_SAMPLE_SQL,
            {"player_uuid": identity, "timestamp": timestamp, "balance": balance},
        )

    async def upsert_last_balance(
        self, db: AsyncSession, identity: str, balance: float
    ) -> None:
        await db.execute(_UPSERT_LAST_SQL, {"player_uuid": identity, "balance": balance})

    async def list_last_balances(self, db: AsyncSession) -> list[LastKnownBalance]:
        result = await db.execute(_LIST_LAST_SQL)
        return [_row_to_last(row) for row in result.fetchall()]

    async def list_history(
        self, db: AsyncSession, identity: str, limit: int
    ) -> list[BalanceSample]:
        result = await db.execute(
            _LIST_HISTORY_SQL, {"player_uuid": identity, "limit": limit}
        )
        return [_row_to_sample(row) for row in result.fetchall()]

    async def list_top_balances(self, db: AsyncSession, limit: int) -> list[TopBalance]:
        result = await db.execute(_LIST_TOP_SQL, {"limit": limit})
        return [_row_to_top(row) for row in result.fetchall()]

    async def delete_history_before(self, db: AsyncSession, cutoff: int) -> int:
        result = await db.execute(_DELETE_BEFORE_SQL, {"cutoff": cutoff})
        return result.rowcount or 0
