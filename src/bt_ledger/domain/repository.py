"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bt_ledger.domain.models import BalanceSample, LastKnownBalance, TopBalance


class BalanceRepositoryProtocol(Protocol):
    async def insert_sample(
        self, db: AsyncSession, identity: str, timestamp: int, balance: float
    ) -> None: ...

    async def upsert_last_balance(
        self, db: AsyncSession, identity: str, balance: float
    ) -> None: ...

    async def list_last_balances(self, db: AsyncSession) -> list[LastKnownBalance]: ...

    async def list_history(
        self, db: AsyncSession, identity: str, limit: int
    ) -> list[BalanceSample]: ...

    async def list_top_balances(self, db: AsyncSession, limit: int) -> list[TopBalance]: ...

    async def delete_history_before(self, db: AsyncSession, cutoff: int) -> int: ...
