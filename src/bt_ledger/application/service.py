"""BalanceLedger — durable history + last-known store.

Every public operation is a total function: it checks out its own session from
the pool (one unit of work per call), bounds it by STORAGE_TIMEOUT_SECONDS and
turns any storage fault into a log record plus a safe default. Only `ping`
raises, because the service cannot run without a store.

record_balance writes the history row and the last-known upsert in a single
transaction; either both land or neither does.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from config.settings import settings
from src.bt_common.database import async_session_factory
from src.bt_common.database import engine as default_engine
from src.bt_common.datetime_utils import now_millis, retention_cutoff_millis
from src.bt_common.errors import (
    LedgerQueryError,
    LedgerTransactionError,
    StorageConnectionError,
)
from src.bt_ledger.domain.models import BalanceSample, TopBalance
from src.bt_ledger.domain.repository import BalanceRepositoryProtocol
from src.bt_ledger.infrastructure.persistence import BalanceRepository

logger = logging.getLogger(__name__)

HISTORY_RAW_LIMIT = 100

T = TypeVar("T")


class BalanceLedger:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        engine: AsyncEngine | None = None,
        repo: BalanceRepositoryProtocol | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._session_factory = session_factory or async_session_factory
        self._engine = engine or default_engine
        self._repo: BalanceRepositoryProtocol = repo or BalanceRepository()
        self._timeout = (
            timeout_seconds if timeout_seconds is not None else settings.STORAGE_TIMEOUT_SECONDS
        )
        self._closed = False

    async def ping(self) -> None:
        """Verify the store is reachable. Raises StorageConnectionError."""
        try:
            async with self._session_factory() as db:
                await asyncio.wait_for(db.execute(text("SELECT 1")), self._timeout)
        except Exception as exc:
            raise StorageConnectionError(str(exc) or type(exc).__name__) from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def record_balance(self, identity: str, balance: float) -> bool:
        """Append a history row and upsert last-known atomically.

        Returns True only when the transaction committed. STORAGE_TIMEOUT_SECONDS
        bounds the two statements, not the COMMIT: cancelling an in-flight commit
        could leave the rows committed while the caller sees False and records a
        duplicate next run. The commit is bounded by the driver's command_timeout.
        """
        timestamp = now_millis()
        try:
            await self._record(identity, timestamp, balance)
        except Exception as exc:
            err = LedgerTransactionError(identity, str(exc) or type(exc).__name__)
            logger.error(err.message, exc_info=exc)
            return False
        return True

    async def _record(self, identity: str, timestamp: int, balance: float) -> None:
        async with self._session_factory() as db:
            try:
                await asyncio.wait_for(
                    self._write(db, identity, timestamp, balance), self._timeout
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    async def _write(
        self, db: AsyncSession, identity: str, timestamp: int, balance: float
    ) -> None:
        await self._repo.insert_sample(db, identity, timestamp, balance)
        await self._repo.upsert_last_balance(db, identity, balance)

    async def purge_old_records(self, retention_days: int) -> int:
        """Delete history rows older than the window. Last-known rows are kept."""
        cutoff = retention_cutoff_millis(retention_days)

        async def _purge(db: AsyncSession) -> int:
            try:
                deleted = await self._repo.delete_history_before(db, cutoff)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
            logger.info(
                "Purged %d old balance records (older than %d days)", deleted, retention_days
            )
            return deleted

        return await self._run("purge_old_records", _purge, 0)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_last_balances(self) -> dict[str, float]:
        async def _load(db: AsyncSession) -> dict[str, float]:
            rows = await self._repo.list_last_balances(db)
            return {row.identity: row.balance for row in rows}

        return await self._run("get_last_balances", _load, {})

    async def get_balance_history(
        self, identity: str, raw_limit: int = HISTORY_RAW_LIMIT
    ) -> list[BalanceSample]:
        """Raw history, newest first, at most HISTORY_RAW_LIMIT rows."""
        limit = max(0, min(raw_limit, HISTORY_RAW_LIMIT))
        if limit == 0:
            return []

        async def _load(db: AsyncSession) -> list[BalanceSample]:
            return await self._repo.list_history(db, identity, limit)

        return await self._run("get_balance_history", _load, [])

    async def get_top_balances(self, limit: int) -> list[TopBalance]:
        if limit <= 0:
            return []

        async def _load(db: AsyncSession) -> list[TopBalance]:
            return await self._repo.list_top_balances(db, limit)

        return await self._run("get_top_balances", _load, [])

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._engine.dispose()
        except Exception:
            logger.exception("Failed to close database connection pool")

    async def _run(
        self,
        operation: str,
        work: Callable[[AsyncSession], Awaitable[T]],
        default: T,
    ) -> T:
        async def _in_session() -> T:
            async with self._session_factory() as db:
                return await work(db)

        try:
            return await asyncio.wait_for(_in_session(), self._timeout)
        except Exception as exc:
            err = LedgerQueryError(operation, str(exc) or type(exc).__name__)
            logger.error(err.message, exc_info=exc)
            return default
