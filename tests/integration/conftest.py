"""Integration-test fixtures — require a live PostgreSQL at DATABASE_URL.

Tables are created from the ORM models (same shape as the Alembic
revisions) and truncated around every test. When the database is not
reachable the whole module is skipped.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from config.settings import settings
from src.bt_common.database import Base
from src.bt_ledger.application.service import BalanceLedger
from src.bt_ledger.infrastructure import db_models  # noqa: F401  -- registers tables


@pytest_asyncio.fixture
async def pg_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(settings.DATABASE_URL, poolclass=NullPool)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            await conn.execute(text("TRUNCATE player_balances, last_balances"))
    except Exception as exc:  # noqa: BLE001
        await engine.dispose()
        pytest.skip(f"PostgreSQL not reachable: {exc!r}")
    yield engine
    async with engine.begin() as conn:
        await conn.execute(text("TRUNCATE player_balances, last_balances"))
    await engine.dispose()


@pytest_asyncio.fixture
async def pg_ledger(pg_engine: AsyncEngine) -> AsyncGenerator[BalanceLedger, None]:
    factory = async_sessionmaker(pg_engine, expire_on_commit=False)
    ledger = BalanceLedger(session_factory=factory, engine=pg_engine)
    yield ledger
