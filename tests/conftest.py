"""Shared test fixtures and fakes."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.bt_sampler.domain.cache import BalanceCache


def make_session_factory(session: object) -> MagicMock:
    """async_sessionmaker stand-in: `async with factory() as db` yields `session`."""
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False
    return factory


class FakeBalanceSource:
    """In-memory economy engine; an Exception value makes get_balance raise it."""

    def __init__(self, balances: dict[str, float | Exception] | None = None) -> None:
        self.balances: dict[str, float | Exception] = dict(balances or {})
        self.names: dict[str, str] = {}
        self.calls: list[str] = []

    async def list_known_identities(self) -> list[str]:
        return list(self.balances)

    async def get_balance(self, identity: str) -> float:
        self.calls.append(identity)
        value = self.balances[identity]
        if isinstance(value, Exception):
            raise value
        return value

    async def resolve_name(self, identity: str) -> str | None:
        return self.names.get(identity)

    async def find_identity(self, name: str) -> str | None:
        for identity, player_name in self.names.items():
            if player_name.lower() == name.lower():
                return identity
        return None


@pytest.fixture
def cache() -> BalanceCache:
    return BalanceCache()


@pytest.fixture
def ledger() -> AsyncMock:
    """BalanceLedger stand-in; record_balance commits by default."""
    mock = AsyncMock()
    mock.record_balance.return_value = True
    mock.get_last_balances.return_value = {}
    mock.get_balance_history.return_value = []
    mock.get_top_balances.return_value = []
    mock.purge_old_records.return_value = 0
    return mock
