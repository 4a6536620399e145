"""Unit tests for BalanceLedger using mock sessions and repositories."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.bt_common.datetime_utils import MILLIS_PER_DAY, now_millis
from src.bt_common.errors import StorageConnectionError
from src.bt_ledger.application.service import HISTORY_RAW_LIMIT, BalanceLedger
from src.bt_ledger.domain.models import BalanceSample, LastKnownBalance, TopBalance
from tests.conftest import make_session_factory


class StagingSession:
    """Session double that only applies staged writes on commit."""

    def __init__(self, store: "FakeStore") -> None:
        self.store = store
        self.pending: list[tuple[str, tuple]] = []
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        for op, args in self.pending:
            if op == "history":
                self.store.history.append(args)
            else:
                identity, balance = args
                self.store.last[identity] = balance
        self.pending.clear()
        self.committed = True

    async def rollback(self) -> None:
        self.pending.clear()
        self.rolled_back = True


class FakeStore:
    def __init__(self) -> None:
        self.history: list[tuple[str, int, float]] = []
        self.last: dict[str, float] = {}


class StagingRepo:
    def __init__(self, fail_upsert: bool = False) -> None:
        self.fail_upsert = fail_upsert

    async def insert_sample(self, db, identity, timestamp, balance):  # type: ignore[no-untyped-def]
        db.pending.append(("history", (identity, timestamp, balance)))

    async def upsert_last_balance(self, db, identity, balance):  # type: ignore[no-untyped-def]
        if self.fail_upsert:
            raise RuntimeError("deadlock detected")
        db.pending.append(("last", (identity, balance)))


def _ledger(
    session: object, repo: object, timeout: float = 5.0
) -> tuple[BalanceLedger, MagicMock, AsyncMock]:
    factory = make_session_factory(session)
    engine = AsyncMock()
    ledger = BalanceLedger(
        session_factory=factory, engine=engine, repo=repo, timeout_seconds=timeout  # type: ignore[arg-type]
    )
    return ledger, factory, engine


class TestRecordBalance:
    async def test_commits_history_and_last_known_together(self) -> None:
        store = FakeStore()
        session = StagingSession(store)
        ledger, _, _ = _ledger(session, StagingRepo())

        ok = await ledger.record_balance("p-1", 250.0)

        assert ok is True
        assert session.committed is True
        assert [(h[0], h[2]) for h in store.history] == [("p-1", 250.0)]
        assert store.last == {"p-1": 250.0}

    async def test_upsert_failure_rolls_back_history_insert(self) -> None:
        store = FakeStore()
        store.history.append(("p-1", 1, 100.0))
        store.last["p-1"] = 100.0
        session = StagingSession(store)
        ledger, _, _ = _ledger(session, StagingRepo(fail_upsert=True))

        ok = await ledger.record_balance("p-1", 300.0)

        assert ok is False
        assert session.rolled_back is True
        assert session.committed is False
        assert len([h for h in store.history if h[0] == "p-1"]) == 1
        assert store.last == {"p-1": 100.0}

    async def test_uses_current_epoch_millis(self) -> None:
        repo = AsyncMock()
        session = AsyncMock()
        ledger, _, _ = _ledger(session, repo)
        before = now_millis()

        await ledger.record_balance("p-1", 5.0)

        _, identity, timestamp, balance = repo.insert_sample.call_args.args
        assert identity == "p-1"
        assert balance == 5.0
        assert before <= timestamp <= now_millis()
        repo.upsert_last_balance.assert_awaited_once_with(session, "p-1", 5.0)
        session.commit.assert_awaited_once()

    async def test_commit_failure_returns_false(self) -> None:
        repo = AsyncMock()
        session = AsyncMock()
        session.commit.side_effect = RuntimeError("connection reset")
        ledger, _, _ = _ledger(session, repo)

        assert await ledger.record_balance("p-1", 5.0) is False
        session.rollback.assert_awaited_once()

    async def test_timeout_returns_false(self) -> None:
        repo = AsyncMock()

        async def _hang(*args: object) -> None:
            await asyncio.sleep(10)

        repo.insert_sample.side_effect = _hang
        ledger, _, _ = _ledger(AsyncMock(), repo, timeout=0.01)

        assert await ledger.record_balance("p-1", 5.0) is False
        repo.upsert_last_balance.assert_not_awaited()

    async def test_slow_commit_is_not_cancelled_by_timeout(self) -> None:
        repo = AsyncMock()
        session = AsyncMock()

        async def _slow_commit() -> None:
            await asyncio.sleep(0.05)

        session.commit.side_effect = _slow_commit
        ledger, _, _ = _ledger(session, repo, timeout=0.01)

        assert await ledger.record_balance("p-1", 5.0) is True
        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()

    async def test_each_call_gets_its_own_session(self) -> None:
        ledger, factory, _ = _ledger(AsyncMock(), AsyncMock())

        await ledger.record_balance("p-1", 1.0)
        await ledger.record_balance("p-2", 2.0)

        assert factory.call_count == 2


class TestGetLastBalances:
    async def test_returns_mapping(self) -> None:
        repo = AsyncMock()
        repo.list_last_balances.return_value = [
            LastKnownBalance("a", 300.0),
            LastKnownBalance("b", 500.0),
        ]
        ledger, _, _ = _ledger(AsyncMock(), repo)

        assert await ledger.get_last_balances() == {"a": 300.0, "b": 500.0}

    async def test_empty_table(self) -> None:
        repo = AsyncMock()
        repo.list_last_balances.return_value = []
        ledger, _, _ = _ledger(AsyncMock(), repo)

        assert await ledger.get_last_balances() == {}

    async def test_query_failure_returns_empty(self) -> None:
        repo = AsyncMock()
        repo.list_last_balances.side_effect = RuntimeError("relation does not exist")
        ledger, _, _ = _ledger(AsyncMock(), repo)

        assert await ledger.get_last_balances() == {}


class TestGetBalanceHistory:
    async def test_passes_limit_through(self) -> None:
        repo = AsyncMock()
        rows = [BalanceSample("p-1", 2000, 20.0), BalanceSample("p-1", 1000, 10.0)]
        repo.list_history.return_value = rows
        session = AsyncMock()
        ledger, _, _ = _ledger(session, repo)

        result = await ledger.get_balance_history("p-1")

        assert result == rows
        repo.list_history.assert_awaited_once_with(session, "p-1", HISTORY_RAW_LIMIT)

    async def test_limit_is_capped_at_100(self) -> None:
        repo = AsyncMock()
        repo.list_history.return_value = []
        session = AsyncMock()
        ledger, _, _ = _ledger(session, repo)

        await ledger.get_balance_history("p-1", raw_limit=5000)

        repo.list_history.assert_awaited_once_with(session, "p-1", 100)

    async def test_non_positive_limit_skips_query(self) -> None:
        repo = AsyncMock()
        ledger, _, _ = _ledger(AsyncMock(), repo)

        assert await ledger.get_balance_history("p-1", raw_limit=0) == []
        repo.list_history.assert_not_awaited()

    async def test_query_failure_returns_empty(self) -> None:
        repo = AsyncMock()
        repo.list_history.side_effect = RuntimeError("boom")
        ledger, _, _ = _ledger(AsyncMock(), repo)

        assert await ledger.get_balance_history("p-1") == []


class TestGetTopBalances:
    async def test_returns_rows(self) -> None:
        repo = AsyncMock()
        repo.list_top_balances.return_value = [TopBalance("B", 500.0), TopBalance("A", 300.0)]
        ledger, _, _ = _ledger(AsyncMock(), repo)

        result = await ledger.get_top_balances(2)

        assert result == [TopBalance("B", 500.0), TopBalance("A", 300.0)]

    async def test_query_failure_returns_empty(self) -> None:
        repo = AsyncMock()
        repo.list_top_balances.side_effect = RuntimeError("boom")
        ledger, _, _ = _ledger(AsyncMock(), repo)

        assert await ledger.get_top_balances(10) == []


class TestPurgeOldRecords:
    async def test_deletes_before_cutoff_and_commits(self) -> None:
        repo = AsyncMock()
        repo.delete_history_before.return_value = 7
        session = AsyncMock()
        ledger, _, _ = _ledger(session, repo)
        expected_cutoff = now_millis() - 60 * MILLIS_PER_DAY

        deleted = await ledger.purge_old_records(60)

        assert deleted == 7
        _, cutoff = repo.delete_history_before.call_args.args
        assert abs(cutoff - expected_cutoff) < 5000
        session.commit.assert_awaited_once()
        repo.upsert_last_balance.assert_not_awaited()

    async def test_failure_rolls_back_and_returns_zero(self) -> None:
        repo = AsyncMock()
        repo.delete_history_before.side_effect = RuntimeError("lock timeout")
        session = AsyncMock()
        ledger, _, _ = _ledger(session, repo)

        assert await ledger.purge_old_records(60) == 0
        session.rollback.assert_awaited_once()


class TestLifecycle:
    async def test_close_is_idempotent(self) -> None:
        ledger, _, engine = _ledger(AsyncMock(), AsyncMock())

        await ledger.close()
        await ledger.close()

        engine.dispose.assert_awaited_once()

    async def test_ping_ok(self) -> None:
        session = AsyncMock()
        ledger, _, _ = _ledger(session, AsyncMock())

        await ledger.ping()

        session.execute.assert_awaited_once()

    async def test_ping_failure_raises_connection_error(self) -> None:
        session = AsyncMock()
        session.execute.side_effect = OSError("Connection refused")
        ledger, _, _ = _ledger(session, AsyncMock())

        with pytest.raises(StorageConnectionError) as exc_info:
            await ledger.ping()
        assert exc_info.value.code == 1001
        assert "Connection refused" in exc_info.value.message
