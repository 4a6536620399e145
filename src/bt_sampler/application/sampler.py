"""BalanceSampler — polls the economy engine and records significant changes.

For every known player, independently:
  1. fetch the current balance
  2. classify against the cached last-known value (NEW / CHANGED / SKIP)
  3. NEW or CHANGED -> BalanceLedger.record_balance
  4. cache updated only when the ledger reports a commit

A fetch or record failure for one player is logged and counted; the rest of
the batch still runs. Runs are serialized: a run requested while another is in
flight waits for it to finish.
"""

import asyncio
import logging
from dataclasses import dataclass

from src.bt_common.money import balance_to_display
from src.bt_ledger.application.service import BalanceLedger
from src.bt_sampler.domain.cache import BalanceCache
from src.bt_sampler.domain.change_detector import ChangeKind, classify_change
from src.bt_sampler.domain.source import BalanceSourceProtocol

logger = logging.getLogger(__name__)


@dataclass
class SampleReport:
    checked: int = 0
    new: int = 0
    changed: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def recorded(self) -> int:
        return self.new + self.changed


class BalanceSampler:
    def __init__(
        self,
        source: BalanceSourceProtocol,
        ledger: BalanceLedger,
        cache: BalanceCache,
    ) -> None:
        self._source = source
        self._ledger = ledger
        self._cache = cache
        self._run_lock = asyncio.Lock()

    async def run_once(self) -> SampleReport:
        async with self._run_lock:
            return await self._run_once_inner()

    async def _run_once_inner(self) -> SampleReport:
        report = SampleReport()
        identities = await self._list_identities()
        logger.debug("Starting balance check for %d players", len(identities))

        for identity in identities:
            report.checked += 1
            try:
                current = await self._source.get_balance(identity)
            except Exception:
                report.failed += 1
                logger.warning("Failed to check balance for player %s", identity, exc_info=True)
                continue

            cached = self._cache.get(identity)
            kind = classify_change(current, cached)
            if kind is ChangeKind.SKIP:
                report.skipped += 1
                continue

            if not await self._ledger.record_balance(identity, current):
                # Cache keeps the previous value so the next run retries the comparison
                report.failed += 1
                continue
            self._cache.set(identity, current)

            if kind is ChangeKind.NEW:
                report.new += 1
                logger.debug(
                    "New player detected: %s (%s)", identity, balance_to_display(current)
                )
            else:
                report.changed += 1
                logger.debug(
                    "Balance change: %s (%s -> %s)",
                    identity,
                    balance_to_display(cached),  # type: ignore[arg-type]
                    balance_to_display(current),
                )

        if report.recorded:
            logger.info(
                "Recorded %d balance changes (%d players checked, %d failed)",
                report.recorded,
                report.checked,
                report.failed,
            )
        else:
            logger.debug(
                "No balance changes detected (%d players checked, %d failed)",
                report.checked,
                report.failed,
            )
        return report

    async def snapshot_top(self, k: int) -> SampleReport:
        """Record the top-k balances unconditionally, ignoring the change rule."""
        async with self._run_lock:
            report = SampleReport()
            identities = await self._list_identities()

            fetched: list[tuple[str, float]] = []
            for identity in identities:
                report.checked += 1
                try:
                    fetched.append((identity, await self._source.get_balance(identity)))
                except Exception:
                    report.failed += 1
                    logger.warning(
                        "Failed to fetch balance for player %s", identity, exc_info=True
                    )

            fetched.sort(key=lambda item: (-item[1], item[0]))
            top = fetched[: max(0, k)]
            report.skipped = len(fetched) - len(top)

            for identity, balance in top:
                existed = self._cache.get(identity) is not None
                if not await self._ledger.record_balance(identity, balance):
                    report.failed += 1
                    continue
                self._cache.set(identity, balance)
                if existed:
                    report.changed += 1
                else:
                    report.new += 1

            logger.info(
                "Top-%d snapshot recorded %d balances (%d players checked, %d failed)",
                k,
                report.recorded,
                report.checked,
                report.failed,
            )
            return report

    async def _list_identities(self) -> list[str]:
        try:
            return list(await self._source.list_known_identities())
        except Exception:
            logger.error("Failed to list known players", exc_info=True)
            return []
