"""TrackerRuntime — wires ledger, cache, sampler, purger and queries together.

Startup order:
  1. ping the store (StorageConnectionError is fatal, the app refuses to start)
  2. warm the cache from last_balances
  3. start the periodic tasks (sample, purge, optional top-N snapshot)
Shutdown stops the tasks first, then closes the economy client and the ledger.
"""

import logging
from dataclasses import dataclass, field

from config.settings import Settings, settings
from src.bt_common.scheduler import PeriodicTask
from src.bt_ledger.application.service import BalanceLedger
from src.bt_query.application.service import BalanceQueryService
from src.bt_sampler.application.purger import RetentionPurger
from src.bt_sampler.application.sampler import BalanceSampler
from src.bt_sampler.domain.cache import BalanceCache
from src.bt_sampler.infrastructure.economy_client import EconomyClient

logger = logging.getLogger(__name__)


@dataclass
class TrackerRuntime:
    ledger: BalanceLedger
    economy: EconomyClient
    config: Settings = field(default_factory=lambda: settings)
    cache: BalanceCache = field(default_factory=BalanceCache)
    tasks: list[PeriodicTask] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.sampler = BalanceSampler(self.economy, self.ledger, self.cache)
        self.purger = RetentionPurger(
            self.ledger, self.config.RETENTION_DAYS, self.config.PURGE_HOUR_UTC
        )
        self.query_service = BalanceQueryService(self.ledger, self.economy, self.cache)

    async def start(self) -> None:
        await self.ledger.ping()
        loaded = self.cache.load(await self.ledger.get_last_balances())
        logger.info("Loaded %d player balances from database", loaded)

        self.tasks = [
            PeriodicTask(
                "balance-check",
                self.sampler.run_once,
                self.config.SAMPLE_INTERVAL_SECONDS,
            ),
            PeriodicTask(
                "retention-purge",
                self.purger.run_once,
                self.config.PURGE_INTERVAL_SECONDS,
                initial_delay_seconds=self.purger.initial_delay_seconds(),
            ),
        ]
        if self.config.TOP_SNAPSHOT_ENABLED:
            top_n = self.config.TOP_N_COUNT

            async def _snapshot() -> None:
                await self.sampler.snapshot_top(top_n)

            self.tasks.append(
                PeriodicTask(
                    "top-snapshot", _snapshot, self.config.TOP_SNAPSHOT_INTERVAL_SECONDS
                )
            )
        for task in self.tasks:
            task.start()

    async def stop(self) -> None:
        for task in self.tasks:
            await task.stop()
        self.tasks = []
        await self.economy.aclose()
        await self.ledger.close()
        logger.info("Balance tracker stopped")
