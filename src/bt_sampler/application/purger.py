"""RetentionPurger — daily removal of history rows older than the window."""

import logging
from datetime import datetime

from config.settings import settings
from src.bt_common.datetime_utils import seconds_until_hour
from src.bt_ledger.application.service import BalanceLedger

logger = logging.getLogger(__name__)


class RetentionPurger:
    def __init__(
        self,
        ledger: BalanceLedger,
        retention_days: int | None = None,
        purge_hour_utc: int | None = None,
    ) -> None:
        self._ledger = ledger
        self.retention_days = (
            retention_days if retention_days is not None else settings.RETENTION_DAYS
        )
        self.purge_hour_utc = (
            purge_hour_utc if purge_hour_utc is not None else settings.PURGE_HOUR_UTC
        )
        if self.retention_days < 0:
            raise ValueError(f"retention_days must be >= 0, got {self.retention_days}")

    def initial_delay_seconds(self, now: datetime | None = None) -> float:
        return seconds_until_hour(self.purge_hour_utc, now)

    async def run_once(self) -> int:
        logger.info("Starting purge of records older than %d days", self.retention_days)
        return await self._ledger.purge_old_records(self.retention_days)
