"""BalanceQueryService — read side used by the API layer.

History: name -> uuid via the identity directory, raw ledger history (newest
first, max 100 rows), compressed to actual changes, truncated to the 10 most
recent. Leaderboard: size validated before any storage access, then clamped.

Storage faults never surface here: BalanceLedger already returns empty results.
"""

import asyncio
import logging

from src.bt_common.errors import IdentityNotFoundError, InvalidLeaderboardSizeError
from src.bt_common.money import balance_to_display
from src.bt_ledger.application.service import HISTORY_RAW_LIMIT, BalanceLedger
from src.bt_query.application.schemas import (
    BalanceChangeItem,
    HistoryResponse,
    HistoryStatus,
    LeaderboardEntry,
    LeaderboardResponse,
)
from src.bt_query.domain.compression import compress_history
from src.bt_sampler.domain.cache import BalanceCache
from src.bt_sampler.domain.source import IdentityDirectoryProtocol

logger = logging.getLogger(__name__)

HISTORY_DISPLAY_LIMIT = 10
LEADERBOARD_MIN_SIZE = 1
LEADERBOARD_MAX_SIZE = 100
LEADERBOARD_DEFAULT_SIZE = 10


def parse_leaderboard_size(raw: str | int | None) -> int:
    """Validate and clamp a user-supplied leaderboard size to [1, 100].

    Missing/blank input means the default size. Anything that is not a whole
    number raises InvalidLeaderboardSizeError.
    """
    if raw is None:
        return LEADERBOARD_DEFAULT_SIZE
    if isinstance(raw, bool):
        raise InvalidLeaderboardSizeError(str(raw))
    if isinstance(raw, int):
        value = raw
    else:
        stripped = raw.strip()
        if not stripped:
            return LEADERBOARD_DEFAULT_SIZE
        try:
            value = int(stripped)
        except ValueError:
            raise InvalidLeaderboardSizeError(raw) from None
    return max(LEADERBOARD_MIN_SIZE, min(value, LEADERBOARD_MAX_SIZE))


class BalanceQueryService:
    def __init__(
        self,
        ledger: BalanceLedger,
        directory: IdentityDirectoryProtocol,
        cache: BalanceCache,
    ) -> None:
        self._ledger = ledger
        self._directory = directory
        self._cache = cache

    async def get_history(self, name: str) -> HistoryResponse:
        identity = await self._directory.find_identity(name)
        if identity is None:
            raise IdentityNotFoundError(name)

        current = self._cache.get(identity)
        records = await self._ledger.get_balance_history(identity, HISTORY_RAW_LIMIT)
        # Most recent changes first; truncation, not a re-sort
        changes = compress_history(records)[:HISTORY_DISPLAY_LIMIT]
        return HistoryResponse(
            name=name,
            identity=identity,
            status=HistoryStatus.OK if changes else HistoryStatus.NO_RECORDS,
            current_balance=current,
            current_balance_display=(
                balance_to_display(current) if current is not None else None
            ),
            changes=[BalanceChangeItem.from_sample(s) for s in changes],
        )

    async def get_leaderboard(self, raw_size: str | int | None) -> LeaderboardResponse:
        size = parse_leaderboard_size(raw_size)
        top = await self._ledger.get_top_balances(size)

        # One lookup per row, issued together so a slow directory costs one timeout
        names = await asyncio.gather(
            *(self._directory.resolve_name(row.identity) for row in top)
        )
        entries = [
            LeaderboardEntry(
                rank=rank,
                identity=row.identity,
                name=name,
                balance=row.balance,
                balance_display=balance_to_display(row.balance),
            )
            for rank, (row, name) in enumerate(zip(top, names), start=1)
        ]
        logger.debug("Leaderboard requested: size=%d, returned=%d", size, len(entries))
        return LeaderboardResponse(size=size, entries=entries)
