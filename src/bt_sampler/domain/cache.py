"""In-memory last-known balance cache.

  - Key: player uuid, value: last balance the ledger committed
  - Warm-loaded once at startup from last_balances
  - Written only after BalanceLedger.record_balance reports a commit
  - Read by the sampler (change detection) and the query service (current value)

Access is guarded by a lock so request handlers and periodic tasks can share
one instance.
"""

import threading
from collections.abc import Mapping


class BalanceCache:
    def __init__(self) -> None:
        self._balances: dict[str, float] = {}
        self._lock = threading.Lock()

    def get(self, identity: str) -> float | None:
        with self._lock:
            return self._balances.get(identity)

    def set(self, identity: str, balance: float) -> None:
        with self._lock:
            self._balances[identity] = balance

    def load(self, balances: Mapping[str, float]) -> int:
        """Replace the whole cache. Returns the number of entries loaded."""
        with self._lock:
            self._balances = dict(balances)
            return len(self._balances)

    def snapshot(self) -> dict[str, float]:
        with self._lock:
            return dict(self._balances)

    def __len__(self) -> int:
        with self._lock:
            return len(self._balances)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._balances
