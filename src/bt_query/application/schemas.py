"""Pydantic schemas for bt_query API."""

from enum import Enum

from pydantic import BaseModel

from src.bt_common.datetime_utils import millis_to_datetime
from src.bt_common.money import balance_to_display
from src.bt_ledger.domain.models import BalanceSample


class HistoryStatus(str, Enum):
    OK = "OK"
    NO_RECORDS = "NO_RECORDS"


class BalanceChangeItem(BaseModel):
    timestamp_ms: int
    recorded_at: str  # ISO8601 string
    balance: float
    balance_display: str

    @classmethod
    def from_sample(cls, sample: BalanceSample) -> "BalanceChangeItem":
        return cls(
            timestamp_ms=sample.timestamp,
            recorded_at=millis_to_datetime(sample.timestamp).isoformat(),
            balance=sample.balance,
            balance_display=balance_to_display(sample.balance),
        )


class HistoryResponse(BaseModel):
    name: str
    identity: str
    status: HistoryStatus
    current_balance: float | None = None
    current_balance_display: str | None = None
    changes: list[BalanceChangeItem]


class LeaderboardEntry(BaseModel):
    rank: int
    identity: str
    name: str | None
    balance: float
    balance_display: str


class LeaderboardResponse(BaseModel):
    size: int
    entries: list[LeaderboardEntry]
