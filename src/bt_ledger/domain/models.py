"""Domain models for bt_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BalanceSample:
    identity: str
    timestamp: int   # epoch millis
    balance: float


@dataclass(frozen=True)
class LastKnownBalance:
    identity: str
    balance: float


@dataclass(frozen=True)
class TopBalance:
    identity: str
    balance: float
