"""Change classification for sampled balances."""

from enum import Enum

from src.bt_common.money import is_significant_change


class ChangeKind(str, Enum):
    NEW = "NEW"          # no prior observation for this player
    CHANGED = "CHANGED"  # |current - cached| > epsilon
    SKIP = "SKIP"


def classify_change(current: float, cached: float | None) -> ChangeKind:
    if cached is None:
        return ChangeKind.NEW
    if is_significant_change(current, cached):
        return ChangeKind.CHANGED
    return ChangeKind.SKIP
