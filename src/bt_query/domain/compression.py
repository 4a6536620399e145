"""History compression: keep only the samples where the balance moved."""

from collections.abc import Iterable

from src.bt_common.money import is_significant_change
from src.bt_ledger.domain.models import BalanceSample


def compress_history(samples: Iterable[BalanceSample]) -> list[BalanceSample]:
    """Collapse consecutive near-equal samples into their first member.

    Input is newest-first; each run of samples within epsilon of the run's
    first sample is represented by that first (most recent) sample.
    [100, 100, 100, 50, 50, 75] -> [100, 50, 75]
    """
    changes: list[BalanceSample] = []
    for sample in samples:
        if not changes or is_significant_change(sample.balance, changes[-1].balance):
            changes.append(sample)
    return changes
