"""Display helpers for float balances.

Balances come from the economy engine as floats; they are stored and compared
as floats and only rounded for display.
"""

BALANCE_EPSILON = 0.001


def is_significant_change(current: float, previous: float) -> bool:
    """True when the absolute delta strictly exceeds BALANCE_EPSILON."""
    return abs(current - previous) > BALANCE_EPSILON


def balance_to_display(amount: float) -> str:
    """Format a balance: 1234.5 -> '$1,234.50', -12 -> '-$12.00'."""
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"
