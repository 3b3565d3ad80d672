"""Integer arithmetic utilities for ledger amounts.

All prices and offer amounts are int drops (1 XRP = 1,000,000 drops).
No float, no Decimal.
"""

DROPS_PER_XRP = 1_000_000


def validate_amount(amount: int, *, allow_zero: bool = True) -> None:
    """Validate a drops amount: non-negative, and non-zero unless allowed."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"Amount must be an integer number of drops, got {amount!r}")
    if amount < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")
    if amount == 0 and not allow_zero:
        raise ValueError("Amount must be non-zero")


def drops_to_display(drops: int) -> str:
    """Convert drops to display string: 1500000 -> '1.5 XRP', 1 -> '0.000001 XRP'."""
    sign = "-" if drops < 0 else ""
    whole, frac = divmod(abs(drops), DROPS_PER_XRP)
    if frac == 0:
        return f"{sign}{whole:,} XRP"
    frac_str = f"{frac:06d}".rstrip("0")
    return f"{sign}{whole:,}.{frac_str} XRP"
