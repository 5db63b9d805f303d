from decimal import ROUND_HALF_UP, Decimal
from typing import Tuple

# Scale of the Money column
CENT = Decimal("0.01")


def round_money(value) -> Decimal:
    """Round to the stored scale (two places, half-up)."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def apply_deposit(
    current: Decimal, target: Decimal, amount: Decimal, completed: bool = False
) -> Tuple[Decimal, bool]:
    """
    Return the goal's new ``(current_amount, is_completed)`` after a deposit.

    Amounts are rounded to the stored scale first, so the flag always agrees
    with the balance that gets written. Amounts that round to zero or below
    leave both values as they were. Otherwise completion is recomputed from
    the new balance, never carried over.
    """
    current = round_money(current or 0)
    target = round_money(target or 0)
    amount = round_money(amount or 0)
    if amount <= 0:
        return current, bool(completed)
    new_current = current + amount
    return new_current, new_current >= target


def progress_percent(current: Decimal, target: Decimal) -> float:
    if not target or target <= 0:
        return 0.0
    return float(min(Decimal(current or 0) / Decimal(target) * 100, Decimal(100)))


def remaining_amount(current: Decimal, target: Decimal) -> Decimal:
    return max(Decimal(target or 0) - Decimal(current or 0), Decimal(0))
