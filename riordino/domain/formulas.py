"""
Quantity formulas for the replenishment calculation.

These functions turn the trailing 365-day sales of an item into daily
run rate and coverage quantities. Every coverage quantity is rounded up
to a whole unit, since a fractional unit cannot be stocked.

All functions are pure: they depend solely on their inputs and do
not modify any external state. This makes them safe to unit test
individually.
"""

from __future__ import annotations

from datetime import date, datetime
from math import ceil
from typing import Optional, Union

from riordino.config import DEFAULTS
from riordino.domain.models import RunRateMethod

Number = Union[int, float]

# Run-rate methods with a defined formula. weighted_avg and exp_smoothing
# are selectable in a policy but have no agreed formula yet; the engine
# computes the simple average for them and callers can use
# is_run_rate_method_implemented() to make that visible.
IMPLEMENTED_RUN_RATE_METHODS = frozenset({RunRateMethod.SIMPLE_AVG})


def is_run_rate_method_implemented(method: RunRateMethod) -> bool:
    return RunRateMethod(method) in IMPLEMENTED_RUN_RATE_METHODS


def clamp_non_negative(value: Optional[Number]) -> float:
    """Return ``value`` as a float, with negatives and ``None`` mapped to 0."""
    if value is None:
        return 0.0
    return max(0.0, float(value))


def daily_run_rate(qty_sold_365: Number) -> float:
    """Average units sold per day over the trailing year.

    Parameters
    ----------
    qty_sold_365: int | float
        Units sold in the last 365 days, already clamped to >= 0.

    Returns
    -------
    float
        ``qty_sold_365 / 365`` when positive, else ``0.0``.
    """
    qty = float(qty_sold_365)
    return qty / DEFAULTS.days_per_year if qty > 0 else 0.0


def cover_qty(run_rate: Number, days: Number) -> int:
    """Units needed to cover ``days`` of sales at ``run_rate``, rounded up."""
    return int(ceil(float(run_rate) * float(days)))


def available_stock(current_stock: Number, reserved_qty: Number) -> int:
    """Stock on hand not already reserved, never below zero."""
    return int(max(0, current_stock - reserved_qty))


def days_since(last: Optional[date], now: datetime) -> int:
    """Calendar days elapsed between ``last`` and ``now``.

    Returns the configured sentinel when there is no date, so an item that
    never sold counts as not sold recently.
    """
    if last is None:
        return DEFAULTS.days_since_sale_sentinel
    if isinstance(last, datetime):
        last = last.date()
    return (now.date() - last).days
