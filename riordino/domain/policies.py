"""
Business rules applied on top of the raw formulas.

This module holds the purchasing-constraint rounding of an order
quantity and the slow-mover classification. Both are used by the
replenishment engine while building a recommendation.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import ceil
from typing import List

from riordino.domain.models import RoundingStrategy


def round_to_multiple(x: int, mult: int) -> int:
    """Round ``x`` up to the next multiple of ``mult``.

    ``x`` is returned unchanged when it already is an exact multiple or
    when ``mult`` is not positive.

    Args:
        x: Quantity to round.
        mult: Order multiple (pack size).

    Returns:
        ``ceil(x / mult) * mult`` if ``mult`` is positive; otherwise ``x``.
    """
    if mult is None or mult <= 0:
        return int(x)
    if x % mult == 0:
        return int(x)
    return int(ceil(x / mult) * mult)


def round_order_qty(gap: int, min_order_qty: int, order_multiple: int, strategy: RoundingStrategy) -> int:
    """Apply the purchasing constraints to a positive stock gap.

    Strategies:
        - ``TO_MULTIPLE``: lift the gap to the minimum order first, then
          round up to the order multiple.
        - ``TO_MIN_THEN_MULTIPLE``: round the raw gap up to the multiple,
          then floor the result against the minimum order. With a gap below
          the minimum this can give a quantity that is not a multiple.

    Example with multiple 5, minimum 7, gap 2: ``TO_MULTIPLE`` → 10,
    ``TO_MIN_THEN_MULTIPLE`` → 7.
    """
    if RoundingStrategy(strategy) is RoundingStrategy.TO_MIN_THEN_MULTIPLE:
        return max(int(min_order_qty), int(ceil(gap / order_multiple) * order_multiple))
    gap_or_min = max(gap, min_order_qty)
    return round_to_multiple(gap_or_min, order_multiple)


@dataclass(frozen=True)
class SlowMoverCheck:
    """Outcome of the slow-mover rules for one item."""
    low_qty: bool
    stale_sale: bool
    low_revenue: bool
    reason: str = ""

    @property
    def flag(self) -> bool:
        # low_revenue only enriches the reason
        return self.low_qty and self.stale_sale


def _fmt(n: float) -> str:
    return f"{n:g}"


def evaluate_slow_mover(
    raw_qty_sold: float,
    effective_qty_sold: float,
    effective_value_sold: float,
    days_since_sale: int,
    qty_threshold: float,
    days_threshold: int,
    min_revenue_threshold: float,
) -> SlowMoverCheck:
    """Evaluate the slow-mover conditions.

    Conditions:
        - low quantity: ``effective_qty_sold < qty_threshold``
        - stale sale: ``days_since_sale > days_threshold``
        - low revenue: ``min_revenue_threshold > 0`` and
          ``effective_value_sold < min_revenue_threshold``

    The item is a slow mover when the first two hold. The reason lists
    every condition that holds (the raw sold quantity is shown, so a
    negative import stays visible) and is empty when the item is not
    flagged.
    """
    low_qty = effective_qty_sold < qty_threshold
    stale_sale = days_since_sale > days_threshold
    low_revenue = min_revenue_threshold > 0 and effective_value_sold < min_revenue_threshold

    reason = ""
    if low_qty and stale_sale:
        reasons: List[str] = [
            f"vendute {_fmt(raw_qty_sold)}/{_fmt(qty_threshold)} u.",
            f"ultima vendita {days_since_sale}/{days_threshold}gg fa",
        ]
        if low_revenue:
            reasons.append(f"valore {_fmt(effective_value_sold)} < {_fmt(min_revenue_threshold)}€")
        reason = f"Poco movimentato: {', '.join(reasons)}."
    return SlowMoverCheck(low_qty=low_qty, stale_sale=stale_sale, low_revenue=low_revenue, reason=reason)
