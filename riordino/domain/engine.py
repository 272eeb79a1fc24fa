"""
Replenishment engine.

``calculate`` turns one item, its sales snapshot and a policy into a
reorder recommendation. It is a pure function: no I/O, no logging, and
the only input besides its arguments is ``now`` (injectable), used for
the days-since-last-sale math.

Steps:
1) Clamp sold quantity and value to >= 0 (the raw values stay in the snapshot).
2) Daily run rate = qty / 365.
3) Safety stock, lead-time cover and 60-day forecast, each rounded up.
4) Available stock = current - reserved (>= 0).
5) Gap to the target, rounded to the purchasing constraints, unless the
   item is blocked for reorder.
6) Slow movers get a zero recommendation and a reason string.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from riordino.config import DEFAULTS
from riordino.domain.formulas import (
    available_stock,
    clamp_non_negative,
    cover_qty,
    daily_run_rate,
    days_since,
)
from riordino.domain.models import Item, PolicyParams, ReplenishmentCalculation, SalesSnapshot
from riordino.domain.policies import evaluate_slow_mover, round_order_qty


def _lead_time(item: Item, policy: PolicyParams) -> int:
    # only a missing value falls back; 0 means "no lead-time buffer"
    if item.lead_time_days is None:
        return policy.lead_time_default_days
    return item.lead_time_days


def calculate(
    item: Item,
    sale: SalesSnapshot,
    policy: PolicyParams,
    now: Optional[datetime] = None,
) -> ReplenishmentCalculation:
    """Compute the reorder recommendation for one item.

    Every run-rate method currently uses the simple average; see
    ``riordino.domain.formulas.IMPLEMENTED_RUN_RATE_METHODS``.
    """
    now = now or datetime.now()

    qty_sold = clamp_non_negative(sale.qty_sold_365)
    value_sold = clamp_non_negative(sale.value_sold_365)

    rate = daily_run_rate(qty_sold)
    safety_stock = cover_qty(rate, policy.safety_stock_days)
    lead_time_cover = cover_qty(rate, _lead_time(item, policy))
    forecast_60d = cover_qty(rate, DEFAULTS.forecast_horizon_days)
    available = available_stock(item.current_stock, item.reserved_qty)

    recommended = 0
    if not item.reorder_blocked:
        target = lead_time_cover + safety_stock + forecast_60d
        gap = target - available
        if gap > 0:
            recommended = round_order_qty(
                gap, item.min_order_qty, item.order_multiple, policy.rounding_strategy
            )

    check = evaluate_slow_mover(
        raw_qty_sold=sale.qty_sold_365,
        effective_qty_sold=qty_sold,
        effective_value_sold=value_sold,
        days_since_sale=days_since(sale.last_sale_date, now),
        qty_threshold=policy.slow_mover_qty_threshold,
        days_threshold=policy.slow_mover_days_since_last_sale,
        min_revenue_threshold=policy.min_revenue_threshold,
    )
    if check.flag:
        recommended = 0

    return ReplenishmentCalculation(
        item_id=item.id,
        daily_run_rate=rate,
        forecast_60d=forecast_60d,
        safety_stock=safety_stock,
        lead_time_cover_qty=lead_time_cover,
        recommended_order_qty=int(recommended),
        slow_mover_flag=check.flag,
        slow_mover_reason=check.reason,
        calc_date=now,
    )
