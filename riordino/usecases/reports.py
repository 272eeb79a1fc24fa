# riordino/usecases/reports.py
"""
Catalog reports:
- kpi_summary:  headline numbers for the catalog (items to reorder, order value, slow movers)
- filter_items: text search plus slow-mover / to-reorder filters
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from riordino.domain.models import FullItemData


# ----------------------
# util
# ----------------------

def unit_value(data: FullItemData) -> float:
    """Average sale price over the trailing year; 0 without positive sales."""
    qty = data.sale.qty_sold_365
    if qty and qty > 0:
        return float(data.sale.value_sold_365) / float(qty)
    return 0.0


def order_value(data: FullItemData) -> float:
    return data.calculation.recommended_order_qty * unit_value(data)


# ----------------------
# KPIs
# ----------------------

def kpi_summary(items: Iterable[FullItemData]) -> Dict[str, Any]:
    items = list(items)
    total = len(items)
    to_reorder = [d for d in items if d.calculation.recommended_order_qty > 0]
    pct = round(len(to_reorder) / total * 100, 1) if total else 0.0
    return {
        "total_items": total,
        "items_to_reorder": len(to_reorder),
        "reorder_pct": pct,
        "order_value": round(sum(order_value(d) for d in to_reorder), 2),
        "slow_movers": sum(1 for d in items if d.calculation.slow_mover_flag),
    }


# ----------------------
# filters
# ----------------------

def _matches(data: FullItemData, term: str) -> bool:
    fields = (data.item.code, data.item.description, data.item.precodice, data.item.ubicazione)
    return any(term in (f or "").lower() for f in fields)


def filter_items(
    items: Iterable[FullItemData],
    term: Optional[str] = None,
    only_slow_movers: bool = False,
    only_recommended: bool = False,
) -> List[FullItemData]:
    needle = (term or "").strip().lower()
    out: List[FullItemData] = []
    for d in items:
        if needle and not _matches(d, needle):
            continue
        if only_slow_movers and not d.calculation.slow_mover_flag:
            continue
        if only_recommended and d.calculation.recommended_order_qty <= 0:
            continue
        out.append(d)
    return out
