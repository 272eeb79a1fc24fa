# riordino/domain/models.py
"""
Domain models (dataclasses).

Repositories build these from SQLite rows and the use cases pass them
around; nothing in this module performs I/O. ``to_dict``/``from_dict``
exist so that a draft proposal can be stored as JSON between CLI runs.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional


def iso_or_none(val: Optional[Any]) -> Optional[str]:
    return val.isoformat() if val is not None else None


def parse_date(val: Optional[Any]) -> Optional[date]:
    if val is None or val == "":
        return None
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    return date.fromisoformat(str(val)[:10])


def parse_datetime(val: Optional[Any]) -> Optional[datetime]:
    if val is None or val == "":
        return None
    if isinstance(val, datetime):
        return val
    return datetime.fromisoformat(str(val))


class RunRateMethod(str, Enum):
    SIMPLE_AVG = "simple_avg"
    WEIGHTED_AVG = "weighted_avg"
    EXP_SMOOTHING = "exp_smoothing"


class RoundingStrategy(str, Enum):
    TO_MULTIPLE = "to_multiple"
    TO_MIN_THEN_MULTIPLE = "to_min_then_multiple"


class ItemKey(NamedTuple):
    """Unique item key: a code may repeat under different precodice values."""
    precodice: str
    code: str

    @classmethod
    def of(cls, precodice: Optional[str], code: str) -> "ItemKey":
        return cls((precodice or "").strip(), str(code).strip())


@dataclass
class Item:
    """Stocked product (item master data)."""
    id: int
    code: str
    precodice: Optional[str] = None
    description: Optional[str] = None
    supplier: Optional[str] = None
    ubicazione: Optional[str] = None
    lead_time_days: Optional[int] = None   # None -> policy default; 0 is a valid override
    min_order_qty: int = 1
    order_multiple: int = 1
    current_stock: int = 0
    reserved_qty: int = 0
    reorder_blocked: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> ItemKey:
        return ItemKey.of(self.precodice, self.code)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["created_at"] = iso_or_none(self.created_at)
        d["updated_at"] = iso_or_none(self.updated_at)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Item":
        d = dict(d)
        d["reorder_blocked"] = bool(d.get("reorder_blocked"))
        d["created_at"] = parse_datetime(d.get("created_at"))
        d["updated_at"] = parse_datetime(d.get("updated_at"))
        return cls(**d)


@dataclass
class SalesSnapshot:
    """Trailing 365-day sales for one item. Raw values may be negative."""
    item_id: int
    qty_sold_365: float = 0.0
    value_sold_365: float = 0.0
    last_sale_date: Optional[date] = None
    last_purchase_date: Optional[date] = None
    as_of_date: Optional[date] = None
    source_file_id: Optional[str] = None
    import_warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        for k in ("last_sale_date", "last_purchase_date", "as_of_date"):
            d[k] = iso_or_none(getattr(self, k))
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SalesSnapshot":
        d = dict(d)
        for k in ("last_sale_date", "last_purchase_date", "as_of_date"):
            d[k] = parse_date(d.get(k))
        d["import_warnings"] = list(d.get("import_warnings") or [])
        return cls(**d)


@dataclass
class PolicyParams:
    """Named set of coefficients governing the calculation."""
    name: str
    run_rate_method: RunRateMethod = RunRateMethod.SIMPLE_AVG
    avg_window_days: int = 365
    recent_weight_days: int = 90
    recent_weight_factor: float = 1.5
    lead_time_default_days: int = 2
    safety_stock_days: int = 7
    slow_mover_qty_threshold: float = 3
    slow_mover_days_since_last_sale: int = 120
    min_revenue_threshold: float = 0
    rounding_strategy: RoundingStrategy = RoundingStrategy.TO_MULTIPLE
    is_active: bool = False
    id: Optional[int] = None

    def __post_init__(self) -> None:
        self.run_rate_method = RunRateMethod(self.run_rate_method)
        self.rounding_strategy = RoundingStrategy(self.rounding_strategy)
        self.is_active = bool(self.is_active)

    def copy(self, **changes: Any) -> "PolicyParams":
        return replace(self, **changes)


@dataclass
class ReplenishmentCalculation:
    """Engine output for one item under one policy. Never persisted."""
    item_id: int
    daily_run_rate: float
    forecast_60d: int
    safety_stock: int
    lead_time_cover_qty: int
    recommended_order_qty: int
    slow_mover_flag: bool = False
    slow_mover_reason: str = ""
    calc_date: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["calc_date"] = iso_or_none(self.calc_date)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ReplenishmentCalculation":
        d = dict(d)
        d["calc_date"] = parse_datetime(d.get("calc_date"))
        return cls(**d)


@dataclass(frozen=True)
class FullItemData:
    """Item + SalesSnapshot + ReplenishmentCalculation, read-only."""
    item: Item
    sale: SalesSnapshot
    calculation: ReplenishmentCalculation

    @property
    def id(self) -> int:
        return self.item.id

    @property
    def code(self) -> str:
        return self.item.code

    @property
    def precodice(self) -> Optional[str]:
        return self.item.precodice

    @property
    def description(self) -> Optional[str]:
        return self.item.description

    @property
    def supplier(self) -> Optional[str]:
        return self.item.supplier

    @property
    def key(self) -> ItemKey:
        return self.item.key

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item": self.item.to_dict(),
            "sale": self.sale.to_dict(),
            "calculation": self.calculation.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FullItemData":
        return cls(
            item=Item.from_dict(d["item"]),
            sale=SalesSnapshot.from_dict(d["sale"]),
            calculation=ReplenishmentCalculation.from_dict(d["calculation"]),
        )


@dataclass
class ImportRow:
    """Normalized row handed to ``CatalogService.ingest``."""
    code: str
    qty_sold_365: Any = 0
    value_sold_365: Any = 0
    precodice: Optional[str] = None
    description: Optional[str] = None
    last_sale_date: Optional[str] = None
    last_purchase_date: Optional[str] = None
    ubicazione: Optional[str] = None

    @property
    def key(self) -> ItemKey:
        return ItemKey.of(self.precodice, self.code)


@dataclass
class ProposalLine:
    item_id: int
    item_data: FullItemData
    modified_qty: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "item_data": self.item_data.to_dict(),
            "modified_qty": self.modified_qty,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ProposalLine":
        return cls(
            item_id=int(d["item_id"]),
            item_data=FullItemData.from_dict(d["item_data"]),
            modified_qty=int(d["modified_qty"]),
        )


@dataclass(frozen=True)
class ArchivedProposalLine:
    item_id: int
    code: str
    ordered_qty: int
    precodice: Optional[str] = None
    description: Optional[str] = None
    supplier: Optional[str] = None


@dataclass(frozen=True)
class ArchivedProposal:
    """Immutable record of an approved proposal."""
    id: Optional[int]
    proposal_date: datetime
    created_by: str
    items_count: int
    lines: tuple = ()
