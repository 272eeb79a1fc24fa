# riordino/usecases/catalog.py
"""
UC: catalog view and sales import.

CatalogService joins every item with its sales snapshot and runs the
replenishment engine with the active policy. It also ingests normalized
import rows: one item upsert plus snapshot replacement per row, each row
in its own transaction, so a bad row never aborts the batch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from riordino.adapters.parsers import clean_str, is_missing, to_date, to_number
from riordino.domain.engine import calculate
from riordino.domain.errors import DataQualityWarning
from riordino.domain.formulas import is_run_rate_method_implemented
from riordino.domain.models import FullItemData, ImportRow, Item, ItemKey, PolicyParams, SalesSnapshot
from riordino.domain.stores import CatalogStore, PolicyStore
from riordino.infra.logger import (
    log_import,
    log_system_event,
    log_transaction,
)


@dataclass
class IngestResult:
    imported_count: int = 0
    failed_count: int = 0
    warnings: List[DataQualityWarning] = field(default_factory=list)
    failures: List[DataQualityWarning] = field(default_factory=list)


class CatalogService:
    """Read side (FullItemData under the active policy) and write side (ingest)."""

    def __init__(
        self,
        policy_store: PolicyStore,
        catalog_store: CatalogStore,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.policy_store = policy_store
        self.catalog_store = catalog_store
        self.clock = clock or datetime.now

    # -------------------------
    # read side
    # -------------------------

    def _active_policy(self) -> PolicyParams:
        policy = self.policy_store.get_active()
        if not is_run_rate_method_implemented(policy.run_rate_method):
            log_system_event(
                "run_rate_method_fallback",
                {"policy": policy.name, "method": policy.run_rate_method.value, "applied": "simple_avg"},
                level="warning",
            )
        return policy

    def _evaluate(self, pairs: Sequence[Tuple[Item, SalesSnapshot]]) -> List[FullItemData]:
        policy = self._active_policy()
        if not pairs:
            return []
        now = self.clock()
        return [
            FullItemData(item=item, sale=sale, calculation=calculate(item, sale, policy, now=now))
            for item, sale in pairs
        ]

    def get_all(self) -> List[FullItemData]:
        return self._evaluate(self.catalog_store.fetch_joined())

    def find_by_codes(self, codes: Iterable[str]) -> List[FullItemData]:
        """Items whose code matches one of ``codes`` (trimmed, case-insensitive)."""
        ids = self.catalog_store.ids_by_codes(codes)
        return self._evaluate(self.catalog_store.fetch_joined(ids))

    def find_by_keys(self, keys: Iterable[ItemKey]) -> List[FullItemData]:
        """Items matching the (precodice, code) keys, in the order of ``keys``."""
        keys = list(dict.fromkeys(ItemKey.of(k.precodice, k.code) for k in keys))
        ids = self.catalog_store.ids_by_keys(keys)
        by_key = {d.key: d for d in self._evaluate(self.catalog_store.fetch_joined(ids))}
        return [by_key[k] for k in keys if k in by_key]

    # -------------------------
    # write side
    # -------------------------

    def _number(self, val: Any, label: str, row_no: int, code: str, warnings: List[DataQualityWarning]) -> float:
        num = to_number(val)
        if num is None:
            shown = "vuoto" if is_missing(val) else repr(val)
            warnings.append(DataQualityWarning(code, f"'{label}' non numerico ({shown}), impostato a 0", row_no))
            return 0.0
        if num < 0:
            warnings.append(DataQualityWarning(code, f"'{label}' importata con valore negativo: {num:g}", row_no))
        return num

    def _date(self, val: Any, label: str, row_no: int, code: str, warnings: List[DataQualityWarning]) -> Optional[date]:
        if is_missing(val):
            return None
        parsed = to_date(val)
        if parsed is None:
            warnings.append(DataQualityWarning(code, f"'{label}' non riconosciuta ({val!r}), ignorata", row_no))
        return parsed

    def ingest(self, rows: Iterable[ImportRow], source_file_id: Optional[str] = None) -> IngestResult:
        """Upsert items and replace their snapshots from normalized rows.

        Row numbers in the warnings are 1-based positions in ``rows``.
        """
        result = IngestResult()
        as_of = self.clock().date()
        log_system_event("ingest_start", {"source": source_file_id})

        for row_no, row in enumerate(rows, start=1):
            code = clean_str(row.code)
            if code is None:
                result.failed_count += 1
                result.failures.append(DataQualityWarning("", "codice mancante, riga ignorata", row_no))
                log_import("failed", "", row=row_no, error="missing code")
                continue

            row_warnings: List[DataQualityWarning] = []
            qty = self._number(row.qty_sold_365, "QUANTITA VENDUTA", row_no, code, row_warnings)
            value = self._number(row.value_sold_365, "VALORE VENDUTO", row_no, code, row_warnings)
            sale = SalesSnapshot(
                item_id=0,  # assigned by the store once the item exists
                qty_sold_365=qty,
                value_sold_365=value,
                last_sale_date=self._date(row.last_sale_date, "DATA ULTIMA VENDITA", row_no, code, row_warnings),
                last_purchase_date=self._date(row.last_purchase_date, "DATA ULTIMO ACQUISTO", row_no, code, row_warnings),
                as_of_date=as_of,
                source_file_id=source_file_id,
                import_warnings=[w.message for w in row_warnings],
            )
            normalized = ImportRow(
                code=code,
                qty_sold_365=qty,
                value_sold_365=value,
                precodice=clean_str(row.precodice),
                description=clean_str(row.description),
                ubicazione=clean_str(row.ubicazione),
            )

            try:
                item = self.catalog_store.upsert_with_snapshot(normalized, sale)
            except Exception as e:
                result.failed_count += 1
                result.failures.append(DataQualityWarning(code, f"scrittura fallita: {e}", row_no))
                log_import("failed", code, normalized.precodice, row=row_no, error=str(e))
                continue

            result.imported_count += 1
            result.warnings.extend(row_warnings)
            log_import("upsert", code, normalized.precodice, item_id=item.id, qty=qty, value=value)
            for w in row_warnings:
                log_import("warning", code, normalized.precodice, row=row_no, message=w.message)

        log_transaction(
            "ingest",
            {"source": source_file_id},
            result={"imported": result.imported_count, "failed": result.failed_count, "warnings": len(result.warnings)},
        )
        return result
