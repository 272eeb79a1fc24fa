# riordino/infra/repositories.py
"""
SQLite repositories (DAO), one per entity type.

Classes:
- PolicyRepo   (PolicyStore)
- ItemRepo
- SalesRepo
- CatalogRepo  (CatalogStore: item + sales snapshot, joined and written together)
- ArchiveRepo  (ArchiveStore)
- DraftRepo    (DraftStore)
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .db import connect
from riordino.config import DEFAULTS
from riordino.domain.errors import ConfigurationFault, NotFound
from riordino.domain.models import (
    ArchivedProposal,
    ArchivedProposalLine,
    ImportRow,
    Item,
    ItemKey,
    PolicyParams,
    ProposalLine,
    SalesSnapshot,
    iso_or_none,
    parse_date,
    parse_datetime,
)
from riordino.domain.stores import ArchiveStore, CatalogStore, DraftStore, PolicyStore


# -------------------------
# Helpers
# -------------------------

_IN_CHUNK = 500  # stay below SQLite's bound-parameter limit


def _chunks(values: List[Any], size: int = _IN_CHUNK):
    for i in range(0, len(values), size):
        yield values[i:i + size]


def _row_to_item(r: sqlite3.Row) -> Item:
    return Item(
        id=int(r["id"]),
        code=r["code"],
        precodice=r["precodice"] or None,
        description=r["description"],
        supplier=r["supplier"],
        ubicazione=r["ubicazione"],
        lead_time_days=r["lead_time_days"],
        min_order_qty=int(r["min_order_qty"]),
        order_multiple=int(r["order_multiple"]),
        current_stock=int(r["current_stock"]),
        reserved_qty=int(r["reserved_qty"]),
        reorder_blocked=bool(r["reorder_blocked"]),
        created_at=parse_datetime(r["created_at"]),
        updated_at=parse_datetime(r["updated_at"]),
    )


def _row_to_sale(r: sqlite3.Row, item_id_col: str = "item_id") -> SalesSnapshot:
    return SalesSnapshot(
        item_id=int(r[item_id_col]),
        qty_sold_365=float(r["qty_sold_365"]),
        value_sold_365=float(r["value_sold_365"]),
        last_sale_date=parse_date(r["last_sale_date"]),
        last_purchase_date=parse_date(r["last_purchase_date"]),
        as_of_date=parse_date(r["as_of_date"]),
        source_file_id=r["source_file_id"],
        import_warnings=json.loads(r["import_warnings"]) if r["import_warnings"] else [],
    )


_POLICY_COLS = (
    "name", "run_rate_method", "avg_window_days", "recent_weight_days",
    "recent_weight_factor", "lead_time_default_days", "safety_stock_days",
    "slow_mover_qty_threshold", "slow_mover_days_since_last_sale",
    "min_revenue_threshold", "rounding_strategy", "is_active",
)


def _row_to_policy(r: sqlite3.Row) -> PolicyParams:
    data = {k: r[k] for k in _POLICY_COLS}
    return PolicyParams(id=int(r["id"]), **data)


def _policy_payload(p: PolicyParams) -> Dict[str, Any]:
    payload = {k: getattr(p, k) for k in _POLICY_COLS}
    payload["run_rate_method"] = p.run_rate_method.value
    payload["rounding_strategy"] = p.rounding_strategy.value
    payload["is_active"] = 1 if p.is_active else 0
    return payload


# -------------------------
# Policy
# -------------------------

class PolicyRepo(PolicyStore):
    def __init__(self, db_path: str):
        self.db_path = db_path

    def get_active(self) -> PolicyParams:
        with connect(self.db_path) as c:
            row = c.execute("SELECT * FROM policy WHERE is_active = 1").fetchone()
        if row is None:
            raise ConfigurationFault(code="NO_ACTIVE_POLICY")
        return _row_to_policy(row)

    def get(self, policy_id: int) -> PolicyParams:
        with connect(self.db_path) as c:
            row = c.execute("SELECT * FROM policy WHERE id = ?", (policy_id,)).fetchone()
        if row is None:
            raise NotFound(f"Set di parametri {policy_id} non trovato", code="POLICY_NOT_FOUND")
        return _row_to_policy(row)

    def list(self) -> List[PolicyParams]:
        with connect(self.db_path) as c:
            rows = c.execute("SELECT * FROM policy ORDER BY id").fetchall()
        return [_row_to_policy(r) for r in rows]

    def save(self, draft: PolicyParams) -> PolicyParams:
        payload = _policy_payload(draft)
        payload["is_active"] = 0
        cols = ",".join(_POLICY_COLS)
        vals = ",".join(f":{k}" for k in _POLICY_COLS)
        with connect(self.db_path) as c:
            cur = c.execute(f"INSERT INTO policy ({cols}) VALUES ({vals})", payload)
            new_id = int(cur.lastrowid)
        return draft.copy(id=new_id, is_active=False)

    def update(self, policy: PolicyParams) -> PolicyParams:
        if policy.id is None:
            raise NotFound("Set di parametri senza identificativo", code="POLICY_NOT_FOUND")
        payload = _policy_payload(policy)
        payload["id"] = policy.id
        sets = ",".join(f"{k}=:{k}" for k in _POLICY_COLS)
        with connect(self.db_path, immediate=True) as c:
            exists = c.execute("SELECT 1 FROM policy WHERE id = ?", (policy.id,)).fetchone()
            if not exists:
                raise NotFound(f"Set di parametri {policy.id} non trovato", code="POLICY_NOT_FOUND")
            if policy.is_active:
                # keep a single active record even on this path
                c.execute("UPDATE policy SET is_active = 0 WHERE is_active = 1 AND id <> ?", (policy.id,))
            c.execute(f"UPDATE policy SET {sets} WHERE id = :id", payload)
        return policy

    def set_active(self, policy_id: int) -> None:
        with connect(self.db_path, immediate=True) as c:
            exists = c.execute("SELECT 1 FROM policy WHERE id = ?", (policy_id,)).fetchone()
            if not exists:
                raise NotFound(f"Set di parametri {policy_id} non trovato", code="POLICY_NOT_FOUND")
            c.execute("UPDATE policy SET is_active = 0 WHERE is_active = 1")
            c.execute("UPDATE policy SET is_active = 1 WHERE id = ?", (policy_id,))


# -------------------------
# Item
# -------------------------

_PURCHASING_FIELDS = (
    "supplier", "lead_time_days", "min_order_qty", "order_multiple",
    "current_stock", "reserved_qty", "reorder_blocked",
)


class ItemRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def get(self, item_id: int) -> Item:
        with connect(self.db_path) as c:
            row = c.execute("SELECT * FROM item WHERE id = ?", (item_id,)).fetchone()
        if row is None:
            raise NotFound(f"Articolo {item_id} non trovato", code="ITEM_NOT_FOUND")
        return _row_to_item(row)

    def get_by_key(self, key: ItemKey, conn: Optional[sqlite3.Connection] = None) -> Optional[Item]:
        sql = "SELECT * FROM item WHERE precodice = ? AND code = ?"
        if conn is not None:
            row = conn.execute(sql, (key.precodice, key.code)).fetchone()
        else:
            with connect(self.db_path) as c:
                row = c.execute(sql, (key.precodice, key.code)).fetchone()
        return _row_to_item(row) if row else None

    def ids_by_codes(self, codes: Iterable[str]) -> List[int]:
        wanted = sorted({str(c).strip().casefold() for c in codes if c is not None and str(c).strip()})
        out: List[int] = []
        if not wanted:
            return out
        with connect(self.db_path) as c:
            for chunk in _chunks(wanted):
                marks = ",".join("?" for _ in chunk)
                rows = c.execute(
                    f"SELECT id FROM item WHERE casefold(trim(code)) IN ({marks}) ORDER BY id", chunk
                ).fetchall()
                out.extend(int(r["id"]) for r in rows)
        return out

    def ids_by_keys(self, keys: Iterable[ItemKey]) -> List[int]:
        out: List[int] = []
        with connect(self.db_path) as c:
            for k in keys:
                row = c.execute(
                    "SELECT id FROM item WHERE precodice = ? AND code = ?", (k.precodice, k.code)
                ).fetchone()
                if row:
                    out.append(int(row["id"]))
        return out

    def upsert_from_import(self, conn: sqlite3.Connection, row: ImportRow, now: datetime) -> Tuple[Item, bool]:
        """Create the item of ``row`` or refresh its descriptive fields.

        Purchasing constraints are never touched here. Returns the stored
        item and whether it was created.
        """
        key = row.key
        existing = self.get_by_key(key, conn=conn)
        if existing is None:
            cur = conn.execute(
                """
                INSERT INTO item
                    (code, precodice, description, ubicazione, lead_time_days,
                     min_order_qty, order_multiple, current_stock, reserved_qty,
                     reorder_blocked, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, 0, 0, 0, ?, ?)
                """,
                (
                    key.code,
                    key.precodice,
                    row.description or f"{DEFAULTS.description_prefix} {key.code}",
                    row.ubicazione or DEFAULTS.ubicazione,
                    DEFAULTS.lead_time_days,
                    DEFAULTS.min_order_qty,
                    DEFAULTS.order_multiple,
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
            item_id = int(cur.lastrowid)
            created = True
        else:
            conn.execute(
                """
                UPDATE item SET
                    description = COALESCE(?, description),
                    ubicazione  = COALESCE(?, ubicazione),
                    updated_at  = ?
                WHERE id = ?
                """,
                (row.description, row.ubicazione, now.isoformat(), existing.id),
            )
            item_id = existing.id
            created = False
        stored = conn.execute("SELECT * FROM item WHERE id = ?", (item_id,)).fetchone()
        return _row_to_item(stored), created

    def update_purchasing(self, item_id: int, **fields: Any) -> Item:
        """Set supplier, lead time, order constraints, stock or the reorder block."""
        unknown = set(fields) - set(_PURCHASING_FIELDS)
        if unknown:
            raise ValueError(f"campi non modificabili: {', '.join(sorted(unknown))}")
        # only the fields passed are written; lead_time_days=None resets to the policy default
        changes = dict(fields)
        for k in ("min_order_qty", "order_multiple"):
            if k in changes and (changes[k] is None or int(changes[k]) < 1):
                raise ValueError(f"{k} deve essere >= 1")
        for k in ("current_stock", "reserved_qty", "lead_time_days"):
            if changes.get(k) is not None and int(changes[k]) < 0:
                raise ValueError(f"{k} non può essere negativo")
        if "reorder_blocked" in changes:
            changes["reorder_blocked"] = 1 if changes["reorder_blocked"] else 0
        with connect(self.db_path) as c:
            exists = c.execute("SELECT 1 FROM item WHERE id = ?", (item_id,)).fetchone()
            if not exists:
                raise NotFound(f"Articolo {item_id} non trovato", code="ITEM_NOT_FOUND")
            if changes:
                changes["updated_at"] = datetime.now().isoformat()
                sets = ",".join(f"{k}=:{k}" for k in changes)
                c.execute(f"UPDATE item SET {sets} WHERE id = :id", {**changes, "id": item_id})
        return self.get(item_id)


# -------------------------
# Sales snapshot
# -------------------------

class SalesRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def get(self, item_id: int) -> Optional[SalesSnapshot]:
        with connect(self.db_path) as c:
            row = c.execute("SELECT * FROM sales_snapshot WHERE item_id = ?", (item_id,)).fetchone()
        return _row_to_sale(row) if row else None

    def replace(self, conn: sqlite3.Connection, sale: SalesSnapshot) -> None:
        """Overwrite the snapshot of ``sale.item_id`` as a whole."""
        conn.execute(
            """
            INSERT INTO sales_snapshot
                (item_id, qty_sold_365, value_sold_365, last_sale_date, last_purchase_date,
                 as_of_date, source_file_id, import_warnings)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(item_id) DO UPDATE SET
                qty_sold_365=excluded.qty_sold_365,
                value_sold_365=excluded.value_sold_365,
                last_sale_date=excluded.last_sale_date,
                last_purchase_date=excluded.last_purchase_date,
                as_of_date=excluded.as_of_date,
                source_file_id=excluded.source_file_id,
                import_warnings=excluded.import_warnings
            """,
            (
                sale.item_id,
                float(sale.qty_sold_365),
                float(sale.value_sold_365),
                iso_or_none(sale.last_sale_date),
                iso_or_none(sale.last_purchase_date),
                iso_or_none(sale.as_of_date),
                sale.source_file_id,
                json.dumps(sale.import_warnings, ensure_ascii=False) if sale.import_warnings else None,
            ),
        )


# -------------------------
# Catalog (item + snapshot)
# -------------------------

class CatalogRepo(CatalogStore):
    def __init__(self, db_path: str):
        self.db_path = db_path
        self.items = ItemRepo(db_path)
        self.sales = SalesRepo(db_path)

    def fetch_joined(self, item_ids: Optional[Iterable[int]] = None) -> List[Tuple[Item, SalesSnapshot]]:
        with connect(self.db_path) as c:
            if item_ids is None:
                rows = c.execute("SELECT * FROM vw_item_full ORDER BY id").fetchall()
            else:
                rows = []
                for chunk in _chunks(list(dict.fromkeys(item_ids))):
                    marks = ",".join("?" for _ in chunk)
                    rows.extend(
                        c.execute(f"SELECT * FROM vw_item_full WHERE id IN ({marks}) ORDER BY id", chunk).fetchall()
                    )
        return [(_row_to_item(r), _row_to_sale(r, item_id_col="id")) for r in rows]

    def ids_by_codes(self, codes: Iterable[str]) -> List[int]:
        return self.items.ids_by_codes(codes)

    def ids_by_keys(self, keys: Iterable[ItemKey]) -> List[int]:
        return self.items.ids_by_keys(keys)

    def upsert_with_snapshot(self, row: ImportRow, sale: SalesSnapshot) -> Item:
        now = datetime.now()
        with connect(self.db_path, immediate=True) as c:
            item, _created = self.items.upsert_from_import(c, row, now)
            self.sales.replace(c, replace(sale, item_id=item.id))
        return item


# -------------------------
# Archive
# -------------------------

class ArchiveRepo(ArchiveStore):
    def __init__(self, db_path: str):
        self.db_path = db_path

    def append(self, proposal: ArchivedProposal, conn: Optional[sqlite3.Connection] = None) -> ArchivedProposal:
        """Store header and lines together; ``conn`` joins a transaction opened by the caller."""
        if conn is not None:
            return self._insert(conn, proposal)
        with connect(self.db_path, immediate=True) as c:
            return self._insert(c, proposal)

    def _insert(self, c: sqlite3.Connection, proposal: ArchivedProposal) -> ArchivedProposal:
        cur = c.execute(
            "INSERT INTO archived_proposal (proposal_date, created_by, items_count) VALUES (?, ?, ?)",
            (proposal.proposal_date.isoformat(), proposal.created_by, proposal.items_count),
        )
        pid = int(cur.lastrowid)
        c.executemany(
            """
            INSERT INTO archived_proposal_line
                (proposal_id, position, item_id, code, precodice, description, supplier, ordered_qty)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (pid, pos, l.item_id, l.code, l.precodice, l.description, l.supplier, int(l.ordered_qty))
                for pos, l in enumerate(proposal.lines)
            ],
        )
        return ArchivedProposal(
            id=pid,
            proposal_date=proposal.proposal_date,
            created_by=proposal.created_by,
            items_count=proposal.items_count,
            lines=tuple(proposal.lines),
        )

    def list(self) -> List[ArchivedProposal]:
        with connect(self.db_path) as c:
            heads = c.execute(
                "SELECT * FROM archived_proposal ORDER BY id DESC"
            ).fetchall()
            lines = c.execute(
                "SELECT * FROM archived_proposal_line ORDER BY proposal_id, position"
            ).fetchall()

        by_prop: Dict[int, List[ArchivedProposalLine]] = {}
        for l in lines:
            by_prop.setdefault(int(l["proposal_id"]), []).append(
                ArchivedProposalLine(
                    item_id=l["item_id"],
                    code=l["code"],
                    ordered_qty=int(l["ordered_qty"]),
                    precodice=l["precodice"],
                    description=l["description"],
                    supplier=l["supplier"],
                )
            )
        return [
            ArchivedProposal(
                id=int(h["id"]),
                proposal_date=parse_datetime(h["proposal_date"]),
                created_by=h["created_by"],
                items_count=int(h["items_count"]),
                lines=tuple(by_prop.get(int(h["id"]), [])),
            )
            for h in heads
        ]


# -------------------------
# Draft proposal
# -------------------------

class DraftRepo(DraftStore):
    def __init__(self, db_path: str):
        self.db_path = db_path

    def load(self) -> List[ProposalLine]:
        with connect(self.db_path) as c:
            row = c.execute("SELECT lines_json FROM proposal_draft WHERE id = 1").fetchone()
        if not row:
            return []
        return [ProposalLine.from_dict(d) for d in json.loads(row["lines_json"])]

    def save(self, lines: List[ProposalLine], conn: Optional[sqlite3.Connection] = None) -> None:
        payload = json.dumps([l.to_dict() for l in lines], ensure_ascii=False)
        sql = """
            INSERT INTO proposal_draft (id, lines_json, updated_at) VALUES (1, ?, ?)
            ON CONFLICT(id) DO UPDATE SET lines_json=excluded.lines_json, updated_at=excluded.updated_at
        """
        params = (payload, datetime.now().isoformat())
        if conn is not None:
            conn.execute(sql, params)
            return
        with connect(self.db_path) as c:
            c.execute(sql, params)

    def commit_approval(self, archive: ArchiveStore, proposal: ArchivedProposal) -> ArchivedProposal:
        """Archive ``proposal`` and empty the draft in one immediate transaction.

        Falls back to two separate writes when the archive lives elsewhere.
        """
        if not (isinstance(archive, ArchiveRepo) and archive.db_path == self.db_path):
            return super().commit_approval(archive, proposal)
        with connect(self.db_path, immediate=True) as c:
            stored = archive.append(proposal, conn=c)
            self.save([], conn=c)
        return stored
