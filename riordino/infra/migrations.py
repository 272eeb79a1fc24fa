# riordino/infra/migrations.py
"""
Schema migrations driven by PRAGMA user_version.

V1: base tables (item, sales_snapshot, policy, archive, draft)
V2: single-active-policy index, archive immutability triggers and the
    default policy seed
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    # Item master data; (precodice, code) is the unique key
    """
    CREATE TABLE IF NOT EXISTS item (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        code TEXT NOT NULL,
        precodice TEXT NOT NULL DEFAULT '',
        description TEXT,
        supplier TEXT,
        ubicazione TEXT,
        lead_time_days INTEGER,              -- NULL -> policy default
        min_order_qty INTEGER NOT NULL DEFAULT 1 CHECK (min_order_qty >= 1),
        order_multiple INTEGER NOT NULL DEFAULT 1 CHECK (order_multiple >= 1),
        current_stock INTEGER NOT NULL DEFAULT 0 CHECK (current_stock >= 0),
        reserved_qty INTEGER NOT NULL DEFAULT 0 CHECK (reserved_qty >= 0),
        reorder_blocked INTEGER NOT NULL DEFAULT 0,
        created_at TEXT,
        updated_at TEXT,
        UNIQUE (precodice, code)
    );
    """,
    # One sales snapshot per item, replaced on every import
    """
    CREATE TABLE IF NOT EXISTS sales_snapshot (
        item_id INTEGER PRIMARY KEY,
        qty_sold_365 REAL NOT NULL DEFAULT 0,
        value_sold_365 REAL NOT NULL DEFAULT 0,
        last_sale_date TEXT,
        last_purchase_date TEXT,
        as_of_date TEXT,
        source_file_id TEXT,
        import_warnings TEXT,                -- JSON list of strings
        FOREIGN KEY (item_id) REFERENCES item(id) ON DELETE CASCADE
    );
    """,
    # Policy parameter sets
    """
    CREATE TABLE IF NOT EXISTS policy (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        run_rate_method TEXT NOT NULL,       -- simple_avg | weighted_avg | exp_smoothing
        avg_window_days INTEGER NOT NULL,
        recent_weight_days INTEGER NOT NULL,
        recent_weight_factor REAL NOT NULL,
        lead_time_default_days INTEGER NOT NULL,
        safety_stock_days INTEGER NOT NULL,
        slow_mover_qty_threshold REAL NOT NULL,
        slow_mover_days_since_last_sale INTEGER NOT NULL,
        min_revenue_threshold REAL NOT NULL,
        rounding_strategy TEXT NOT NULL,     -- to_multiple | to_min_then_multiple
        is_active INTEGER NOT NULL DEFAULT 0
    );
    """,
    # Approved proposals (header)
    """
    CREATE TABLE IF NOT EXISTS archived_proposal (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        proposal_date TEXT NOT NULL,
        created_by TEXT NOT NULL,
        items_count INTEGER NOT NULL
    );
    """,
    # Approved proposals (lines): identifying fields + ordered quantity only
    """
    CREATE TABLE IF NOT EXISTS archived_proposal_line (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        proposal_id INTEGER NOT NULL,
        position INTEGER NOT NULL,
        item_id INTEGER,
        code TEXT NOT NULL,
        precodice TEXT,
        description TEXT,
        supplier TEXT,
        ordered_qty INTEGER NOT NULL,
        FOREIGN KEY (proposal_id) REFERENCES archived_proposal(id)
    );
    """,
    # Current draft proposal (single row)
    """
    CREATE TABLE IF NOT EXISTS proposal_draft (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        lines_json TEXT NOT NULL,
        updated_at TEXT
    );
    """,
]

SCHEMA_V2: List[str] = [
    # at most one active policy
    """
    CREATE UNIQUE INDEX IF NOT EXISTS ux_policy_single_active
        ON policy(is_active) WHERE is_active = 1;
    """,
    # archive is append-only
    """
    CREATE TRIGGER IF NOT EXISTS trg_archived_proposal_no_update
    BEFORE UPDATE ON archived_proposal
    BEGIN
        SELECT RAISE(ABORT, 'archived proposals are immutable');
    END;
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_archived_proposal_no_delete
    BEFORE DELETE ON archived_proposal
    BEGIN
        SELECT RAISE(ABORT, 'archived proposals are immutable');
    END;
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_archived_line_no_update
    BEFORE UPDATE ON archived_proposal_line
    BEGIN
        SELECT RAISE(ABORT, 'archived proposals are immutable');
    END;
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_archived_line_no_delete
    BEFORE DELETE ON archived_proposal_line
    BEGIN
        SELECT RAISE(ABORT, 'archived proposals are immutable');
    END;
    """,
]

DEFAULT_POLICY = {
    "name": "Default 2025Q3",
    "run_rate_method": "weighted_avg",
    "avg_window_days": 365,
    "recent_weight_days": 90,
    "recent_weight_factor": 1.5,
    "lead_time_default_days": 2,
    "safety_stock_days": 7,
    "slow_mover_qty_threshold": 3,
    "slow_mover_days_since_last_sale": 120,
    "min_revenue_threshold": 50,
    "rounding_strategy": "to_multiple",
    "is_active": 1,
}


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)


def _apply_v2(conn) -> None:
    for sql in SCHEMA_V2:
        conn.executescript(sql)
    # seed only a fresh store: an existing one keeps its own active set
    n = conn.execute("SELECT COUNT(*) FROM policy").fetchone()[0]
    if not n:
        cols = ",".join(DEFAULT_POLICY.keys())
        vals = ",".join(f":{k}" for k in DEFAULT_POLICY.keys())
        conn.execute(f"INSERT INTO policy ({cols}) VALUES ({vals})", DEFAULT_POLICY)


def apply_migrations(db_path: str) -> None:
    """Apply incremental migrations according to PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2
