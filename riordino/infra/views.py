# riordino/infra/views.py
"""
Helper views for the frequent queries.

Views created:
- vw_item_full:  items joined with their sales snapshot (items without
                 a snapshot are left out, they only appear after a
                 sales row arrives for them).

Note:
- The views assume the migrations were already applied.
- The index backing the ordered read of archived lines is also created
  when missing.
"""

from __future__ import annotations

from .db import connect


def create_views(db_path: str) -> None:
    with connect(db_path) as c:
        # -----------------------
        # Views (drop + create)
        # -----------------------
        c.executescript(
            """
            ---------------------------
            -- Item + sales snapshot
            ---------------------------
            DROP VIEW IF EXISTS vw_item_full;
            CREATE VIEW vw_item_full AS
            SELECT
                i.id,
                i.code,
                i.precodice,
                i.description,
                i.supplier,
                i.ubicazione,
                i.lead_time_days,
                i.min_order_qty,
                i.order_multiple,
                i.current_stock,
                i.reserved_qty,
                i.reorder_blocked,
                i.created_at,
                i.updated_at,
                s.qty_sold_365,
                s.value_sold_365,
                s.last_sale_date,
                s.last_purchase_date,
                s.as_of_date,
                s.source_file_id,
                s.import_warnings
            FROM item i
            JOIN sales_snapshot s ON s.item_id = i.id;
            """
        )

        # --------------------------------
        # Indexes (IF NOT EXISTS)
        # --------------------------------
        c.executescript(
            """
            CREATE INDEX IF NOT EXISTS idx_archive_line_prop ON archived_proposal_line(proposal_id, position);
            """
        )
