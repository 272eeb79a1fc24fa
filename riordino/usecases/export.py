# riordino/usecases/export.py
"""
UC: export the draft proposal as an XLSX workbook.

One sheet per supplier, named after the supplier and cut to the 31
characters allowed by the format. Suppliers whose cut names collide end
up on the same sheet; the "Fornitore" column tells their rows apart.
"""

from __future__ import annotations

import re
from collections import OrderedDict
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from riordino.config import DEFAULTS
from riordino.domain.errors import InvalidState
from riordino.infra.logger import log_file_operation, log_transaction
from riordino.usecases.proposal import ProposalSession, group_by_supplier

EXPORT_COLUMNS = ["Fornitore", "Precodice", "Codice", "Descrizione", "Quantità da Ordinare"]

# characters rejected by Excel in worksheet titles
_BAD_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")


def default_export_name(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"Proposta_Ordine_{today.isoformat()}.xlsx"


def sheet_name(supplier: str) -> str:
    name = _BAD_SHEET_CHARS.sub("_", supplier).strip() or DEFAULTS.unknown_supplier
    return name[:DEFAULTS.sheet_name_limit]


def build_sheets(session: ProposalSession) -> "OrderedDict[str, List[Dict[str, Any]]]":
    """Rows of the workbook keyed by sheet name, in supplier order."""
    sheets: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()
    for supplier, lines in group_by_supplier(session.lines).items():
        rows = sheets.setdefault(sheet_name(supplier), [])
        for line in lines:
            data = line.item_data
            rows.append({
                "Fornitore": supplier,
                "Precodice": data.precodice or "",
                "Codice": data.code,
                "Descrizione": data.description or "",
                "Quantità da Ordinare": int(line.modified_qty),
            })
    return sheets


def export_proposal(session: ProposalSession, path: str) -> str:
    """Write the draft to ``path``; returns the path written."""
    if not session.lines:
        raise InvalidState("Nessuna proposta da esportare", code="EMPTY_DRAFT")

    sheets = build_sheets(session)
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    try:
        with pd.ExcelWriter(out, engine="openpyxl") as writer:
            for name, rows in sheets.items():
                pd.DataFrame(rows, columns=EXPORT_COLUMNS).to_excel(writer, sheet_name=name, index=False)
    except Exception as e:
        log_transaction("export", {"path": str(out)}, error=str(e))
        raise

    log_file_operation("export", str(out), rows_processed=len(session.lines), sheets=len(sheets))
    return str(out)
