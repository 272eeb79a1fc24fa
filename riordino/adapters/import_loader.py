# riordino/adapters/import_loader.py
"""
Loaders for the spreadsheets fed into the system.

- load_sales_rows:    XLSX sales export (first sheet) -> ImportRow list,
                      validated before anything touches the database
- load_proposal_keys: CSV/XLSX list of (precodice, code) used to build a
                      proposal from a hand-picked set of items

Both functions:
- read the file with pandas;
- normalize headers (case, accents, punctuation) before matching them;
- raise ImportValidationError with a bounded list of messages when the
  file cannot be used as a whole.
"""

from __future__ import annotations

import re
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from riordino.adapters.parsers import clean_str, is_missing, to_date, to_number
from riordino.config import DEFAULTS
from riordino.domain.errors import ImportValidationError
from riordino.domain.models import ImportRow, ItemKey
from riordino.infra.logger import log_file_operation, log_system_event


# ---------------------------
# header normalization
# ---------------------------

def _slug(s: Any) -> str:
    """Lowercase, no accents, non-alphanumerics collapsed to one space."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    accents = dict(zip("áàâäéèêëíìîïóòôöúùûü", "aaaaeeeeiiiioooouuuu"))
    s = "".join(accents.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    return re.sub(r"\s+", " ", s).strip()


REQUIRED_SALES_HEADERS = {
    "codice": "code",
    "quantita venduta": "qty_sold_365",
    "valore venduto": "value_sold_365",
    "data ultima vendita": "last_sale_date",
    "data ultimo acquisto": "last_purchase_date",
}

OPTIONAL_SALES_HEADERS = {
    "precodice": "precodice",
    "descrizione": "description",
    "ubicazione": "ubicazione",
}

PROPOSAL_KEY_ALIASES = {
    "precodice": "precodice",
    "codice": "code",
    "codice articolo": "code",
}


def _rename(df: pd.DataFrame, aliases: Dict[str, str]) -> pd.DataFrame:
    return df.rename(columns={c: aliases.get(_slug(c), _slug(c)) for c in df.columns})


def limit_messages(messages: List[str], kind: str, limit: Optional[int] = None) -> List[str]:
    """First ``limit`` messages plus a "... e altri N <kind>." tail."""
    limit = DEFAULTS.max_messages if limit is None else limit
    if len(messages) <= limit:
        return list(messages)
    return messages[:limit] + [f"... e altri {len(messages) - limit} {kind}."]


# ---------------------------
# sales file
# ---------------------------

@dataclass
class SalesFile:
    rows: List[ImportRow] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)  # already limited for display
    warning_count: int = 0
    optional_columns: List[str] = field(default_factory=list)


def _read_sheet(path: str) -> pd.DataFrame:
    try:
        return pd.read_excel(path, sheet_name=0, dtype=object)
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        raise ImportValidationError(
            "Errore durante la lettura del file. Assicurati che sia un file XLSX valido.",
            code="UNREADABLE_FILE",
            details=[str(e)],
        ) from e


def _cell(row: pd.Series, key: str) -> Any:
    val = row.get(key)
    return None if is_missing(val) else val


def load_sales_rows(path: str) -> SalesFile:
    """Read and validate a sales export.

    Blocking errors (missing headers, missing code, non-numeric quantity or
    value, the same precodice/code twice) raise ImportValidationError.
    Negative quantities/values and unreadable dates are warnings: the row
    is kept. Row numbers in messages match the spreadsheet (header = 1).
    """
    log_file_operation("import", path)
    df = _rename(_read_sheet(path), {**REQUIRED_SALES_HEADERS, **OPTIONAL_SALES_HEADERS})

    missing = [h for h, col in REQUIRED_SALES_HEADERS.items() if col not in df.columns]
    if missing:
        raise ImportValidationError(
            f"Intestazioni di colonna mancanti: {', '.join(missing)}",
            code="MISSING_HEADERS",
            details=missing,
        )

    errors: List[str] = []
    warnings: List[str] = []
    positions: Dict[ItemKey, List[int]] = {}
    out = SalesFile(optional_columns=[c for c in OPTIONAL_SALES_HEADERS.values() if c in df.columns])

    for idx, row in df.iterrows():
        row_no = int(idx) + 2
        code = clean_str(_cell(row, "code"))
        if code is None:
            errors.append(f"Riga {row_no}: il 'CODICE' è obbligatorio.")
            continue
        precodice = clean_str(_cell(row, "precodice"))
        key = ItemKey.of(precodice, code)
        positions.setdefault(key, []).append(row_no)

        numbers = {}
        for col, label in (("qty_sold_365", "QUANTITA VENDUTA"), ("value_sold_365", "VALORE VENDUTO")):
            raw = _cell(row, col)
            num = 0.0 if raw is None else to_number(raw)
            if num is None:
                errors.append(f"Riga {row_no} (Codice: {code}): '{label}' non è un numero. Valore: {raw}")
                num = 0.0
            elif num < 0:
                warnings.append(f"Riga {row_no} (Codice: {code}): '{label}' importata con valore negativo: {num:g}")
            numbers[col] = num

        dates = {}
        for col, label in (("last_sale_date", "DATA ULTIMA VENDITA"), ("last_purchase_date", "DATA ULTIMO ACQUISTO")):
            raw = _cell(row, col)
            parsed = to_date(raw)
            if raw is not None and parsed is None:
                warnings.append(f"Riga {row_no} (Codice: {code}): '{label}' non riconosciuta. Valore: {raw}")
            dates[col] = parsed.isoformat() if parsed else None

        out.rows.append(
            ImportRow(
                code=code,
                precodice=precodice,
                description=clean_str(_cell(row, "description")),
                ubicazione=clean_str(_cell(row, "ubicazione")),
                **numbers,
                **dates,
            )
        )

    for key, rows in positions.items():
        if len(rows) > 1:
            who = (
                f"la combinazione PRECODICE '{key.precodice}' e CODICE '{key.code}'"
                if key.precodice else f"il 'CODICE' '{key.code}'"
            )
            errors.append(f"{who} è duplicata all'interno del file. Si trova nelle righe: {', '.join(map(str, rows))}.")

    if errors:
        log_system_event("import_validation_failed", {"file": path, "errors": len(errors)}, level="warning")
        raise ImportValidationError(
            f"Il file contiene {len(errors)} errori bloccanti",
            code="INVALID_IMPORT_FILE",
            details=limit_messages(errors, "errori"),
        )

    out.warning_count = len(warnings)
    out.warnings = limit_messages(warnings, "avvisi")
    log_file_operation("import", path, rows_processed=len(out.rows), warnings=len(warnings))
    return out


# ---------------------------
# proposal key list
# ---------------------------

def _read_table(path: str) -> pd.DataFrame:
    suffix = Path(path).suffix.lower()
    try:
        if suffix == ".csv":
            # separator sniffed: exports use both ',' and ';'
            return pd.read_csv(path, sep=None, engine="python", dtype=str, encoding="utf-8-sig")
        return pd.read_excel(path, sheet_name=0, dtype=object)
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        raise ImportValidationError(
            "Impossibile leggere il file dei codici.",
            code="UNREADABLE_FILE",
            details=[str(e)],
        ) from e


def load_proposal_keys(path: str) -> List[ItemKey]:
    """(precodice, code) keys from a CSV or XLSX; rows without a code are skipped."""
    df = _rename(_read_table(path), PROPOSAL_KEY_ALIASES)
    if "code" not in df.columns:
        raise ImportValidationError(
            "Colonna 'CODICE' (o 'CODICE ARTICOLO') non trovata",
            code="MISSING_HEADERS",
            details=["codice"],
        )
    keys: List[ItemKey] = []
    for _, row in df.iterrows():
        code = clean_str(_cell(row, "code"))
        if code is None:
            continue
        keys.append(ItemKey.of(clean_str(_cell(row, "precodice")), code))
    log_file_operation("import", path, rows_processed=len(keys), kind="proposal_keys")
    return list(dict.fromkeys(keys))
