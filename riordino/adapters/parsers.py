"""
Parsing helpers for values read from sales spreadsheets.

Cells arrive as whatever the exporting system produced: numbers, strings
with an Italian decimal comma ("1.234,50"), Excel serial dates, pandas
timestamps or date strings in ISO or ``dd/mm/yyyy`` form. These functions
turn them into plain Python values, returning ``None`` when the value is
missing or cannot be interpreted, and leave the decision of what to do
with a ``None`` to the caller.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

import pandas as pd

# Excel day zero (serial 1 == 1900-01-01, accounting for the 1900 leap-year bug)
_EXCEL_EPOCH = date(1899, 12, 30)
# plausible serial range: 1900-01-01 .. 2099-12-31
_EXCEL_SERIAL_MIN = 1
_EXCEL_SERIAL_MAX = 73050

_NUM_RE = re.compile(r"^[-+]?\d+(?:\.\d+)?$")


def is_missing(val: Any) -> bool:
    """True for None, NaN/NaT/pd.NA and blank strings."""
    if val is None:
        return True
    if isinstance(val, str):
        return not val.strip()
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        return False


def clean_str(val: Any) -> Optional[str]:
    """Trimmed string, or None when the cell is empty."""
    if is_missing(val):
        return None
    if isinstance(val, float) and val.is_integer():
        # codes typed as numbers come back as 1234.0
        val = int(val)
    s = str(val).strip()
    return s or None


def to_number(val: Any) -> Optional[float]:
    """Interpret a numeric cell.

    Accepts ints/floats and strings using either a decimal point or an
    Italian decimal comma with optional dot thousands separators.

    Examples:
        "12,5"      → 12.5
        "1.234,50"  → 1234.5
        "-3"        → -3.0
        "abc"       → None
    """
    if is_missing(val):
        return None
    if isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        return float(val)
    s = str(val).strip().replace(" ", "").replace("€", "")
    if "," in s:
        s = s.replace(".", "").replace(",", ".")
    if not _NUM_RE.match(s):
        return None
    return float(s)


def excel_serial_to_date(serial: float) -> Optional[date]:
    if not (_EXCEL_SERIAL_MIN <= serial <= _EXCEL_SERIAL_MAX):
        return None
    return _EXCEL_EPOCH + timedelta(days=int(serial))


def to_date(val: Any) -> Optional[date]:
    """Interpret a date cell.

    Accepted forms: ``datetime``/``date``/``pd.Timestamp``, Excel serial
    numbers (also as numeric strings), ISO ``yyyy-mm-dd`` and
    ``dd/mm/yyyy`` (or ``dd-mm-yyyy``, ``dd/mm/yy``) strings.
    """
    if is_missing(val):
        return None
    if isinstance(val, pd.Timestamp):
        return val.date()
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        return excel_serial_to_date(float(val))

    s = str(val).strip()
    if _NUM_RE.match(s):
        return excel_serial_to_date(float(s))
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y", "%Y-%m-%d %H:%M:%S"):
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None
