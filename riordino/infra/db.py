# riordino/infra/db.py
"""
SQLite connection helpers.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

BUSY_TIMEOUT_S = 5.0


def _casefold(value):
    # SQLite lower() only folds ASCII
    return value.casefold() if isinstance(value, str) else value


@contextmanager
def connect(db_path: str, immediate: bool = False) -> Iterator[sqlite3.Connection]:
    """
    Open a SQLite connection for one unit of work:
    - parent directory created when missing
    - foreign_keys ON, row_factory = sqlite3.Row
    - SQL function casefold(text), Unicode-aware case folding
    - ``immediate=True`` takes the write lock up front (BEGIN IMMEDIATE), so
      a multi-statement write is never interleaved with another writer
    - commit on exit, rollback on exception
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, timeout=BUSY_TIMEOUT_S)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        if immediate:
            conn.execute("BEGIN IMMEDIATE;")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
