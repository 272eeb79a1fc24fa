# riordino/usecases/analysis.py
"""
UC: quick analysis of a list of codes.

Used to check a handful of items without building a proposal: the codes
found in the catalog come back with their calculation, the others are
reported as not found.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Tuple

from riordino.domain.models import FullItemData, ItemKey
from riordino.usecases.catalog import CatalogService

_SPLIT_RE = re.compile(r"[\s,;]+")


def split_codes(text: str) -> List[str]:
    """Split free text (spaces, commas, semicolons, newlines) into codes."""
    return [c for c in _SPLIT_RE.split(text or "") if c.strip()]


def _unique(values: Iterable[str]) -> List[str]:
    out: List[str] = []
    seen = set()
    for v in values:
        k = v.casefold()
        if k not in seen:
            seen.add(k)
            out.append(v)
    return out


def analyze_codes(catalog: CatalogService, codes: Iterable[str]) -> Tuple[List[FullItemData], List[str]]:
    """Return ``(results, not_found)``.

    Codes are trimmed and blanks ignored; ``not_found`` keeps the input
    order and spelling, without duplicates (compared ignoring case).
    """
    wanted = _unique(c.strip() for c in codes if c is not None and c.strip())
    if not wanted:
        return [], []
    results = catalog.find_by_codes(wanted)
    found = {d.code.strip().casefold() for d in results}
    not_found = [c for c in wanted if c.casefold() not in found]
    return results, not_found


def match_keys(catalog: CatalogService, keys: Iterable[ItemKey]) -> Tuple[List[FullItemData], List[ItemKey]]:
    """Return ``(found, not_found)`` for (precodice, code) keys read from a file."""
    keys = list(dict.fromkeys(ItemKey.of(k.precodice, k.code) for k in keys))
    found = catalog.find_by_keys(keys)
    hit = {d.key for d in found}
    return found, [k for k in keys if k not in hit]
