# riordino/usecases/archive.py
"""
UC: archive queries.

- list_archived:   every approved proposal, most recent first
- search_archived: proposals having at least one line whose code contains
                   a fragment (case-insensitive, linear scan)
"""

from __future__ import annotations

from typing import List

from riordino.domain.models import ArchivedProposal
from riordino.domain.stores import ArchiveStore
from riordino.infra.logger import log_system_event


def list_archived(store: ArchiveStore) -> List[ArchivedProposal]:
    return store.list()


def search_archived(store: ArchiveStore, code_fragment: str) -> List[ArchivedProposal]:
    """Proposals with a line code containing ``code_fragment``; all of them for a blank fragment."""
    needle = (code_fragment or "").strip().lower()
    proposals = store.list()
    if not needle:
        return proposals
    found = [
        p for p in proposals
        if any(needle in (line.code or "").lower() for line in p.lines)
    ]
    log_system_event("archive_search", {"fragment": needle, "matches": len(found)})
    return found
