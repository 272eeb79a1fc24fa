# riordino/usecases/proposal.py
"""
UC: draft proposal lifecycle (generate -> edit -> approve/archive).

States:
- EMPTY: no lines
- DRAFT: one or more lines, freely editable

The draft lives in a ``ProposalSession`` owned by the caller. The CLI
keeps it between invocations through a ``DraftStore``; when the manager
is given one, every transition is saved right away.

Approval is the only path that writes to the archive. With a draft store,
the archive insert and the emptied draft are committed together
(``DraftStore.commit_approval``), so a failed approval leaves both
untouched and can simply be retried.
"""

from __future__ import annotations

import copy
from collections import OrderedDict
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, List, Optional

from riordino.config import DEFAULTS
from riordino.domain.errors import InvalidState
from riordino.domain.models import ArchivedProposal, ArchivedProposalLine, FullItemData, ProposalLine
from riordino.domain.stores import ArchiveStore, DraftStore
from riordino.infra.logger import log_proposal, log_system_event, log_transaction


class ProposalState(str, Enum):
    EMPTY = "empty"
    DRAFT = "draft"


class ProposalSession:
    """Ordered draft lines, at most one per item id."""

    def __init__(self, lines: Optional[Iterable[ProposalLine]] = None):
        self.lines: List[ProposalLine] = list(lines or [])

    @property
    def state(self) -> ProposalState:
        return ProposalState.DRAFT if self.lines else ProposalState.EMPTY

    def find(self, item_id: int) -> Optional[ProposalLine]:
        for line in self.lines:
            if line.item_id == item_id:
                return line
        return None

    def __len__(self) -> int:
        return len(self.lines)


def supplier_label(supplier: Optional[str]) -> str:
    s = (supplier or "").strip()
    return s or DEFAULTS.unknown_supplier


def group_by_supplier(lines: Iterable[ProposalLine]) -> "OrderedDict[str, List[ProposalLine]]":
    """Group lines by supplier label, groups in order of first appearance."""
    groups: "OrderedDict[str, List[ProposalLine]]" = OrderedDict()
    for line in lines:
        groups.setdefault(supplier_label(line.item_data.supplier), []).append(line)
    return groups


def candidates_for_proposal(
    items: Iterable[FullItemData], selected_ids: Optional[Iterable[int]] = None
) -> List[FullItemData]:
    """Items to put in a new draft.

    With a selection, the selected items (in catalog order); without one,
    every item with a positive recommendation.
    """
    items = list(items)
    if selected_ids is not None:
        wanted = set(selected_ids)
        if wanted:
            return [d for d in items if d.id in wanted]
    return [d for d in items if d.calculation.recommended_order_qty > 0]


class ProposalManager:
    def __init__(
        self,
        archive_store: ArchiveStore,
        session: Optional[ProposalSession] = None,
        draft_store: Optional[DraftStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.archive_store = archive_store
        self.draft_store = draft_store
        self.clock = clock or datetime.now
        if session is None:
            session = ProposalSession(draft_store.load() if draft_store is not None else None)
        self.session = session

    @property
    def state(self) -> ProposalState:
        return self.session.state

    @property
    def lines(self) -> List[ProposalLine]:
        return list(self.session.lines)

    def _persist(self) -> None:
        if self.draft_store is not None:
            self.draft_store.save(self.session.lines)

    def grouped_by_supplier(self) -> "OrderedDict[str, List[ProposalLine]]":
        return group_by_supplier(self.session.lines)

    # -------------------------
    # transitions
    # -------------------------

    def generate(self, items: Iterable[FullItemData]) -> List[ProposalLine]:
        """Replace the draft with one line per item (duplicates collapse)."""
        lines: List[ProposalLine] = []
        seen = set()
        for data in items:
            if data.id in seen:
                continue
            seen.add(data.id)
            # frozen copy: later catalog changes must not leak into the draft
            frozen = copy.deepcopy(data)
            lines.append(
                ProposalLine(
                    item_id=frozen.id,
                    item_data=frozen,
                    modified_qty=int(frozen.calculation.recommended_order_qty),
                )
            )
        self.session.lines = lines
        self._persist()
        log_proposal("generate", len(lines))
        return self.lines

    def update_qty(self, item_id: int, qty: int) -> bool:
        """Set the quantity of a line; returns False (no-op) for an unknown item."""
        line = self.session.find(item_id)
        if line is None:
            return False
        line.modified_qty = int(qty)
        self._persist()
        log_proposal("update_qty", len(self.session), item_id=item_id, qty=int(qty))
        return True

    def remove(self, item_id: int) -> bool:
        before = len(self.session)
        self.session.lines = [l for l in self.session.lines if l.item_id != item_id]
        removed = len(self.session) != before
        if removed:
            self._persist()
            log_proposal("remove", len(self.session), item_id=item_id)
        return removed

    def clear(self) -> None:
        self.session.lines = []
        self._persist()
        log_proposal("clear", 0)

    def approve(self, approver: str) -> ArchivedProposal:
        """Archive the draft and clear it.

        Raises:
            InvalidState: the draft is empty (nothing is written).
        """
        if self.state is ProposalState.EMPTY:
            raise InvalidState("Nessuna proposta da approvare", code="EMPTY_DRAFT")

        archived_lines: List[ArchivedProposalLine] = []
        for _supplier, group in self.grouped_by_supplier().items():
            for line in group:
                data = line.item_data
                archived_lines.append(
                    ArchivedProposalLine(
                        item_id=line.item_id,
                        code=data.code,
                        ordered_qty=int(line.modified_qty),
                        precodice=data.precodice,
                        description=data.description,
                        supplier=data.supplier,
                    )
                )
        proposal = ArchivedProposal(
            id=None,
            proposal_date=self.clock(),
            created_by=approver,
            items_count=len(archived_lines),
            lines=tuple(archived_lines),
        )

        try:
            if self.draft_store is not None:
                stored = self.draft_store.commit_approval(self.archive_store, proposal)
            else:
                stored = self.archive_store.append(proposal)
        except Exception as e:
            log_transaction("approve", {"approver": approver, "lines": len(archived_lines)}, error=str(e))
            log_system_event("approve_failed", {"error": str(e)}, level="error")
            raise

        # the stored draft was emptied together with the archive write
        self.session.lines = []
        log_proposal("approve", 0, proposal_id=stored.id, approver=approver, items=stored.items_count)
        log_transaction("approve", {"approver": approver}, result={"proposal_id": stored.id})
        return stored
