import sqlite3
from datetime import datetime

import pytest

from riordino.domain.errors import InvalidState
from riordino.domain.models import (
    FullItemData,
    Item,
    ReplenishmentCalculation,
    SalesSnapshot,
)
from riordino.domain.stores import ArchiveStore
from riordino.infra.db import connect
from riordino.infra.migrations import apply_migrations
from riordino.infra.repositories import ArchiveRepo, DraftRepo
from riordino.usecases.proposal import (
    ProposalManager,
    ProposalSession,
    ProposalState,
    candidates_for_proposal,
)

NOW = datetime(2025, 7, 1, 12, 0)


class MemoryArchive(ArchiveStore):
    def __init__(self):
        self.records = []

    def append(self, proposal):
        stored = type(proposal)(
            id=len(self.records) + 1,
            proposal_date=proposal.proposal_date,
            created_by=proposal.created_by,
            items_count=proposal.items_count,
            lines=proposal.lines,
        )
        self.records.insert(0, stored)
        return stored

    def list(self):
        return list(self.records)


class FailingArchive(MemoryArchive):
    def append(self, proposal):
        raise RuntimeError("archive unavailable")


def _data(item_id, code, supplier=None, recommended=10, precodice=None):
    item = Item(id=item_id, code=code, precodice=precodice, description=f"Art {code}", supplier=supplier)
    sale = SalesSnapshot(item_id=item_id, qty_sold_365=100, value_sold_365=500)
    calc = ReplenishmentCalculation(
        item_id=item_id,
        daily_run_rate=100 / 365,
        forecast_60d=17,
        safety_stock=2,
        lead_time_cover_qty=1,
        recommended_order_qty=recommended,
    )
    return FullItemData(item=item, sale=sale, calculation=calc)


def _manager(archive=None):
    return ProposalManager(archive or MemoryArchive(), session=ProposalSession(), clock=lambda: NOW)


def test_generate_initializes_quantities_from_recommendations():
    m = _manager()
    lines = m.generate([_data(1, "A", recommended=5), _data(2, "B", recommended=0)])
    assert m.state is ProposalState.DRAFT
    assert [(l.item_id, l.modified_qty) for l in lines] == [(1, 5), (2, 0)]


def test_generate_replaces_the_previous_draft():
    m = _manager()
    m.generate([_data(1, "A")])
    m.update_qty(1, 99)
    m.generate([_data(2, "B")])
    assert [l.item_id for l in m.lines] == [2]


def test_generate_freezes_a_copy_of_the_item_data():
    data = _data(1, "A")
    m = _manager()
    m.generate([data])
    data.item.description = "changed later"
    assert m.lines[0].item_data.description == "Art A"


def test_update_qty_accepts_zero_and_ignores_unknown_items():
    m = _manager()
    m.generate([_data(1, "A")])
    assert m.update_qty(1, 0)
    assert m.lines[0].modified_qty == 0
    assert m.state is ProposalState.DRAFT
    assert not m.update_qty(42, 3)
    assert len(m.lines) == 1


def test_removing_every_line_behaves_like_never_generated():
    archive = MemoryArchive()
    m = _manager(archive)
    m.generate([_data(1, "A"), _data(2, "B")])
    assert m.remove(1)
    assert m.remove(2)
    assert not m.remove(2)
    assert m.state is ProposalState.EMPTY
    assert m.lines == []
    with pytest.raises(InvalidState):
        m.approve("mario")
    assert archive.list() == []


def test_approving_an_empty_draft_writes_nothing():
    archive = MemoryArchive()
    m = _manager(archive)
    m.generate([])
    with pytest.raises(InvalidState):
        m.approve("mario")
    assert archive.list() == []


def test_clear_discards_the_draft():
    m = _manager()
    m.generate([_data(1, "A")])
    m.clear()
    assert m.state is ProposalState.EMPTY


def test_approve_archives_edited_quantities_and_clears_the_draft():
    archive = MemoryArchive()
    m = _manager(archive)
    m.generate([_data(1, "A", recommended=10), _data(2, "B", recommended=4)])
    m.update_qty(1, 25)

    archived = m.approve("mario")

    assert archived.id == 1
    assert archived.created_by == "mario"
    assert archived.proposal_date == NOW
    assert archived.items_count == 2
    assert {l.code: l.ordered_qty for l in archived.lines} == {"A": 25, "B": 4}
    assert m.state is ProposalState.EMPTY
    assert archive.list() == [archived]


def test_approve_groups_lines_by_supplier():
    m = _manager()
    m.generate([
        _data(1, "A", supplier="Rossi"),
        _data(2, "B", supplier=None),
        _data(3, "C", supplier="Rossi"),
    ])
    assert list(m.grouped_by_supplier()) == ["Rossi", "Unknown"]
    archived = m.approve("mario")
    assert [l.code for l in archived.lines] == ["A", "C", "B"]
    # the archived line keeps the real (missing) supplier
    assert archived.lines[2].supplier is None


def test_failed_archive_write_keeps_the_draft():
    m = _manager(FailingArchive())
    m.generate([_data(1, "A")])
    m.update_qty(1, 3)
    with pytest.raises(RuntimeError):
        m.approve("mario")
    assert m.state is ProposalState.DRAFT
    assert m.lines[0].modified_qty == 3

    # retry against a working archive
    m.archive_store = MemoryArchive()
    archived = m.approve("mario")
    assert archived.lines[0].ordered_qty == 3


def test_candidates_use_selection_or_positive_recommendations():
    items = [_data(1, "A", recommended=0), _data(2, "B", recommended=3), _data(3, "C", recommended=1)]
    assert [d.id for d in candidates_for_proposal(items)] == [2, 3]
    assert [d.id for d in candidates_for_proposal(items, [3, 1])] == [1, 3]
    assert [d.id for d in candidates_for_proposal(items, [])] == [2, 3]


def test_draft_survives_between_managers(tmp_path):
    db_path = str(tmp_path / "draft.sqlite")
    apply_migrations(db_path)
    first = ProposalManager(MemoryArchive(), draft_store=DraftRepo(db_path))
    first.generate([_data(1, "A", supplier="Rossi"), _data(2, "B")])
    first.update_qty(2, 8)

    second = ProposalManager(MemoryArchive(), draft_store=DraftRepo(db_path))
    assert [(l.item_id, l.modified_qty) for l in second.lines] == [(1, 10), (2, 8)]
    assert second.lines[0].item_data.supplier == "Rossi"

    second.clear()
    third = ProposalManager(MemoryArchive(), draft_store=DraftRepo(db_path))
    assert third.state is ProposalState.EMPTY


class _DraftClearFails(DraftRepo):
    def save(self, lines, conn=None):
        if not lines:
            raise OSError("disco pieno")
        super().save(lines, conn=conn)


def _db(tmp_path):
    db_path = str(tmp_path / "approve.sqlite")
    apply_migrations(db_path)
    return db_path


def test_failed_draft_clear_rolls_back_the_archive_write(tmp_path):
    db_path = _db(tmp_path)
    archive = ArchiveRepo(db_path)
    m = ProposalManager(archive, draft_store=_DraftClearFails(db_path), clock=lambda: NOW)
    m.generate([_data(1, "A")])

    with pytest.raises(OSError):
        m.approve("mario")
    assert archive.list() == []
    assert m.state is ProposalState.DRAFT

    # a later run reloads the draft and approves it exactly once
    retry = ProposalManager(archive, draft_store=DraftRepo(db_path), clock=lambda: NOW)
    assert [l.item_id for l in retry.lines] == [1]
    retry.approve("mario")
    assert len(archive.list()) == 1
    assert DraftRepo(db_path).load() == []


def test_failed_archive_insert_keeps_the_stored_draft(tmp_path):
    db_path = _db(tmp_path)
    with connect(db_path) as c:
        c.execute(
            "CREATE TRIGGER block_lines BEFORE INSERT ON archived_proposal_line "
            "BEGIN SELECT RAISE(ABORT, 'archivio bloccato'); END;"
        )
    archive = ArchiveRepo(db_path)
    m = ProposalManager(archive, draft_store=DraftRepo(db_path), clock=lambda: NOW)
    m.generate([_data(1, "A"), _data(2, "B")])

    with pytest.raises(sqlite3.DatabaseError):
        m.approve("mario")
    assert archive.list() == []
    assert [l.item_id for l in DraftRepo(db_path).load()] == [1, 2]


def test_approval_with_a_separate_archive_still_empties_the_stored_draft(tmp_path):
    db_path = _db(tmp_path)
    archive = MemoryArchive()
    m = ProposalManager(archive, draft_store=DraftRepo(db_path), clock=lambda: NOW)
    m.generate([_data(1, "A")])
    m.approve("mario")
    assert len(archive.list()) == 1
    assert DraftRepo(db_path).load() == []
