import sqlite3
from datetime import datetime

import pytest

from riordino.domain.models import ArchivedProposal, ArchivedProposalLine
from riordino.infra.db import connect
from riordino.infra.migrations import apply_migrations
from riordino.infra.repositories import ArchiveRepo
from riordino.infra.views import create_views
from riordino.usecases.archive import list_archived, search_archived


def _repo(tmp_path):
    db_path = str(tmp_path / "archive.sqlite")
    apply_migrations(db_path)
    create_views(db_path)
    return ArchiveRepo(db_path), db_path


def _proposal(when, *codes):
    lines = tuple(
        ArchivedProposalLine(item_id=i, code=c, ordered_qty=i * 10, supplier="Rossi")
        for i, c in enumerate(codes, start=1)
    )
    return ArchivedProposal(id=None, proposal_date=when, created_by="mario", items_count=len(lines), lines=lines)


def test_append_and_list_most_recent_first(tmp_path):
    repo, _ = _repo(tmp_path)
    first = repo.append(_proposal(datetime(2025, 1, 10, 9), "AB-1", "CD-2"))
    second = repo.append(_proposal(datetime(2025, 2, 10, 9), "EF-3"))

    listed = list_archived(repo)
    assert [p.id for p in listed] == [second.id, first.id]
    assert listed[1].proposal_date == datetime(2025, 1, 10, 9)
    assert [(l.code, l.ordered_qty) for l in listed[1].lines] == [("AB-1", 10), ("CD-2", 20)]
    assert listed[1].items_count == 2


def test_search_matches_any_line_code_ignoring_case(tmp_path):
    repo, _ = _repo(tmp_path)
    repo.append(_proposal(datetime(2025, 1, 10, 9), "AB-1", "CD-2"))
    repo.append(_proposal(datetime(2025, 2, 10, 9), "EF-3"))

    assert [len(p.lines) for p in search_archived(repo, "cd")] == [2]
    assert search_archived(repo, "zz") == []
    assert len(search_archived(repo, "  ")) == 2


def test_archived_rows_cannot_be_changed(tmp_path):
    repo, db_path = _repo(tmp_path)
    stored = repo.append(_proposal(datetime(2025, 1, 10, 9), "AB-1"))
    with pytest.raises(sqlite3.DatabaseError):
        with connect(db_path) as c:
            c.execute("UPDATE archived_proposal_line SET ordered_qty = 0")
    with pytest.raises(sqlite3.DatabaseError):
        with connect(db_path) as c:
            c.execute("DELETE FROM archived_proposal WHERE id = ?", (stored.id,))
    assert list_archived(repo)[0].lines[0].ordered_qty == 10


def test_only_the_catalog_view_is_created(tmp_path):
    _, db_path = _repo(tmp_path)
    with connect(db_path) as c:
        views = [r["name"] for r in c.execute("SELECT name FROM sqlite_master WHERE type = 'view'")]
    assert views == ["vw_item_full"]
