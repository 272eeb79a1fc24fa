from datetime import date
from pathlib import Path

import pandas as pd
from typer.testing import CliRunner

from riordino.adapters.cli import app
from riordino.domain.models import ItemKey
from riordino.infra.repositories import ArchiveRepo, DraftRepo, ItemRepo

runner = CliRunner()
ENV = {"COLUMNS": "250"}


def _invoke(*args):
    return runner.invoke(app, list(args), env=ENV)


def _sales_file(tmp_path: Path) -> str:
    today = date.today().isoformat()
    path = tmp_path / "vendite.xlsx"
    pd.DataFrame(
        [
            ["", "A1", "Vite M4", 365, 730, today, today],
            ["", "B2", "Dado M4", 0, 0, "", ""],
        ],
        columns=["PRECODICE", "CODICE", "DESCRIZIONE", "QUANTITÀ VENDUTA", "VALORE VENDUTO",
                 "DATA ULTIMA VENDITA", "DATA ULTIMO ACQUISTO"],
    ).to_excel(path, index=False)
    return str(path)


def _imported_db(tmp_path: Path) -> str:
    db = str(tmp_path / "riordino.sqlite")
    result = _invoke("import", _sales_file(tmp_path), "--db", db)
    assert result.exit_code == 0, result.output
    return db


def test_migrate_and_policy_list(tmp_path):
    db = str(tmp_path / "riordino.sqlite")
    result = _invoke("migrate", "--db", db)
    assert result.exit_code == 0, result.output
    assert Path(db).exists()

    result = _invoke("policy", "list", "--db", db)
    assert result.exit_code == 0, result.output
    assert "Default 2025Q3" in result.output
    assert "non implementato" in result.output


def test_import_and_catalog(tmp_path):
    db = _imported_db(tmp_path)
    assert ItemRepo(db).get_by_key(ItemKey.of(None, "B2")).description == "Dado M4"

    result = _invoke("catalogo", "--db", db)
    assert result.exit_code == 0, result.output
    assert "A1" in result.output
    assert "69" in result.output

    result = _invoke("catalogo", "--da-ordinare", "--db", db)
    assert "B2" not in result.output


def test_import_rejects_a_file_without_headers(tmp_path):
    path = tmp_path / "sbagliato.xlsx"
    pd.DataFrame([["A1"]], columns=["CODICE"]).to_excel(path, index=False)
    result = _invoke("import", str(path), "--db", str(tmp_path / "riordino.sqlite"))
    assert result.exit_code == 1
    assert "Intestazioni di colonna mancanti" in result.output


def test_proposal_lifecycle(tmp_path):
    db = _imported_db(tmp_path)
    item_id = ItemRepo(db).get_by_key(ItemKey.of(None, "A1")).id

    result = _invoke("proposta", "genera", "--db", db)
    assert result.exit_code == 0, result.output
    (line,) = DraftRepo(db).load()
    assert (line.item_id, line.modified_qty) == (item_id, 69)

    assert _invoke("proposta", "qta", str(item_id), "50", "--db", db).exit_code == 0
    assert DraftRepo(db).load()[0].modified_qty == 50
    assert _invoke("proposta", "qta", "999", "5", "--db", db).exit_code == 1

    result = _invoke("proposta", "approva", "--da", "Mario", "--db", db)
    assert result.exit_code == 0, result.output
    assert DraftRepo(db).load() == []
    (archived,) = ArchiveRepo(db).list()
    assert archived.created_by == "Mario"
    assert [(l.code, l.ordered_qty) for l in archived.lines] == [("A1", 50)]

    result = _invoke("archivio", "lista", "--cerca", "a1", "--db", db)
    assert result.exit_code == 0, result.output
    assert "Mario" in result.output


def test_approving_an_empty_draft_fails(tmp_path):
    db = str(tmp_path / "riordino.sqlite")
    result = _invoke("proposta", "approva", "--da", "Mario", "--db", db)
    assert result.exit_code == 1
    assert "Nessuna proposta da approvare" in result.output
    assert ArchiveRepo(db).list() == []


def test_generate_with_selected_ids(tmp_path):
    db = _imported_db(tmp_path)
    b2 = ItemRepo(db).get_by_key(ItemKey.of(None, "B2")).id
    result = _invoke("proposta", "genera", "--id", str(b2), "--db", db)
    assert result.exit_code == 0, result.output
    assert [(l.item_id, l.modified_qty) for l in DraftRepo(db).load()] == [(b2, 0)]


def test_export_writes_one_sheet_per_supplier(tmp_path):
    db = _imported_db(tmp_path)
    assert _invoke("articolo", "imposta", "A1", "--fornitore", "Rossi", "--db", db).exit_code == 0
    assert _invoke("proposta", "genera", "--db", db).exit_code == 0

    out = tmp_path / "proposta.xlsx"
    result = _invoke("proposta", "esporta", "--out", str(out), "--db", db)
    assert result.exit_code == 0, result.output
    sheets = pd.read_excel(out, sheet_name=None)
    assert list(sheets) == ["Rossi"]
    assert sheets["Rossi"]["Codice"].tolist() == ["A1"]


def test_policy_activate_unknown_id(tmp_path):
    db = str(tmp_path / "riordino.sqlite")
    result = _invoke("policy", "activate", "999", "--db", db)
    assert result.exit_code == 1
    assert "non trovato" in result.output


def test_policy_create_and_activate(tmp_path):
    db = str(tmp_path / "riordino.sqlite")
    result = _invoke("policy", "create", "--nome", "Estate", "--sicurezza", "14", "--attiva", "--db", db)
    assert result.exit_code == 0, result.output

    result = _invoke("policy", "show", "--db", db)
    assert result.exit_code == 0, result.output
    assert "Estate" in result.output


def test_item_purchasing_data(tmp_path):
    db = _imported_db(tmp_path)
    result = _invoke(
        "articolo", "imposta", "A1",
        "--fornitore", "Rossi", "--lead-time", "0", "--multiplo", "10", "--blocca",
        "--db", db,
    )
    assert result.exit_code == 0, result.output
    item = ItemRepo(db).get_by_key(ItemKey.of(None, "A1"))
    assert (item.supplier, item.lead_time_days, item.order_multiple, item.reorder_blocked) == ("Rossi", 0, 10, True)

    assert _invoke("articolo", "imposta", "A1", "--lead-time-default", "--db", db).exit_code == 0
    assert ItemRepo(db).get_by_key(ItemKey.of(None, "A1")).lead_time_days is None

    result = _invoke("articolo", "imposta", "ZZZ", "--fornitore", "X", "--db", db)
    assert result.exit_code == 1


def test_database_errors_are_reported_without_a_traceback(tmp_path):
    # a directory cannot be opened as a SQLite file
    result = _invoke("catalogo", "--db", str(tmp_path))
    assert result.exit_code == 1
    assert "Errore del database" in result.output
    assert "Traceback" not in result.output
