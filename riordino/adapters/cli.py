# riordino/adapters/cli.py
"""
CLI del sistema di riordino (Typer).

Comandi principali:
- migrate                      -> applica le migrazioni e crea le viste
- import <xlsx>                -> importa l'export vendite (articoli + snapshot)
- catalogo                     -> catalogo con le quantità consigliate
- analizza <codici...>         -> analisi rapida di alcuni codici
- kpi                          -> indicatori principali del catalogo
- policy list/show/create/update/activate
- proposta genera/mostra/qta/rimuovi/svuota/approva/esporta
- archivio lista               -> proposte approvate (ricerca per codice)
- articolo imposta <codice>    -> fornitore, lead time, vincoli d'acquisto, giacenza
- log [tipo]                   -> ultime righe di un file di log
"""

from __future__ import annotations

import functools
import sqlite3
from pathlib import Path
from typing import Iterable, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from riordino.config import DB_PATH
from riordino.adapters.import_loader import load_proposal_keys, load_sales_rows
from riordino.domain.errors import NotFound, RiordinoError
from riordino.domain.formulas import is_run_rate_method_implemented
from riordino.domain.models import FullItemData, ItemKey, PolicyParams, RoundingStrategy, RunRateMethod
from riordino.infra import logger as logs
from riordino.infra.migrations import apply_migrations
from riordino.infra.repositories import ArchiveRepo, CatalogRepo, DraftRepo, ItemRepo, PolicyRepo
from riordino.infra.views import create_views
from riordino.usecases.analysis import analyze_codes, match_keys, split_codes
from riordino.usecases.archive import search_archived
from riordino.usecases.catalog import CatalogService
from riordino.usecases.export import default_export_name, export_proposal
from riordino.usecases.proposal import ProposalManager, candidates_for_proposal, supplier_label
from riordino.usecases.reports import filter_items, kpi_summary


app = typer.Typer(help="Riordino: proposte d'ordine dai dati di vendita")
console = Console()


# -----------------------
# util
# -----------------------

def _prepare(db_path: str) -> None:
    apply_migrations(db_path)
    create_views(db_path)


def _catalog(db_path: str) -> CatalogService:
    _prepare(db_path)
    return CatalogService(PolicyRepo(db_path), CatalogRepo(db_path))


def _manager(db_path: str) -> ProposalManager:
    _prepare(db_path)
    return ProposalManager(ArchiveRepo(db_path), draft_store=DraftRepo(db_path))


def _num(val: float, decimals: int = 2) -> str:
    """Italian number format: 1.234,56"""
    return f"{val:,.{decimals}f}".replace(",", "X").replace(".", ",").replace("X", ".")


def _print_error(err: Exception, title: str = "Errore") -> None:
    lines = [str(err)]
    details = getattr(err, "details", None)
    if isinstance(details, (list, tuple)):
        lines.extend(f"• {d}" for d in details)
    console.print(Panel("\n".join(lines), title=title, border_style="red"))


def _guard(fn):
    """Print domain and database errors as a panel and exit with code 1 instead of a traceback."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except RiordinoError as e:
            logs.log_system_event("cli_error", {"command": fn.__name__, "error": e.to_dict()}, level="error")
            _print_error(e)
            raise typer.Exit(code=1)
        except ValueError as e:
            _print_error(e, title="Valore non valido")
            raise typer.Exit(code=1)
        except sqlite3.Error as e:
            logs.log_system_event("cli_db_error", {"command": fn.__name__, "error": str(e)}, level="error")
            _print_error(e, title="Errore del database")
            raise typer.Exit(code=1)
    return wrapper


def _items_table(items: Iterable[FullItemData], title: str) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("ID", justify="right")
    table.add_column("Precodice")
    table.add_column("Codice")
    table.add_column("Descrizione")
    table.add_column("Fornitore")
    table.add_column("Giacenza", justify="right")
    table.add_column("Venduto 365", justify="right")
    table.add_column("Consigliato", justify="right")
    table.add_column("Note")
    for d in items:
        calc = d.calculation
        notes = []
        if calc.slow_mover_flag:
            notes.append(f"[yellow]{calc.slow_mover_reason}[/]")
        if d.item.reorder_blocked:
            notes.append("[red]riordino bloccato[/]")
        if d.sale.import_warnings:
            notes.append(f"[dim]{'; '.join(d.sale.import_warnings)}[/]")
        qty = f"[bold green]{calc.recommended_order_qty}[/]" if calc.recommended_order_qty > 0 else "0"
        table.add_row(
            str(d.id),
            d.precodice or "",
            d.code,
            d.description or "",
            d.supplier or "",
            str(d.item.current_stock),
            _num(d.sale.qty_sold_365, 0),
            qty,
            " ".join(notes),
        )
    return table


def _method_label(method: RunRateMethod) -> str:
    if is_run_rate_method_implemented(method):
        return method.value
    return f"{method.value} [yellow](non implementato: media semplice)[/]"


def _policy_table(policies: List[PolicyParams]) -> Table:
    table = Table(title="Set di parametri", box=box.ROUNDED)
    for col in ("ID", "Nome", "Metodo", "Sicurezza gg", "Lead time gg", "Lento (q / gg / €)", "Arrotondamento", "Attivo"):
        table.add_column(col)
    for p in policies:
        table.add_row(
            str(p.id),
            p.name,
            _method_label(p.run_rate_method),
            str(p.safety_stock_days),
            str(p.lead_time_default_days),
            f"{p.slow_mover_qty_threshold:g} / {p.slow_mover_days_since_last_sale} / {p.min_revenue_threshold:g}",
            p.rounding_strategy.value,
            "[bold green]sì[/]" if p.is_active else "",
        )
    return table


# -----------------------
# logging switch
# -----------------------

@app.callback()
def main_callback(
    log: bool = typer.Option(False, "--log", help="Scrive i file di log in riordino/logs"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Mostra gli eventi di sistema a console"),
):
    if log:
        logs.ENABLE_LOGGING = True
    if verbose:
        logs.ENABLE_OUTPUT = True


# -----------------------
# comandi di infra
# -----------------------

@app.command("migrate")
@_guard
def cmd_migrate(db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite")):
    """Applica le migrazioni e ricrea le viste."""
    _prepare(db_path)
    logs.log_database_operation("schema", "MIGRATE", 0, db=db_path)
    typer.echo(f">> Migrazioni applicate e viste create in: {db_path}")


@app.command("import")
@_guard
def cmd_import(
    path: str = typer.Argument(..., help="File XLSX esportato dal gestionale"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite"),
):
    """Importa vendite e anagrafica dal file XLSX."""
    sales_file = load_sales_rows(path)
    if sales_file.warnings:
        console.print(Panel("\n".join(sales_file.warnings), title="Avvisi", border_style="yellow"))

    result = _catalog(db_path).ingest(sales_file.rows, source_file_id=Path(path).name)
    console.print(
        Panel(
            f"Righe importate: {result.imported_count}\nRighe non importate: {result.failed_count}",
            title="Importazione completata",
            border_style="green" if not result.failed_count else "yellow",
        )
    )
    for w in result.failures:
        console.print(f"[red]{w}[/]")


# -----------------------
# catalogo e analisi
# -----------------------

@app.command("catalogo")
@_guard
def cmd_catalogo(
    cerca: Optional[str] = typer.Option(None, "--cerca", help="Testo su codice, descrizione, precodice, ubicazione"),
    lenti: bool = typer.Option(False, "--lenti", help="Solo articoli poco movimentati"),
    da_ordinare: bool = typer.Option(False, "--da-ordinare", help="Solo articoli con quantità consigliata"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite"),
):
    """Mostra il catalogo con le quantità consigliate dal set di parametri attivo."""
    items = filter_items(_catalog(db_path).get_all(), cerca, only_slow_movers=lenti, only_recommended=da_ordinare)
    if not items:
        console.print(Panel("Nessun articolo trovato", title="Catalogo", border_style="yellow"))
        return
    console.print(_items_table(items, title=f"Catalogo ({len(items)} articoli)"))


@app.command("analizza")
@_guard
def cmd_analizza(
    codici: List[str] = typer.Argument(..., help="Codici separati da spazio, virgola o punto e virgola"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite"),
):
    """Analisi rapida di un elenco di codici."""
    results, not_found = analyze_codes(_catalog(db_path), split_codes(" ".join(codici)))
    if results:
        console.print(_items_table(results, title="Analisi rapida"))
    if not_found:
        console.print(Panel(", ".join(not_found), title="Codici non trovati", border_style="yellow"))


@app.command("kpi")
@_guard
def cmd_kpi(db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite")):
    """Indicatori principali del catalogo."""
    k = kpi_summary(_catalog(db_path).get_all())
    table = Table(title="Indicatori", box=box.ROUNDED)
    table.add_column("Indicatore")
    table.add_column("Valore", justify="right")
    table.add_row("Articoli totali", str(k["total_items"]))
    table.add_row("Articoli da riordinare", f"{k['items_to_reorder']} ({_num(k['reorder_pct'], 1)}%)")
    table.add_row("Valore ordine proposto", f"€ {_num(k['order_value'])}")
    table.add_row("Articoli poco movimentati", str(k["slow_movers"]))
    console.print(table)


# -----------------------
# set di parametri
# -----------------------

policy_app = typer.Typer(help="Gestione dei set di parametri di calcolo")
app.add_typer(policy_app, name="policy")


@policy_app.command("list")
@_guard
def cmd_policy_list(db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite")):
    """Elenca i set di parametri."""
    _prepare(db_path)
    console.print(_policy_table(PolicyRepo(db_path).list()))


@policy_app.command("show")
@_guard
def cmd_policy_show(
    policy_id: Optional[int] = typer.Argument(None, help="ID del set (default: quello attivo)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite"),
):
    """Mostra un set di parametri."""
    _prepare(db_path)
    repo = PolicyRepo(db_path)
    p = repo.get_active() if policy_id is None else repo.get(policy_id)
    table = Table(title=f"Set di parametri: {p.name}", box=box.ROUNDED)
    table.add_column("Parametro")
    table.add_column("Valore")
    table.add_row("ID", str(p.id))
    table.add_row("Metodo run rate", _method_label(p.run_rate_method))
    table.add_row("Finestra media (gg)", str(p.avg_window_days))
    table.add_row("Finestra recente (gg) × fattore", f"{p.recent_weight_days} × {p.recent_weight_factor:g}")
    table.add_row("Lead time default (gg)", str(p.lead_time_default_days))
    table.add_row("Scorta di sicurezza (gg)", str(p.safety_stock_days))
    table.add_row("Soglia lento: quantità", f"{p.slow_mover_qty_threshold:g}")
    table.add_row("Soglia lento: giorni senza vendite", str(p.slow_mover_days_since_last_sale))
    table.add_row("Soglia fatturato minimo (€)", f"{p.min_revenue_threshold:g}")
    table.add_row("Arrotondamento", p.rounding_strategy.value)
    table.add_row("Attivo", "sì" if p.is_active else "no")
    console.print(table)


@policy_app.command("create")
@_guard
def cmd_policy_create(
    nome: str = typer.Option(..., "--nome", help="Nome del set"),
    metodo: RunRateMethod = typer.Option(RunRateMethod.SIMPLE_AVG, "--metodo"),
    finestra: int = typer.Option(365, "--finestra", min=1),
    giorni_recenti: int = typer.Option(90, "--giorni-recenti", min=0),
    fattore_recenti: float = typer.Option(1.5, "--fattore-recenti", min=0),
    lead_time: int = typer.Option(2, "--lead-time", min=0),
    sicurezza: int = typer.Option(7, "--sicurezza", min=0),
    lento_qta: float = typer.Option(3, "--lento-qta", min=0),
    lento_giorni: int = typer.Option(120, "--lento-giorni", min=0),
    fatturato_min: float = typer.Option(0, "--fatturato-min", min=0),
    arrotondamento: RoundingStrategy = typer.Option(RoundingStrategy.TO_MULTIPLE, "--arrotondamento"),
    attiva: bool = typer.Option(False, "--attiva", help="Attiva subito il nuovo set"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite"),
):
    """Crea un nuovo set di parametri (inattivo, salvo --attiva)."""
    _prepare(db_path)
    repo = PolicyRepo(db_path)
    saved = repo.save(
        PolicyParams(
            name=nome,
            run_rate_method=metodo,
            avg_window_days=finestra,
            recent_weight_days=giorni_recenti,
            recent_weight_factor=fattore_recenti,
            lead_time_default_days=lead_time,
            safety_stock_days=sicurezza,
            slow_mover_qty_threshold=lento_qta,
            slow_mover_days_since_last_sale=lento_giorni,
            min_revenue_threshold=fatturato_min,
            rounding_strategy=arrotondamento,
        )
    )
    if attiva:
        repo.set_active(saved.id)
    logs.log_transaction("policy_create", {"name": nome}, result={"id": saved.id, "active": attiva})
    typer.echo(f">> Set di parametri creato con ID {saved.id}" + (" e attivato" if attiva else ""))


@policy_app.command("update")
@_guard
def cmd_policy_update(
    policy_id: int = typer.Argument(..., help="ID del set"),
    nome: Optional[str] = typer.Option(None, "--nome"),
    metodo: Optional[RunRateMethod] = typer.Option(None, "--metodo"),
    finestra: Optional[int] = typer.Option(None, "--finestra", min=1),
    giorni_recenti: Optional[int] = typer.Option(None, "--giorni-recenti", min=0),
    fattore_recenti: Optional[float] = typer.Option(None, "--fattore-recenti", min=0),
    lead_time: Optional[int] = typer.Option(None, "--lead-time", min=0),
    sicurezza: Optional[int] = typer.Option(None, "--sicurezza", min=0),
    lento_qta: Optional[float] = typer.Option(None, "--lento-qta", min=0),
    lento_giorni: Optional[int] = typer.Option(None, "--lento-giorni", min=0),
    fatturato_min: Optional[float] = typer.Option(None, "--fatturato-min", min=0),
    arrotondamento: Optional[RoundingStrategy] = typer.Option(None, "--arrotondamento"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite"),
):
    """Modifica un set di parametri (solo i valori indicati). L'attivazione passa da `activate`."""
    _prepare(db_path)
    repo = PolicyRepo(db_path)
    changes = {
        "name": nome,
        "run_rate_method": metodo,
        "avg_window_days": finestra,
        "recent_weight_days": giorni_recenti,
        "recent_weight_factor": fattore_recenti,
        "lead_time_default_days": lead_time,
        "safety_stock_days": sicurezza,
        "slow_mover_qty_threshold": lento_qta,
        "slow_mover_days_since_last_sale": lento_giorni,
        "min_revenue_threshold": fatturato_min,
        "rounding_strategy": arrotondamento,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        typer.echo("Niente da modificare. Indica almeno un parametro.")
        raise typer.Exit(code=1)
    updated = repo.update(repo.get(policy_id).copy(**changes))
    logs.log_transaction("policy_update", {"id": policy_id, **{k: str(v) for k, v in changes.items()}}, result="ok")
    typer.echo(f">> Set di parametri {updated.id} aggiornato.")


@policy_app.command("activate")
@_guard
def cmd_policy_activate(
    policy_id: int = typer.Argument(..., help="ID del set da attivare"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite"),
):
    """Attiva un set di parametri (tutti gli altri vengono disattivati)."""
    _prepare(db_path)
    PolicyRepo(db_path).set_active(policy_id)
    logs.log_transaction("set_active_policy", {"id": policy_id}, result="ok")
    typer.echo(f">> Set di parametri {policy_id} attivo.")


# -----------------------
# proposta d'ordine
# -----------------------

proposta_app = typer.Typer(help="Proposta d'ordine in bozza")
app.add_typer(proposta_app, name="proposta")


def _print_draft(manager: ProposalManager) -> None:
    groups = manager.grouped_by_supplier()
    if not groups:
        console.print(Panel("Nessuna proposta in bozza", title="Proposta", border_style="yellow"))
        return
    for supplier, lines in groups.items():
        table = Table(title=f"Fornitore: {supplier}", box=box.ROUNDED)
        table.add_column("ID", justify="right")
        table.add_column("Precodice")
        table.add_column("Codice")
        table.add_column("Descrizione")
        table.add_column("Consigliato", justify="right")
        table.add_column("Da ordinare", justify="right")
        for line in lines:
            data = line.item_data
            recommended = data.calculation.recommended_order_qty
            qty = str(line.modified_qty)
            if line.modified_qty != recommended:
                qty = f"[bold cyan]{qty}[/]"
            table.add_row(str(line.item_id), data.precodice or "", data.code, data.description or "", str(recommended), qty)
        console.print(table)
    console.print(f"[dim]{len(manager.lines)} righe, {len(groups)} fornitori[/dim]")


@proposta_app.command("genera")
@_guard
def cmd_proposta_genera(
    ids: Optional[List[int]] = typer.Option(None, "--id", help="ID articolo da includere (ripetibile)"),
    file: Optional[str] = typer.Option(None, "--file", help="CSV/XLSX con colonne PRECODICE e CODICE"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite"),
):
    """Genera una nuova bozza (sostituisce quella corrente).

    Senza opzioni include tutti gli articoli con quantità consigliata.
    """
    catalog = _catalog(db_path)
    manager = ProposalManager(ArchiveRepo(db_path), draft_store=DraftRepo(db_path))
    if file:
        found, missing = match_keys(catalog, load_proposal_keys(file))
        if missing:
            shown = [f"{k.precodice}/{k.code}" if k.precodice else k.code for k in missing]
            console.print(Panel(", ".join(shown), title="Articoli non trovati", border_style="yellow"))
        items = found
    else:
        items = candidates_for_proposal(catalog.get_all(), ids)
    manager.generate(items)
    _print_draft(manager)


@proposta_app.command("mostra")
@_guard
def cmd_proposta_mostra(db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite")):
    """Mostra la bozza corrente raggruppata per fornitore."""
    _print_draft(_manager(db_path))


@proposta_app.command("qta")
@_guard
def cmd_proposta_qta(
    item_id: int = typer.Argument(..., help="ID articolo"),
    qta: int = typer.Argument(..., min=0, help="Quantità da ordinare (0 = non ordinare)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite"),
):
    """Modifica la quantità di una riga."""
    if not _manager(db_path).update_qty(item_id, qta):
        typer.echo(f"Articolo {item_id} non presente nella bozza.")
        raise typer.Exit(code=1)
    typer.echo(f">> Quantità aggiornata: {item_id} -> {qta}")


@proposta_app.command("rimuovi")
@_guard
def cmd_proposta_rimuovi(
    item_id: int = typer.Argument(..., help="ID articolo"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite"),
):
    """Rimuove una riga dalla bozza."""
    manager = _manager(db_path)
    if not manager.remove(item_id):
        typer.echo(f"Articolo {item_id} non presente nella bozza.")
        raise typer.Exit(code=1)
    typer.echo(f">> Riga rimossa. Righe rimaste: {len(manager.lines)}")


@proposta_app.command("svuota")
@_guard
def cmd_proposta_svuota(db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite")):
    """Scarta la bozza corrente."""
    _manager(db_path).clear()
    typer.echo(">> Bozza svuotata.")


@proposta_app.command("approva")
@_guard
def cmd_proposta_approva(
    approvatore: str = typer.Option(..., "--da", help="Chi approva la proposta"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite"),
):
    """Approva la bozza: la archivia e la svuota."""
    archived = _manager(db_path).approve(approvatore)
    typer.echo(f">> Proposta {archived.id} archiviata ({archived.items_count} righe).")


@proposta_app.command("esporta")
@_guard
def cmd_proposta_esporta(
    out: Optional[str] = typer.Option(None, "--out", help="File XLSX di destinazione"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite"),
):
    """Esporta la bozza in XLSX, un foglio per fornitore."""
    path = export_proposal(_manager(db_path).session, out or default_export_name())
    typer.echo(f">> Proposta esportata in: {path}")


# -----------------------
# archivio
# -----------------------

archivio_app = typer.Typer(help="Proposte approvate")
app.add_typer(archivio_app, name="archivio")


@archivio_app.command("lista")
@_guard
def cmd_archivio_lista(
    cerca: Optional[str] = typer.Option(None, "--cerca", help="Parte di un codice articolo"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite"),
):
    """Elenca le proposte approvate, dalla più recente."""
    _prepare(db_path)
    proposals = search_archived(ArchiveRepo(db_path), cerca or "")
    if not proposals:
        console.print(Panel("Nessuna proposta archiviata", title="Archivio", border_style="yellow"))
        return
    for p in proposals:
        table = Table(
            title=f"Proposta {p.id} | {p.proposal_date:%d/%m/%Y %H:%M} | {p.created_by}",
            box=box.ROUNDED,
        )
        table.add_column("Fornitore")
        table.add_column("Precodice")
        table.add_column("Codice")
        table.add_column("Descrizione")
        table.add_column("Quantità", justify="right")
        for line in p.lines:
            table.add_row(
                supplier_label(line.supplier), line.precodice or "", line.code,
                line.description or "", str(line.ordered_qty),
            )
        console.print(table)


# -----------------------
# anagrafica articolo
# -----------------------

articolo_app = typer.Typer(help="Dati d'acquisto degli articoli")
app.add_typer(articolo_app, name="articolo")


@articolo_app.command("imposta")
@_guard
def cmd_articolo_imposta(
    codice: str = typer.Argument(..., help="Codice articolo"),
    precodice: str = typer.Option("", "--precodice"),
    fornitore: Optional[str] = typer.Option(None, "--fornitore"),
    lead_time: Optional[int] = typer.Option(None, "--lead-time", min=0, help="0 = nessun lead time"),
    lead_time_default: bool = typer.Option(False, "--lead-time-default", help="Usa il lead time del set attivo"),
    lotto_minimo: Optional[int] = typer.Option(None, "--lotto-minimo", min=1),
    multiplo: Optional[int] = typer.Option(None, "--multiplo", min=1),
    giacenza: Optional[int] = typer.Option(None, "--giacenza", min=0),
    impegnato: Optional[int] = typer.Option(None, "--impegnato", min=0),
    blocca: Optional[bool] = typer.Option(None, "--blocca/--sblocca", help="Blocca o sblocca il riordino"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Percorso del database SQLite"),
):
    """Imposta fornitore, lead time, vincoli d'acquisto e giacenza di un articolo."""
    _prepare(db_path)
    repo = ItemRepo(db_path)
    item = repo.get_by_key(ItemKey.of(precodice, codice))
    if item is None:
        raise NotFound(f"Articolo {codice} non trovato", code="ITEM_NOT_FOUND")

    fields = {
        "supplier": fornitore,
        "lead_time_days": lead_time,
        "min_order_qty": lotto_minimo,
        "order_multiple": multiplo,
        "current_stock": giacenza,
        "reserved_qty": impegnato,
        "reorder_blocked": blocca,
    }
    fields = {k: v for k, v in fields.items() if v is not None}
    if lead_time_default:
        fields["lead_time_days"] = None
    if not fields:
        typer.echo("Niente da modificare. Indica almeno un valore.")
        raise typer.Exit(code=1)
    updated = repo.update_purchasing(item.id, **fields)
    logs.log_database_operation("item", "UPDATE", 1, item_id=updated.id, fields=sorted(fields))
    typer.echo(f">> Articolo {updated.code} aggiornato.")


# -----------------------
# log
# -----------------------

@app.command("log")
def cmd_log(
    tipo: str = typer.Argument("transactions", help="transactions | imports | proposals | database | system"),
    righe: int = typer.Option(50, "--righe", min=1),
):
    """Mostra le ultime righe di un file di log (richiede --log)."""
    text = logs.get_log_summary(tipo, righe)
    if text is None:
        typer.echo("Logging disattivato: usa l'opzione --log.")
        return
    typer.echo(text)


# Entry point:
def main():
    app()


if __name__ == "__main__":
    main()
