"""``ownerproof ledger`` and ``ownerproof verify-chain`` — Run Ledger views.

Both commands are read-only projections over the SQLite ledger.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ownerproof.config import ServiceConfig
from ownerproof.core.run_ledger import LedgerIntegrityError, RunLedger

console = Console()


def _open_ledger(ledger_db: Path | None) -> RunLedger:
    db_path = ledger_db or ServiceConfig().ledger_path
    if not db_path.exists():
        console.print(f"[bold red]Ledger not found:[/bold red] {db_path}")
        raise typer.Exit(code=1)
    return RunLedger(db_path)


def ledger_cmd(
    run_id: str = typer.Argument(
        None,
        help="Run ID to show. Lists recent runs when omitted.",
    ),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of recent runs to list."),
    ledger_db: Path = typer.Option(
        None,
        "--ledger",
        "-l",
        help="Path to the ledger SQLite database (default from config).",
    ),
) -> None:
    """Show the transitions of one run, or the most recent runs."""
    ledger = _open_ledger(ledger_db)

    if run_id is None:
        run_ids = ledger.get_recent_run_ids(limit=limit)
        if not run_ids:
            console.print("[dim]No runs recorded.[/dim]")
            return
        table = Table(title="Recent runs")
        table.add_column("Run ID", style="cyan", no_wrap=True)
        table.add_column("State", no_wrap=True)
        table.add_column("Stage", no_wrap=True)
        table.add_column("Reason")
        for rid in run_ids:
            latest = ledger.get_latest(rid)
            state = latest.state_transition.split("->")[-1] if latest else "?"
            style = "green" if state == "done" else "red" if state == "failed" else "yellow"
            table.add_row(
                rid,
                f"[{style}]{state}[/{style}]",
                latest.stage if latest else "",
                latest.reason if latest else "",
            )
        console.print(table)
        return

    entries = ledger.get_run_entries(run_id)
    if not entries:
        console.print(f"[bold red]Run not found:[/bold red] {run_id}")
        raise typer.Exit(code=1)

    table = Table(title=f"Run {run_id}")
    table.add_column("Time (UTC)", style="dim")
    table.add_column("Transition", style="cyan", no_wrap=True)
    table.add_column("Stage", no_wrap=True)
    table.add_column("Reason", overflow="fold")
    table.add_column("Output hash", style="dim")
    for entry in entries:
        table.add_row(
            entry.timestamp_utc.strftime("%Y-%m-%d %H:%M:%S"),
            entry.state_transition,
            entry.stage,
            entry.reason,
            entry.output_hash[:12],
        )
    console.print(table)


def verify_chain_cmd(
    run_id: str = typer.Argument(..., help="Run ID whose chain to verify."),
    ledger_db: Path = typer.Option(
        None,
        "--ledger",
        "-l",
        help="Path to the ledger SQLite database (default from config).",
    ),
) -> None:
    """Recompute every entry hash of a run and check the chain links."""
    ledger = _open_ledger(ledger_db)

    if not ledger.get_run_entries(run_id):
        console.print(f"[bold red]Run not found:[/bold red] {run_id}")
        raise typer.Exit(code=1)

    try:
        ledger.verify_chain(run_id)
    except LedgerIntegrityError as exc:
        console.print(f"[bold red]Chain verification failed:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(f"[bold green]Chain intact[/bold green] for run {run_id}")
