"""``ownerproof check-config`` — report which settings are present.

Secrets are masked; only whether they are set is shown.
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from ownerproof.config import ENV_PREFIX, REQUIRED_SETTINGS, ServiceConfig
from ownerproof.core.errors import MissingConfigurationError

console = Console()

_SECRET_SETTINGS = frozenset(
    {"google_client_secret", "proof_app_secret", "storage_token"}
)
_SHOWN_SETTINGS = (
    "environment",
    "publisher_backend",
    "proof_service_url",
    "ledger_path",
)


def _display(name: str, value: object) -> str:
    if not value:
        return "[red]missing[/red]"
    if name in _SECRET_SETTINGS:
        return "[green]set[/green] [dim](hidden)[/dim]"
    return str(value)


def check_config_cmd() -> None:
    """Validate configuration and exit non-zero if anything required is missing."""
    config = ServiceConfig()

    table = Table(title="ownerproof configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Env var", style="dim")
    table.add_column("Value")

    for name in REQUIRED_SETTINGS + _SHOWN_SETTINGS:
        table.add_row(name, f"{ENV_PREFIX}{name.upper()}", _display(name, getattr(config, name)))
    table.add_row(
        "attestor_public_keys",
        f"{ENV_PREFIX}ATTESTOR_PUBLIC_KEYS",
        str(len(config.attestor_public_keys)),
    )
    console.print(table)

    if not config.attestor_public_keys:
        console.print("[yellow]No attestor keys configured: every proof will be rejected.[/yellow]")

    try:
        config.require()
    except MissingConfigurationError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)

    console.print("[bold green]Configuration OK[/bold green]")
