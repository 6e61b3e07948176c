"""``ownerproof serve`` — run the HTTP API under uvicorn."""

from __future__ import annotations

import typer
import uvicorn
from rich.console import Console

from ownerproof.api.app import create_app
from ownerproof.config import ServiceConfig
from ownerproof.core.errors import MissingConfigurationError
from ownerproof.logging_config import configure_logging

console = Console()


def serve_cmd(
    host: str = typer.Option(None, "--host", help="Bind address (default from config)."),
    port: int = typer.Option(None, "--port", "-p", help="Bind port (default from config)."),
) -> None:
    """Start the API server.

    Configuration is read from OWNERPROOF_* environment variables and .env;
    the server refuses to start if a required setting is missing.
    """
    config = ServiceConfig()
    configure_logging(config.log_level, json_output=config.log_json)

    try:
        api = create_app(config)
    except MissingConfigurationError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)

    bind_host = host or config.host
    bind_port = port or config.port
    console.print(
        f"[bold cyan]ownerproof[/bold cyan] listening on http://{bind_host}:{bind_port} "
        f"[dim]({config.environment}, publisher={config.publisher_backend})[/dim]"
    )
    uvicorn.run(api, host=bind_host, port=bind_port, log_config=None)
