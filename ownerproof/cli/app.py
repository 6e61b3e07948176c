"""Main Typer application — imports and registers all CLI commands.

Entry point: ``ownerproof`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import typer

from ownerproof.cli.commands.check_config import check_config_cmd
from ownerproof.cli.commands.ledger_cmd import ledger_cmd, verify_chain_cmd
from ownerproof.cli.commands.serve import serve_cmd

app = typer.Typer(
    name="ownerproof",
    help="ownerproof: Proof-of-ownership NFT metadata for YouTube channels.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="serve", help="Run the HTTP API with uvicorn.")(serve_cmd)
app.command(name="check-config", help="Check that required settings are present.")(check_config_cmd)
app.command(name="ledger", help="Show Run Ledger entries.")(ledger_cmd)
app.command(name="verify-chain", help="Verify a run's ledger hash chain.")(verify_chain_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
