"""ownerproof CLI — Typer-based command-line interface.

Provides the ``ownerproof`` command with subcommands for serving the API,
checking configuration, and inspecting the Run Ledger.

All output uses Rich for formatted terminal display.
"""
