"""``configvault import-legacy PATH`` — migrate the old JSON-file database."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from configvault.cli._shared import console, err_console, open_vault
from configvault.core.legacy_import import LegacyImportError, import_legacy_database


def import_legacy_cmd(
    ctx: typer.Context,
    path: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Path to database.json."
    ),
) -> None:
    """Import every valid entry of a legacy database.json file."""
    with open_vault(ctx) as vault:
        try:
            report = import_legacy_database(vault.store, path)
        except LegacyImportError as exc:
            err_console.print(f"[bold red]Import failed:[/bold red] {escape(str(exc))}")
            raise typer.Exit(code=1)

    console.print(
        f"[bold green]Imported {report.imported_count} entries[/bold green] from {report.source}"
    )
    if report.skipped:
        table = Table(title="Skipped entries")
        table.add_column("#", justify="right")
        table.add_column("Legacy ID", style="cyan")
        table.add_column("Reason", style="yellow")
        for skipped in report.skipped:
            table.add_row(
                str(skipped.index),
                escape(skipped.legacy_id or "-"),
                escape(skipped.reason),
            )
        console.print(table)
