"""``configvault changelog ID`` — show an artifact's version history."""

from __future__ import annotations

import typer
from rich.table import Table

from configvault.cli._shared import console, open_vault


def changelog_cmd(
    ctx: typer.Context,
    artifact_id: str = typer.Argument(..., help="The 16-digit artifact identifier."),
) -> None:
    """Show version history, newest first."""
    with open_vault(ctx) as vault:
        entries = vault.changelog(artifact_id)

    if not entries:
        console.print("[dim]No changelog for this artifact.[/dim]")
        return

    table = Table(title=f"Changelog {artifact_id}")
    table.add_column("Version", style="green")
    table.add_column("Date", style="dim")
    table.add_column("Changes")
    for entry in entries:
        version = entry.version or "-"
        if entry.is_synthetic:
            version += " [dim](reconstructed)[/dim]"
        table.add_row(
            version,
            entry.date.isoformat() if entry.date else "-",
            entry.changes or "",
        )
    console.print(table)
