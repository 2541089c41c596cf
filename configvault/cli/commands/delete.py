"""``configvault delete ID`` — permanently remove an artifact."""

from __future__ import annotations

import typer

from configvault.cli._shared import console, open_vault


def delete_cmd(
    ctx: typer.Context,
    artifact_id: str = typer.Argument(..., help="The 16-digit artifact identifier."),
    password: str = typer.Option(
        ...,
        "--password",
        envvar="CONFIGVAULT_DELETE_PASSWORD",
        prompt=True,
        hide_input=True,
        help="Shared delete secret.",
    ),
) -> None:
    """Delete an artifact and its changelog. There is no undo."""
    with open_vault(ctx) as vault:
        vault.delete(artifact_id, password)
    console.print(f"[bold yellow]Deleted {artifact_id}[/bold yellow]")
