"""``configvault download ID`` — fetch the raw payload of an artifact."""

from __future__ import annotations

from pathlib import Path

import typer

from configvault.cli._shared import console, open_vault


def download_cmd(
    ctx: typer.Context,
    artifact_id: str = typer.Argument(..., help="The 16-digit artifact identifier."),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the payload to this file instead of stdout.",
    ),
) -> None:
    """Download an artifact's payload exactly as stored."""
    with open_vault(ctx) as vault:
        download = vault.download(artifact_id)

    if output is None:
        typer.echo(download.payload.decode("utf-8", errors="replace"))
        return

    output.write_bytes(download.payload)
    console.print(
        f"[green]Wrote {len(download.payload)} bytes to {output}[/green] "
        f"[dim]({download.mimetype})[/dim]"
    )
