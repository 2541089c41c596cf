"""``configvault upload FILE`` — store a data.json file as a new artifact."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel

from configvault.cli._shared import console, err_console, open_vault


def upload_cmd(
    ctx: typer.Context,
    file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="The JSON document to upload.",
    ),
    name: str = typer.Option(..., "--name", "-n", help="Display name (max 100 characters)."),
    description: str = typer.Option(
        ..., "--description", "-D", help="Description (max 500 characters)."
    ),
    uploader: str = typer.Option(..., "--uploader", "-u", help="Uploader name."),
    category: str = typer.Option("", "--category", "-c", help="Category (default General)."),
    config_name: str = typer.Option("", "--config-name", help="Configuration name."),
    point_count: int = typer.Option(0, "--point-count", help="Number of points in the config."),
    version: str = typer.Option(None, "--version", "-V", help="Initial version tag."),
) -> None:
    """Upload a JSON configuration file and print its identifier."""
    try:
        text = file.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        err_console.print(f"[bold red]{file} is not UTF-8 text.[/bold red]")
        raise typer.Exit(code=1)

    body = {
        "name": name,
        "description": description,
        "uploaderName": uploader,
        "category": category,
        "configName": config_name,
        "pointCount": point_count,
        "version": version,
        "filename": file.name,
        "data": text,
    }
    with open_vault(ctx) as vault:
        receipt = vault.upload(body)

    console.print(
        Panel(
            "\n".join([
                "[bold green]Data uploaded successfully[/bold green]",
                "",
                f"[bold]ID:[/bold]       {receipt.external_id}",
                f"[bold]Name:[/bold]     {name.strip()}",
                f"[bold]Uploaded:[/bold] {receipt.uploaded_at.isoformat()}",
            ]),
            title="[bold]configvault[/bold]",
            border_style="green",
        )
    )
    # Plain id last, for scripting
    console.print(receipt.external_id)
