"""Shared CLI plumbing: vault construction, error reporting, Rich tables."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from configvault.config import VaultSettings
from configvault.core.errors import VaultError
from configvault.core.vault import ConfigVault
from configvault.models.artifacts import ArtifactSummary

console = Console()
err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Route stdlib logging through Rich on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def settings_from_context(ctx: typer.Context) -> VaultSettings:
    obj = ctx.obj or {}
    settings: VaultSettings = obj.get("settings") or VaultSettings()
    database: Path | None = obj.get("database")
    if database is not None:
        settings = settings.model_copy(update={"database_path": database})
    return settings


@contextmanager
def open_vault(ctx: typer.Context) -> Iterator[ConfigVault]:
    """Yield a vault for one command; report taxonomy errors and exit 1."""
    try:
        with ConfigVault(settings_from_context(ctx)) as vault:
            yield vault
    except VaultError as exc:
        err_console.print(f"[bold red]{exc.error_kind}:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)


def summary_table(title: str, entries: Sequence[ArtifactSummary]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Category")
    table.add_column("Uploader")
    table.add_column("Version", style="green")
    table.add_column("Size", justify="right")
    table.add_column("Uploaded", style="dim")

    for entry in entries:
        table.add_row(
            entry.external_id,
            escape(entry.name),
            escape(entry.category),
            escape(entry.uploader_name),
            entry.version or "-",
            str(entry.data_size),
            entry.uploaded_at.strftime("%Y-%m-%d %H:%M"),
        )
    return table
