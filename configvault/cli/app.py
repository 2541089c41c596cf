"""Main Typer application — imports and registers all CLI commands.

Entry point: ``configvault`` (configured via pyproject.toml scripts).

Commands: init, upload, download, show, list, search, stats, changelog,
update, delete, import-legacy.
"""

from __future__ import annotations

from pathlib import Path

import typer

from configvault.cli._shared import configure_logging, console, open_vault
from configvault.cli.commands.browse import list_cmd, search_cmd, show_cmd, stats_cmd
from configvault.cli.commands.changelog_cmd import changelog_cmd
from configvault.cli.commands.delete import delete_cmd
from configvault.cli.commands.download import download_cmd
from configvault.cli.commands.import_legacy import import_legacy_cmd
from configvault.cli.commands.update import update_cmd
from configvault.cli.commands.upload import upload_cmd
from configvault.config import settings

app = typer.Typer(
    name="configvault",
    help="configvault: versioned storage for JSON configuration artifacts.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    database: Path = typer.Option(
        None,
        "--database",
        "-d",
        help="SQLite database file (overrides CONFIGVAULT_DATABASE_PATH).",
    ),
    log_level: str = typer.Option(
        settings.log_level, "--log-level", help="Logging level for diagnostics."
    ),
) -> None:
    ctx.obj = {"database": database}
    configure_logging(log_level)


# Register subcommands
app.command(name="upload", help="Upload a JSON file as a new artifact.")(upload_cmd)
app.command(name="download", help="Download an artifact's payload.")(download_cmd)
app.command(name="show", help="Show an artifact's metadata.")(show_cmd)
app.command(name="list", help="List artifacts, newest first.")(list_cmd)
app.command(name="search", help="Search artifacts by text.")(search_cmd)
app.command(name="stats", help="Show store statistics.")(stats_cmd)
app.command(name="changelog", help="Show an artifact's version history.")(changelog_cmd)
app.command(name="update", help="Replace an artifact's payload (needs update secret).")(
    update_cmd
)
app.command(name="delete", help="Delete an artifact (needs delete secret).")(delete_cmd)
app.command(name="import-legacy", help="Import a legacy database.json file.")(
    import_legacy_cmd
)


@app.command(name="init", help="Create the database file and schema.")
def init_cmd(ctx: typer.Context) -> None:
    """Create the SQLite database if it does not exist yet."""
    with open_vault(ctx) as vault:
        path = vault.database.path
        total = vault.store.count()
    console.print(f"[green]Database ready at {path}[/green] [dim]({total} artifacts)[/dim]")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
