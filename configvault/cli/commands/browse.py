"""Read-only browsing commands: ``list``, ``search``, ``show`` and ``stats``.

None of these ever read payload bytes.
"""

from __future__ import annotations

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from configvault.cli._shared import console, open_vault, summary_table


def list_cmd(
    ctx: typer.Context,
    page: int = typer.Option(1, "--page", "-p", min=1, help="1-based page number."),
    limit: int = typer.Option(10, "--limit", "-l", min=1, help="Entries per page (max 50)."),
    category: str = typer.Option(None, "--category", "-c", help="Category filter, or All."),
) -> None:
    """List artifacts, newest first."""
    with open_vault(ctx) as vault:
        result = vault.list_entries(page=page, limit=limit, category=category)

    p = result.pagination
    if not result.entries:
        console.print("[dim]No artifacts found.[/dim]")
    else:
        console.print(summary_table(f"Artifacts (page {p.page}/{p.total_pages})", result.entries))
    console.print(
        f"[dim]{p.total} total | limit {p.limit} | "
        f"next: {'yes' if p.has_next else 'no'} | prev: {'yes' if p.has_prev else 'no'}[/dim]"
    )


def search_cmd(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Case-insensitive search text."),
) -> None:
    """Search names, descriptions, uploaders and categories."""
    with open_vault(ctx) as vault:
        results = vault.search(query)

    if not results:
        console.print(f"[dim]No artifacts match {query!r}.[/dim]")
        return
    console.print(summary_table(f"Search: {query.strip()} ({len(results)})", results))


def show_cmd(
    ctx: typer.Context,
    artifact_id: str = typer.Argument(..., help="The 16-digit artifact identifier."),
) -> None:
    """Show an artifact's metadata."""
    with open_vault(ctx) as vault:
        summary = vault.get_metadata(artifact_id)

    lines = [
        f"[bold]ID:[/bold]          {summary.external_id}",
        f"[bold]Name:[/bold]        {escape(summary.name)}",
        f"[bold]Description:[/bold] {escape(summary.description)}",
        f"[bold]Category:[/bold]    {summary.category}",
        f"[bold]Uploader:[/bold]    {summary.uploader_name}",
        f"[bold]Config:[/bold]      {summary.config_name} ({summary.point_count} points)",
        f"[bold]File:[/bold]        {summary.filename} [dim]{summary.mimetype}, "
        f"{summary.data_size} bytes[/dim]",
        f"[bold]Version:[/bold]     {summary.version or '-'}",
        f"[bold]Uploaded:[/bold]    {summary.uploaded_at.isoformat()}",
    ]
    if summary.last_update:
        lines.append(f"[bold]Updated:[/bold]     {summary.last_update.isoformat()}")
    if summary.last_changes:
        lines.append(f"[bold]Changes:[/bold]     {escape(summary.last_changes)}")
    console.print(
        Panel(
            "\n".join(lines),
            title=f"[bold]{escape(summary.name)}[/bold]",
            border_style="cyan",
        )
    )


def stats_cmd(ctx: typer.Context) -> None:
    """Show usage statistics."""
    with open_vault(ctx) as vault:
        stats = vault.stats()

    console.print(f"[bold]Total artifacts:[/bold] {stats.total_entries}")

    counts = Table(title="By category")
    counts.add_column("Category", style="cyan")
    counts.add_column("Count", justify="right")
    for category, count in stats.categories.items():
        counts.add_row(category, str(count))
    console.print(counts)

    uploaders = Table(title="Top uploaders")
    uploaders.add_column("Uploader", style="cyan")
    uploaders.add_column("Count", justify="right")
    for uploader, count in stats.top_uploaders.items():
        uploaders.add_row(uploader, str(count))
    console.print(uploaders)

    if stats.recent_uploads:
        console.print(summary_table("Recent uploads", stats.recent_uploads))
