"""``configvault update ID FILE`` — replace an artifact's payload.

Runs the whole token-gated flow in one process: the shared update secret
buys a single-use token, which is immediately redeemed for the update.
"""

from __future__ import annotations

from pathlib import Path

import typer

from configvault.cli._shared import console, open_vault


def update_cmd(
    ctx: typer.Context,
    artifact_id: str = typer.Argument(..., help="The 16-digit artifact identifier."),
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="The new JSON document."
    ),
    changes: str = typer.Option("", "--changes", "-m", help="Description of the change."),
    password: str = typer.Option(
        ...,
        "--password",
        envvar="CONFIGVAULT_UPDATE_PASSWORD",
        prompt=True,
        hide_input=True,
        help="Shared update secret.",
    ),
) -> None:
    """Replace the payload, bump the patch version and record the change."""
    data = file.read_bytes()
    with open_vault(ctx) as vault:
        token = vault.request_update_token(artifact_id, password)
        receipt = vault.update(artifact_id, token, data, changes)

    console.print(
        f"[bold green]Updated {receipt.external_id}[/bold green] "
        f"to version [bold]{receipt.version}[/bold]: {receipt.changes}"
    )
