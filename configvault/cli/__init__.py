"""configvault CLI — Typer-based command-line interface.

Provides the ``configvault`` command with subcommands for uploading,
browsing, downloading, updating and deleting stored artifacts, and for
importing a legacy JSON-file database.

All output uses Rich for formatted terminal display.
"""
