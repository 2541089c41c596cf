"""configvault: versioned storage for JSON configuration artifacts.

  - SQLite-backed Entry Store with 16-digit external identifiers
  - Single-use, time-limited update tokens behind a shared secret
  - Per-artifact changelog, with reconstruction for legacy entries
  - Paginated listing, case-insensitive search and usage statistics
  - Tolerant payload normalizer for every historical storage encoding
  - Importer for the original JSON-file database
"""

__version__ = "1.0.0"
__description__ = "Versioned storage for JSON configuration artifacts"

from configvault.config import VaultSettings
from configvault.core.vault import ConfigVault
from configvault.cli.app import app as cli

__all__ = ["ConfigVault", "VaultSettings", "cli", "__version__"]
