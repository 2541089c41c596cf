"""Shared test fixtures for configvault."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from configvault.config import VaultSettings
from configvault.core.changelog import ChangelogLedger
from configvault.core.database import Database
from configvault.core.entry_store import EntryStore
from configvault.core.query_engine import QueryEngine
from configvault.core.update_tokens import UpdateTokenManager
from configvault.core.vault import ConfigVault
from configvault.models.artifacts import ArtifactUpload

UPDATE_PASSWORD = "test-update-secret"
DELETE_PASSWORD = "test-delete-secret"


class FakeClock:
    """Manually advanced monotonic clock for token expiry tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test databases."""
    return tmp_path


@pytest.fixture
def db_path(tmp_dir: Path) -> Path:
    return tmp_dir / "vault" / "configvault.db"


@pytest.fixture
def database(db_path: Path) -> Database:
    """Provide a fresh Database with the schema created."""
    return Database(db_path)


@pytest.fixture
def entry_store(database: Database) -> EntryStore:
    return EntryStore(database)


@pytest.fixture
def ledger(database: Database) -> ChangelogLedger:
    return ChangelogLedger(database)


@pytest.fixture
def query_engine(database: Database) -> QueryEngine:
    return QueryEngine(database)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_manager(clock: FakeClock) -> UpdateTokenManager:
    """Provide an UpdateTokenManager with a 600s TTL on the fake clock."""
    return UpdateTokenManager(ttl_seconds=600, clock=clock)


@pytest.fixture
def settings(db_path: Path) -> VaultSettings:
    """Development settings with both shared secrets configured."""
    return VaultSettings(
        database_path=db_path,
        update_password=UPDATE_PASSWORD,
        delete_password=DELETE_PASSWORD,
    )


@pytest.fixture
def vault(settings: VaultSettings, token_manager: UpdateTokenManager) -> Iterator[ConfigVault]:
    """Provide a ConfigVault wired to the temp database and fake-clock tokens."""
    with ConfigVault(settings, token_manager=token_manager) as v:
        yield v


# ---------------------------------------------------------------------------
# Request factories — shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_upload_body() -> Callable[..., dict[str, Any]]:
    """Factory fixture: build an upload request body in wire field names."""

    def _factory(**overrides: Any) -> dict[str, Any]:
        body: dict[str, Any] = {
            "name": "Bridge",
            "description": "Bridge sensor layout",
            "category": "Sensors",
            "uploaderName": "ana",
            "pointCount": 12,
            "configName": "bridge-v1",
            "data": '{"points": []}',
        }
        body.update(overrides)
        return body

    return _factory


@pytest.fixture
def make_upload() -> Callable[..., ArtifactUpload]:
    """Factory fixture: build ArtifactUpload metadata with sensible defaults."""

    def _factory(**overrides: Any) -> ArtifactUpload:
        fields: dict[str, Any] = {
            "name": "Bridge",
            "description": "Bridge sensor layout",
            "category": "Sensors",
            "uploader_name": "ana",
            "point_count": 12,
            "config_name": "bridge-v1",
        }
        fields.update(overrides)
        return ArtifactUpload(**fields)

    return _factory
