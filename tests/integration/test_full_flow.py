"""End-to-end integration tests — upload, download, update, changelog, delete.

These tests exercise the ConfigVault, EntryStore, ChangelogLedger,
QueryEngine and UpdateTokenManager working together over one database.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from configvault.config import VaultSettings
from configvault.core.errors import NotFound, Unauthorized
from configvault.core.legacy_import import import_legacy_database
from configvault.core.vault import ConfigVault


class TestFullFlow:
    """The canonical lifecycle of one artifact."""

    def test_upload_download_update_changelog(self, vault: ConfigVault):
        receipt = vault.upload({
            "name": "cfgA",
            "description": "d",
            "uploaderName": "u",
            "data": '{"a":1}',
        })
        external_id = receipt.external_id

        assert json.loads(vault.download(external_id).payload) == {"a": 1}

        token = vault.request_update_token(external_id, vault.settings.update_password)
        update = vault.update(external_id, token, '{"a":2}', "bump a")
        assert update.version == "1.0.1"

        entries = vault.changelog(external_id)
        assert [(e.version, e.changes) for e in entries] == [("1.0.1", "bump a")]

        with pytest.raises(Unauthorized):
            vault.update(external_id, token, '{"a":3}', "replay")
        assert json.loads(vault.download(external_id).payload) == {"a": 2}

    def test_update_is_visible_in_listing_and_stats(self, vault, make_upload_body):
        external_id = vault.upload(make_upload_body(name="Listed")).external_id
        token = vault.request_update_token(external_id, vault.settings.update_password)
        vault.update(external_id, token, "[]", "emptied")

        listed = vault.list_entries().entries[0]
        assert listed.version == "1.0.1"
        assert listed.last_changes == "emptied"
        assert listed.data_size == 2
        assert vault.stats().recent_uploads[0].external_id == external_id

    def test_delete_then_everything_is_gone(self, vault, make_upload_body):
        external_id = vault.upload(make_upload_body()).external_id
        vault.delete(external_id, vault.settings.delete_password)

        with pytest.raises(NotFound):
            vault.download(external_id)
        with pytest.raises(NotFound):
            vault.changelog(external_id)
        assert vault.list_entries().pagination.total == 0
        assert vault.search("Bridge") == []


class TestPersistence:
    """State that must survive a restart, and state that must not."""

    def test_data_survives_new_vault(self, settings: VaultSettings, make_upload_body):
        with ConfigVault(settings) as first:
            external_id = first.upload(make_upload_body()).external_id
            token = first.request_update_token(external_id, settings.update_password)
            first.update(external_id, token, '{"v": 2}', "persisted")

        with ConfigVault(settings) as second:
            assert second.download(external_id).payload == b'{"v": 2}'
            assert second.changelog(external_id)[0].changes == "persisted"

    def test_tokens_do_not_survive_restart(self, settings, make_upload_body):
        with ConfigVault(settings) as first:
            external_id = first.upload(make_upload_body()).external_id
            token = first.request_update_token(external_id, settings.update_password)

        with ConfigVault(settings) as second:
            with pytest.raises(Unauthorized):
                second.update(external_id, token, "{}")


class TestLegacyMigration:
    def test_imported_entry_updates_from_legacy_version(self, vault, tmp_dir: Path):
        legacy = tmp_dir / "database.json"
        legacy.write_text(json.dumps({"entries": [{
            "id": "legacy-1",
            "name": "Old bridge",
            "description": "Imported",
            "uploaderName": "ana",
            "uploadDate": "2023-11-02T08:30:00.000Z",
            "data": '{"points": []}',
        }]}), encoding="utf-8")

        report = import_legacy_database(vault.store, legacy)
        external_id = report.imported["legacy-1"]

        # No ledger rows yet: one reconstructed entry from the stored version
        history = vault.changelog(external_id)
        assert [(e.version, e.is_synthetic) for e in history] == [("0.3.5", True)]

        token = vault.request_update_token(external_id, vault.settings.update_password)
        assert vault.update(external_id, token, "{}", "first real update").version == "0.3.6"
        assert [e.version for e in vault.changelog(external_id)] == ["0.3.6"]
