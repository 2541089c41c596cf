"""Tests for the Entry Store — create, read, replace, delete."""

from __future__ import annotations

import base64
import json

import pytest

from configvault.core.entry_store import EntryStore, validate_upload
from configvault.core.errors import (
    MalformedPayload,
    MalformedVersion,
    NotFound,
    UnrecognizedPayloadEncoding,
    ValidationError,
)
from configvault.models.artifacts import Artifact, ArtifactSummary

DOC = b'{"points": [1, 2]}'


def _set_raw_payload(store: EntryStore, artifact_id: int, value) -> None:
    with store.database.transaction() as conn:
        conn.execute("UPDATE artifacts SET payload = ? WHERE id = ?", (value, artifact_id))


class TestCreate:
    def test_ids_are_monotonic(self, entry_store, make_upload):
        first, _ = entry_store.create(make_upload(), DOC)
        second, _ = entry_store.create(make_upload(), DOC)
        assert second > first

    def test_ids_not_reused_after_delete(self, entry_store, make_upload):
        first, _ = entry_store.create(make_upload(), DOC)
        entry_store.delete(first)
        second, _ = entry_store.create(make_upload(), DOC)
        assert second > first

    def test_defaults_applied(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(
            make_upload(category="  ", config_name=""), DOC
        )
        summary = entry_store.get_summary(artifact_id)
        assert summary.category == "General"
        assert summary.config_name == "Unknown"
        assert summary.filename == "data.json"
        assert summary.mimetype == "application/json"
        assert summary.version is None
        assert summary.last_update is None

    def test_fields_trimmed(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(
            make_upload(name="  Bridge  ", uploader_name=" ana "), DOC
        )
        summary = entry_store.get_summary(artifact_id)
        assert summary.name == "Bridge"
        assert summary.uploader_name == "ana"

    def test_client_version_kept(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(version="2.1.0"), DOC)
        assert entry_store.get_summary(artifact_id).version == "2.1.0"

    def test_partial_version_normalized(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(version=" 2.4 "), DOC)
        assert entry_store.get_summary(artifact_id).version == "2.4.0"

    def test_blank_version_stored_as_none(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(version="   "), DOC)
        assert entry_store.get_summary(artifact_id).version is None

    def test_payload_round_trips_exactly(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(), DOC)
        assert entry_store.get(artifact_id).payload == DOC

    def test_data_size_is_payload_length(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(), DOC)
        assert entry_store.get_summary(artifact_id).data_size == len(DOC)

    def test_timestamp_returned(self, entry_store, make_upload):
        artifact_id, created_at = entry_store.create(make_upload(), DOC)
        assert entry_store.get_summary(artifact_id).uploaded_at == created_at


class TestValidation:
    @pytest.mark.parametrize(
        "field, wire", [("name", "name"), ("description", "description"),
                        ("uploader_name", "uploaderName")]
    )
    def test_missing_required_field(self, entry_store, make_upload, field, wire):
        with pytest.raises(ValidationError, match=f"Missing required field: {wire}"):
            entry_store.create(make_upload(**{field: "   "}), DOC)

    def test_missing_data(self, entry_store, make_upload):
        with pytest.raises(ValidationError, match="data"):
            entry_store.create(make_upload(), b"  ")

    def test_name_at_limit_accepted(self, make_upload):
        clean = validate_upload(make_upload(name="x" * 100), DOC)
        assert len(clean.name) == 100

    def test_name_over_limit_rejected(self, entry_store, make_upload):
        with pytest.raises(ValidationError, match="Name too long"):
            entry_store.create(make_upload(name="x" * 101), DOC)

    def test_description_over_limit_rejected(self, entry_store, make_upload):
        with pytest.raises(ValidationError, match="Description too long"):
            entry_store.create(make_upload(description="d" * 501), DOC)

    def test_malformed_json_rejected(self, entry_store, make_upload):
        with pytest.raises(MalformedPayload, match="Invalid JSON data"):
            entry_store.create(make_upload(), b'{"points": [')
        assert entry_store.count() == 0

    @pytest.mark.parametrize("bad", ["beta", "1.x.0", "1.2.3.4", "v1"])
    def test_malformed_version_rejected_before_insert(self, entry_store, make_upload, bad):
        with pytest.raises(ValidationError, match="Invalid version") as info:
            entry_store.create(make_upload(version=bad), DOC)
        assert info.value.status_code == 400
        assert not isinstance(info.value, MalformedVersion)
        assert entry_store.count() == 0

    @pytest.mark.parametrize("doc", [b"NaN", b"[Infinity]", b'{"x": -Infinity}'])
    def test_non_finite_constants_rejected(self, entry_store, make_upload, doc):
        with pytest.raises(MalformedPayload):
            entry_store.create(make_upload(), doc)
        assert entry_store.count() == 0


class TestRead:
    def test_unknown_id(self, entry_store):
        with pytest.raises(NotFound):
            entry_store.get(999)
        with pytest.raises(NotFound):
            entry_store.get_summary(999)

    def test_summary_has_no_payload(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(), DOC)
        summary = entry_store.get_summary(artifact_id)
        assert type(summary) is ArtifactSummary
        assert "payload" not in summary.model_dump()
        assert isinstance(entry_store.get(artifact_id), Artifact)

    def test_exists_and_count(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(), DOC)
        assert entry_store.exists(artifact_id)
        assert not entry_store.exists(artifact_id + 1)
        assert entry_store.count() == 1

    def test_legacy_base64_text_payload_normalized(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(), DOC)
        _set_raw_payload(entry_store, artifact_id, base64.b64encode(DOC).decode("ascii"))
        assert entry_store.get(artifact_id).payload == DOC

    def test_legacy_tagged_buffer_text_is_utf8(self, entry_store, make_upload):
        # A JSON-serialized buffer stored as TEXT reads back as a plain string
        artifact_id, _ = entry_store.create(make_upload(), DOC)
        raw = json.dumps({"type": "Buffer", "data": list(DOC)})
        _set_raw_payload(entry_store, artifact_id, raw)
        assert entry_store.get(artifact_id).payload == raw.encode("utf-8")

    def test_unrecognized_stored_payload(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(), DOC)
        _set_raw_payload(entry_store, artifact_id, 12345)
        with pytest.raises(UnrecognizedPayloadEncoding):
            entry_store.get(artifact_id)
        # Metadata stays readable
        assert entry_store.get_summary(artifact_id).name == "Bridge"


class TestReplacePayload:
    def test_bumps_from_baseline_when_unversioned(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(), DOC)
        version, _ = entry_store.replace_payload(artifact_id, b'{"v": 2}', "second")
        assert version == "1.0.1"

    def test_bumps_patch(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(version="1.2.9"), DOC)
        version, _ = entry_store.replace_payload(artifact_id, b"[]", "x")
        assert version == "1.2.10"

    def test_updates_fields(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(), DOC)
        version, updated_at = entry_store.replace_payload(artifact_id, b'{"v": 2}', "fix")
        artifact = entry_store.get(artifact_id)
        assert artifact.payload == b'{"v": 2}'
        assert artifact.version == version
        assert artifact.last_update == updated_at
        assert artifact.last_changes == "fix"

    def test_rejects_malformed_json(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(), DOC)
        with pytest.raises(MalformedPayload):
            entry_store.replace_payload(artifact_id, b"{nope", "x")
        assert entry_store.get(artifact_id).payload == DOC

    def test_rejects_empty_payload(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(), DOC)
        with pytest.raises(ValidationError):
            entry_store.replace_payload(artifact_id, b"", "x")

    def test_unknown_id(self, entry_store):
        with pytest.raises(NotFound):
            entry_store.replace_payload(5, b"{}", "x")

    def test_malformed_stored_version_leaves_row_untouched(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(), DOC)
        with entry_store.database.transaction() as conn:
            conn.execute(
                "UPDATE artifacts SET version = ? WHERE id = ?", ("1.x.0", artifact_id)
            )
        with pytest.raises(MalformedVersion):
            entry_store.replace_payload(artifact_id, b"{}", "x")
        artifact = entry_store.get(artifact_id)
        assert artifact.version == "1.x.0"
        assert artifact.payload == DOC


class TestDelete:
    def test_delete_removes(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(), DOC)
        entry_store.delete(artifact_id)
        assert not entry_store.exists(artifact_id)

    def test_delete_unknown(self, entry_store):
        with pytest.raises(NotFound):
            entry_store.delete(1)

    def test_delete_rolls_back_with_transaction(self, entry_store, make_upload):
        artifact_id, _ = entry_store.create(make_upload(), DOC)
        with pytest.raises(RuntimeError):
            with entry_store.database.transaction() as conn:
                entry_store.delete(artifact_id, conn=conn)
                raise RuntimeError("abort")
        assert entry_store.exists(artifact_id)

