"""
Tests for registry snapshots
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from proof_registry.core.errors import SnapshotError
from proof_registry.core.records import ExecutionContext
from proof_registry.core.registry import Registry
from proof_registry.core.signer import Ed25519Signer
from proof_registry.core.snapshot import (
    SCHEMA_VERSION,
    export_snapshot,
    load_snapshot,
    registry_from_dict,
    snapshot_to_dict,
)
from proof_registry.core.verifier import full_verification


T0 = datetime(2026, 5, 1, tzinfo=timezone.utc)


def ctx(caller, seconds=0):
    return ExecutionContext(caller=caller, now=T0 + timedelta(seconds=seconds))


def build_registry(signer=None):
    registry = Registry(admin="0xad", signer=signer, now=T0)
    registry.register("0xaa", "doc1", "case-1", ctx=ctx("0xa11ce", 1))
    registry.register("0xbb", "doc2", ctx=ctx("0xb0b", 2))
    registry.deactivate(0, ctx=ctx("0xa11ce", 3))
    return registry


class TestExport:
    def test_document_layout(self, tmp_path):
        registry = build_registry()
        path = export_snapshot(registry, tmp_path / "nested" / "state.json")

        data = json.loads(path.read_text())
        assert data["schema_version"] == SCHEMA_VERSION
        assert data["admin"] == "0xad"
        assert data["next_id"] == 2
        assert [r["identifier"] for r in data["records"]] == [0, 1]
        assert data["records"][0]["is_active"] is False
        assert data["event_log"]["public_key"] == registry.event_log.public_key
        assert len(data["event_log"]["events"]) == 4
        assert "hash_index" not in data
        assert "by_owner" not in data


class TestLoad:
    def test_round_trip(self, tmp_path):
        registry = build_registry()
        path = export_snapshot(registry, tmp_path / "state.json")

        restored = load_snapshot(path)
        assert restored.proofs() == registry.proofs()
        assert restored.admin == registry.admin
        assert restored.verify_hash("0xaa") == (True, False, 0)
        assert restored.list_by_submitter("0xb0b") == (1,)
        assert restored.event_log.merkle_root == registry.event_log.merkle_root
        assert restored.event_log.read_only

    def test_restored_registry_audits_clean(self, tmp_path):
        registry = build_registry()
        restored = load_snapshot(export_snapshot(registry, tmp_path / "state.json"))
        log = restored.event_log
        result = full_verification(
            log.events,
            public_key=log.public_key,
            expected_merkle_root=log.merkle_root,
            registry=restored,
        )
        assert result.is_valid

    def test_load_with_key_allows_writes(self, tmp_path):
        signer = Ed25519Signer()
        registry = build_registry(signer)
        path = export_snapshot(registry, tmp_path / "state.json")

        restored = load_snapshot(path, private_key=signer.private_key)
        assert restored.register("0xcc", "doc3", ctx=ctx("0xb0b", 10)) == 2
        assert restored.list_by_submitter("0xb0b") == (1, 2)

        log = restored.event_log
        assert full_verification(log.events, public_key=log.public_key, registry=restored).is_valid

    def test_load_with_wrong_key(self, tmp_path):
        path = export_snapshot(build_registry(), tmp_path / "state.json")
        with pytest.raises(SnapshotError, match="event log"):
            load_snapshot(path, private_key=Ed25519Signer().private_key)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json")
        with pytest.raises(SnapshotError, match="not valid JSON"):
            load_snapshot(path)


class TestValidation:
    def _snapshot(self):
        return snapshot_to_dict(build_registry())

    def test_missing_field(self):
        data = self._snapshot()
        del data["records"]
        with pytest.raises(SnapshotError, match="schema"):
            registry_from_dict(data)

    def test_bad_hash_format(self):
        data = self._snapshot()
        data["records"][0]["data_hash"] = "0xAA"
        with pytest.raises(SnapshotError, match="records/0/data_hash"):
            registry_from_dict(data)

    def test_unsupported_version(self):
        data = self._snapshot()
        data["schema_version"] = 99
        with pytest.raises(SnapshotError, match="Unsupported snapshot schema version 99"):
            registry_from_dict(data)

    def test_next_id_mismatch(self):
        data = self._snapshot()
        data["next_id"] = 5
        with pytest.raises(SnapshotError, match="next_id"):
            registry_from_dict(data)

    def test_identifier_gap(self):
        data = self._snapshot()
        data["records"][1]["identifier"] = 7
        with pytest.raises(SnapshotError, match="not dense"):
            registry_from_dict(data)

    def test_duplicate_hash(self):
        data = self._snapshot()
        data["records"][1]["data_hash"] = data["records"][0]["data_hash"]
        with pytest.raises(SnapshotError, match="stored twice"):
            registry_from_dict(data)

    def test_zero_submitter(self):
        data = self._snapshot()
        data["records"][1]["submitter"] = "0x0000"
        with pytest.raises(SnapshotError, match="no submitter"):
            registry_from_dict(data)

    def test_bad_timestamp(self):
        data = self._snapshot()
        data["records"][0]["created_at"] = "yesterday"
        with pytest.raises(SnapshotError, match="Invalid record"):
            registry_from_dict(data)

    def test_unknown_event_type(self):
        data = self._snapshot()
        data["event_log"]["events"][1]["event_type"] = "GEN_ATTEMPT"
        with pytest.raises(SnapshotError, match="event log"):
            registry_from_dict(data)

    @pytest.mark.parametrize("field, value", [
        ("current_hash", 123),
        ("previous_hash", None),
        ("signature", ["ed25519:x"]),
        ("record_id", "zero"),
    ])
    def test_mistyped_event_field(self, field, value):
        data = self._snapshot()
        data["event_log"]["events"][0][field] = value
        with pytest.raises(SnapshotError, match=f"event_log/events/0/{field}"):
            registry_from_dict(data)

    def test_non_hex_event_hash(self):
        data = self._snapshot()
        data["event_log"]["events"][0]["current_hash"] = "sha256:not-hex"
        with pytest.raises(SnapshotError, match="event log"):
            registry_from_dict(data)

    def test_published_root_kept(self):
        data = self._snapshot()
        data["event_log"]["merkle_root"] = "ff" * 32
        restored = registry_from_dict(data)
        assert restored.event_log.published_root == "ff" * 32
        assert restored.event_log.merkle_root != "ff" * 32


class TestAtomicExport:
    def test_failed_write_keeps_previous_snapshot(self, tmp_path, monkeypatch):
        path = export_snapshot(build_registry(), tmp_path / "state.json")
        before = path.read_text()

        def interrupted_dump(obj, fp, **kwargs):
            fp.write('{"schema_version": 1, "adm')
            raise OSError("disk full")

        monkeypatch.setattr(json, "dump", interrupted_dump)
        with pytest.raises(OSError, match="disk full"):
            export_snapshot(build_registry(), path)

        assert path.read_text() == before
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_overwrite_replaces_file(self, tmp_path):
        path = export_snapshot(build_registry(), tmp_path / "state.json")
        registry = build_registry()
        registry.register("0xee", "doc4", ctx=ctx("0xb0b", 9))

        export_snapshot(registry, path)
        assert load_snapshot(path).total_records == 3
