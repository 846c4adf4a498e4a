"""
Tests for Proof Registry Events Module

Tests cover:
- Event type values
- Hash computation
- UUIDv7 generation
- Dictionary deserialization
"""

import json
import uuid

import pytest

from proof_registry.core.events import (
    AdminTransferred,
    EventType,
    ProofDeactivated,
    ProofRegistered,
    RegistryEvent,
    create_event_from_dict,
    generate_event_id,
    hash_data,
)


class TestEventTypes:
    def test_event_type_values(self):
        assert EventType.PROOF_REGISTERED.value == "PROOF_REGISTERED"
        assert EventType.PROOF_DEACTIVATED.value == "PROOF_DEACTIVATED"
        assert EventType.ADMIN_TRANSFERRED.value == "ADMIN_TRANSFERRED"
        assert len(list(EventType)) == 3

    def test_subclass_defaults(self):
        assert ProofRegistered().event_type == EventType.PROOF_REGISTERED
        assert ProofDeactivated().event_type == EventType.PROOF_DEACTIVATED
        assert AdminTransferred().event_type == EventType.ADMIN_TRANSFERRED


class TestEventId:
    def test_is_uuid_v7(self):
        parsed = uuid.UUID(generate_event_id())
        assert parsed.version == 7

    def test_unique(self):
        ids = {generate_event_id() for _ in range(500)}
        assert len(ids) == 500

    def test_time_ordered_prefix(self):
        first = generate_event_id()
        second = generate_event_id()
        # 48-bit millisecond timestamp leads the UUID
        assert first.replace("-", "")[:12] <= second.replace("-", "")[:12]


class TestHashing:
    def test_hash_data_format(self):
        digest = hash_data("hello")
        assert digest.startswith("sha256:")
        assert len(digest) == len("sha256:") + 64

    def test_compute_hash_is_deterministic(self):
        event = ProofRegistered(
            event_id="e1",
            timestamp="2026-01-01T00:00:00+00:00",
            actor="0xa11ce",
            record_id=0,
            submitter="0xa11ce",
            data_hash="0x" + "aa" * 32,
            subject="doc1",
        )
        assert event.compute_hash() == event.compute_hash()

    def test_hash_covers_payload_fields(self):
        event = ProofRegistered(event_id="e1", timestamp="t", subject="doc1")
        original = event.compute_hash()
        event.subject = "doc2"
        assert event.compute_hash() != original

    def test_hash_ignores_signature_and_current_hash(self):
        event = ProofDeactivated(event_id="e1", timestamp="t", record_id=4)
        original = event.compute_hash()
        event.signature = "ed25519:abc"
        event.current_hash = "sha256:" + "00" * 32
        assert event.compute_hash() == original

    def test_hash_covers_chain_link(self):
        event = AdminTransferred(event_id="e1", timestamp="t", new_admin="0xb0b")
        original = event.compute_hash()
        event.previous_hash = "sha256:" + "11" * 32
        assert event.compute_hash() != original


class TestSerialization:
    def test_to_dict_uses_enum_values(self):
        event = AdminTransferred(previous_admin="0xa", new_admin="0xb")
        data = event.to_dict()
        assert data["event_type"] == "ADMIN_TRANSFERRED"
        assert data["record_id"] is None
        assert json.loads(event.to_json())["new_admin"] == "0xb"

    @pytest.mark.parametrize("event", [
        ProofRegistered(actor="0xa", record_id=2, submitter="0xa", data_hash="0x" + "12" * 32,
                        subject="doc", context="case"),
        ProofDeactivated(actor="0xa", record_id=2),
        AdminTransferred(actor="0xa", previous_admin="0xa", new_admin="0xb"),
    ])
    def test_from_dict_restores_class_and_hash(self, event):
        event.current_hash = event.compute_hash()
        restored = create_event_from_dict(event.to_dict())
        assert type(restored) is type(event)
        assert restored == event
        assert restored.compute_hash() == event.current_hash

    def test_missing_event_type(self):
        with pytest.raises(ValueError, match="event_type is required"):
            create_event_from_dict({"event_id": "x"})

    def test_unknown_event_type(self):
        with pytest.raises(ValueError, match="Unknown event type"):
            create_event_from_dict({"event_type": "GEN_ATTEMPT"})

    def test_unknown_fields_ignored(self):
        event = create_event_from_dict({"event_type": "PROOF_DEACTIVATED", "record_id": 1, "extra": True})
        assert isinstance(event, ProofDeactivated)
        assert isinstance(event, RegistryEvent)
