"""
Proof Registry Snapshots

Versioned JSON export of a registry: its logical state (admin, records) and
its full event log. Only records are stored; the hash index and the
per-submitter index are rebuilt on load, so a snapshot cannot carry indexes
that disagree with its records.

Loading validates the document against ``SNAPSHOT_SCHEMA`` (JSON Schema
2020-12) before anything is rebuilt.

Usage:
    >>> from proof_registry.core.snapshot import export_snapshot, load_snapshot
    >>>
    >>> export_snapshot(registry, "state.json")
    >>> restored = load_snapshot("state.json")                 # read-only
    >>> writable = load_snapshot("state.json", private_key=key)  # can mutate
"""

import json
import logging
import os
import tempfile
from typing import Optional, Union
from pathlib import Path

from jsonschema import Draft202012Validator

from proof_registry.core.errors import RegistryError, SnapshotError
from proof_registry.core.event_log import EventLog
from proof_registry.core.records import Proof
from proof_registry.core.registry import Registry
from proof_registry.core.signer import Ed25519Signer
from proof_registry.utils.helpers import format_timestamp

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
SUPPORTED_SCHEMA_VERSIONS = (1,)

_HASH_PATTERN = "^0x[0-9a-f]{64}$"

SNAPSHOT_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$id": "https://proof-registry.dev/schemas/snapshot.json",
    "title": "Proof registry snapshot",
    "type": "object",
    "required": ["schema_version", "admin", "next_id", "records", "event_log"],
    "properties": {
        "schema_version": {"type": "integer", "minimum": 1},
        "exported_at": {"type": "string"},
        "admin": {"type": "string", "minLength": 1},
        "next_id": {"type": "integer", "minimum": 0},
        "records": {
            "type": "array",
            "items": {
                "type": "object",
                "required": [
                    "identifier", "submitter", "data_hash", "subject",
                    "context", "created_at", "is_active",
                ],
                "properties": {
                    "identifier": {"type": "integer", "minimum": 0},
                    "submitter": {"type": "string", "minLength": 1},
                    "data_hash": {"type": "string", "pattern": _HASH_PATTERN},
                    "subject": {"type": "string"},
                    "context": {"type": "string"},
                    "created_at": {"type": "string"},
                    "is_active": {"type": "boolean"},
                },
            },
        },
        "event_log": {
            "type": "object",
            "required": ["public_key", "events"],
            "properties": {
                "public_key": {"type": "string", "minLength": 1},
                "merkle_root": {"type": ["string", "null"]},
                "events": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["event_id", "event_type", "timestamp", "current_hash"],
                        "properties": {
                            "event_id": {"type": "string"},
                            "event_type": {"type": "string"},
                            "timestamp": {"type": "string"},
                            "actor": {"type": "string"},
                            "record_id": {"type": ["integer", "null"]},
                            "previous_hash": {"type": "string"},
                            "current_hash": {"type": "string"},
                            "signature": {"type": "string"},
                        },
                    },
                },
            },
        },
    },
}

_validator = Draft202012Validator(SNAPSHOT_SCHEMA)


def snapshot_to_dict(registry: Registry) -> dict:
    """Snapshot document for ``registry``."""
    state = registry.to_dict()
    return {
        "schema_version": SCHEMA_VERSION,
        "exported_at": format_timestamp(),
        **state,
        "event_log": registry.event_log.to_dict(),
    }


def export_snapshot(registry: Registry, filepath: Union[str, Path]) -> Path:
    """
    Write a registry snapshot as JSON.

    Returns:
        Path: The written file
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    document = snapshot_to_dict(registry)

    # The target is only ever replaced by a complete file
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, 'w') as f:
            json.dump(document, f, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        os.unlink(tmp_name)
        raise
    logger.info("Exported %d records to %s", document["next_id"], path)
    return path


def registry_from_dict(data: dict, private_key: Optional[bytes] = None) -> Registry:
    """
    Rebuild a registry from a snapshot document.

    Args:
        data: Parsed snapshot
        private_key: Ed25519 seed matching the snapshot's public key. Without
            it the registry is read-only (mutations raise ReadOnlyLogError).

    Raises:
        SnapshotError: If the snapshot is malformed, of an unsupported
            version, or internally inconsistent
    """
    errors = sorted(_validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    if errors:
        first = errors[0]
        location = "/".join(str(part) for part in first.absolute_path) or "<root>"
        raise SnapshotError(f"Snapshot does not match schema at {location}: {first.message}")

    version = data["schema_version"]
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        raise SnapshotError(f"Unsupported snapshot schema version {version}")

    try:
        records = [Proof.from_dict(record) for record in data["records"]]
    except (RegistryError, ValueError) as e:
        raise SnapshotError(f"Invalid record in snapshot: {e}") from e

    if data["next_id"] != len(records):
        raise SnapshotError(
            f"next_id is {data['next_id']} but snapshot holds {len(records)} records"
        )

    signer = Ed25519Signer(private_key) if private_key else None
    try:
        event_log = EventLog.from_dict(data["event_log"], signer=signer)
    except (TypeError, ValueError) as e:
        raise SnapshotError(f"Invalid event log in snapshot: {e}") from e

    return Registry.from_state(data["admin"], records, event_log)


def load_snapshot(filepath: Union[str, Path], private_key: Optional[bytes] = None) -> Registry:
    """Read a snapshot file written by ``export_snapshot``."""
    try:
        with open(filepath, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Snapshot is not valid JSON: {e}") from e
    registry = registry_from_dict(data, private_key=private_key)
    logger.info("Loaded snapshot %s (%d records)", filepath, registry.total_records)
    return registry
