"""
Proof Registry Event Definitions

Every committed mutation of the registry emits exactly one event. The events
form the registry's public provenance feed: an append-only, hash-chained and
signed trail that an outside indexer can read and replay.

Event Types:
    - PROOF_REGISTERED: a new hash was registered (identifier, submitter,
      hash, subject, context, timestamp)
    - PROOF_DEACTIVATED: the submitter soft-deleted a record
    - ADMIN_TRANSFERRED: the admin role moved to a new identity; the first
      event of every log is the genesis transfer from the zero identity

The registry never reads its own events back. They exist for auditors.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from dataclasses import dataclass, field, asdict, fields
import hashlib
import json
import uuid


class EventType(Enum):
    """Kinds of registry events."""

    PROOF_REGISTERED = "PROOF_REGISTERED"
    PROOF_DEACTIVATED = "PROOF_DEACTIVATED"
    ADMIN_TRANSFERRED = "ADMIN_TRANSFERRED"


def generate_event_id() -> str:
    """
    Generate a UUIDv7 event ID.

    The leading 48 bits are a millisecond timestamp, so IDs sort by creation
    time.

    Returns:
        str: A UUIDv7 string in standard format
    """
    timestamp_ms = int(datetime.now(timezone.utc).timestamp() * 1000)

    uuid_int = (timestamp_ms & 0xFFFFFFFFFFFF) << 80
    uuid_int |= 0x7 << 76
    uuid_int |= (uuid.uuid4().int & 0x0FFF) << 64
    uuid_int |= 0x2 << 62
    uuid_int |= uuid.uuid4().int & 0x3FFFFFFFFFFFFFFF

    return str(uuid.UUID(int=uuid_int))


def hash_data(data: str) -> str:
    """SHA-256 of a UTF-8 string, with 'sha256:' prefix."""
    return f"sha256:{hashlib.sha256(data.encode()).hexdigest()}"


# Fields filled in by the event log, excluded from the content hash.
_UNHASHED_FIELDS = ("current_hash", "signature")


@dataclass
class RegistryEvent:
    """
    Base class for all registry events.

    Attributes:
        event_id: Unique UUIDv7 identifier
        event_type: Kind of mutation
        timestamp: ISO 8601 time of the operation (the execution context's
            clock, not the wall clock at logging time)
        actor: Identity that performed the operation
        record_id: Affected record identifier, None for admin transfers
        previous_hash: Hash of the previous event in the log
        current_hash: Hash of this event's content
        signature: Ed25519 signature of current_hash ("ed25519:<b64>")
    """

    event_id: str = field(default_factory=generate_event_id)
    event_type: EventType = EventType.PROOF_REGISTERED
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    actor: str = ""
    record_id: Optional[int] = None
    previous_hash: str = ""
    current_hash: str = ""
    signature: str = ""

    def compute_hash(self) -> str:
        """
        Compute the hash of this event's content.

        Covers every field except current_hash and signature, serialized as
        canonical JSON (sorted keys, no whitespace).

        Returns:
            str: SHA-256 hash with 'sha256:' prefix
        """
        content = {}
        for f in fields(self):
            if f.name in _UNHASHED_FIELDS:
                continue
            value = getattr(self, f.name)
            content[f.name] = value.value if isinstance(value, Enum) else value

        canonical = json.dumps(content, sort_keys=True, separators=(',', ':'))
        return hash_data(canonical)

    def to_dict(self) -> dict:
        """Convert event to dictionary for serialization."""
        d = asdict(self)
        d['event_type'] = self.event_type.value
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


@dataclass
class ProofRegistered(RegistryEvent):
    """
    Emitted when a hash is registered.

    Attributes:
        submitter: Identity that registered the hash (same as actor)
        data_hash: Canonical content hash
        subject: Short label
        context: Optional free-text label
    """

    event_type: EventType = field(default=EventType.PROOF_REGISTERED)
    submitter: str = ""
    data_hash: str = ""
    subject: str = ""
    context: str = ""


@dataclass
class ProofDeactivated(RegistryEvent):
    """Emitted when a submitter soft-deletes one of their records."""

    event_type: EventType = field(default=EventType.PROOF_DEACTIVATED)


@dataclass
class AdminTransferred(RegistryEvent):
    """
    Emitted when the admin role changes hands.

    Attributes:
        previous_admin: Admin before the transfer ("" for the genesis event)
        new_admin: Admin after the transfer
    """

    event_type: EventType = field(default=EventType.ADMIN_TRANSFERRED)
    previous_admin: str = ""
    new_admin: str = ""


_EVENT_CLASSES = {
    EventType.PROOF_REGISTERED: ProofRegistered,
    EventType.PROOF_DEACTIVATED: ProofDeactivated,
    EventType.ADMIN_TRANSFERRED: AdminTransferred,
}


def create_event_from_dict(data: dict) -> RegistryEvent:
    """
    Factory function to create the appropriate event type from a dictionary.

    Args:
        data: Dictionary containing event data

    Returns:
        RegistryEvent: The appropriate event subclass instance

    Raises:
        ValueError: If event_type is missing or invalid
    """
    event_type_str = data.get('event_type')
    if not event_type_str:
        raise ValueError("event_type is required")

    try:
        event_type = EventType(event_type_str)
    except ValueError:
        raise ValueError(f"Unknown event type: {event_type_str}") from None

    cls = _EVENT_CLASSES[event_type]
    kwargs = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
    kwargs['event_type'] = event_type
    return cls(**kwargs)
