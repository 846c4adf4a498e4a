"""
Proof Registry Event Log

The append-only public log the registry writes one event to per committed
mutation. Appending an event:

    1. links it to the previous event (previous_hash)
    2. computes its content hash (current_hash)
    3. signs the hash with the registry's Ed25519 key
    4. adds the hash as a Merkle leaf

A log restored from an export without its private key is read-only: it can
be queried and audited, but appending raises ``ReadOnlyLogError``.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from proof_registry.core.events import (
    RegistryEvent,
    EventType,
    create_event_from_dict,
)
from proof_registry.core.merkle import InclusionProof, MerkleTree
from proof_registry.core.signer import Ed25519Signer

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0.0"


class ReadOnlyLogError(RuntimeError):
    """Raised when appending to a log that has no signing key."""


class EventLog:
    """
    Signed, hash-chained, Merkle-committed event list.

    Thread Safety:
        All public methods take a reentrant lock.

    Args:
        signer: Signing key holder. A fresh key is generated if omitted.
    """

    def __init__(self, signer: Optional[Ed25519Signer] = None):
        self._lock = threading.RLock()
        self._signer: Optional[Ed25519Signer] = signer or Ed25519Signer()
        self._public_key = self._signer.public_key_b64
        self._events: List[RegistryEvent] = []
        self._merkle_tree = MerkleTree()
        self._previous_hash = ""
        self._published_root = None

    @classmethod
    def restore(
        cls,
        events: Iterable[RegistryEvent],
        public_key: str,
        signer: Optional[Ed25519Signer] = None,
        published_root: Optional[str] = None
    ) -> 'EventLog':
        """
        Rebuild a log from already-signed events.

        Events are taken as they are; use ``ChainVerifier`` to audit them.

        Args:
            events: Events in log order
            public_key: Base64 public key the events were signed with
            signer: Key to continue appending with. Must match public_key.
                Without it the restored log is read-only.
            published_root: Merkle root recorded alongside the events when
                they were exported. Kept as-is for auditors to compare
                against the rebuilt root.

        Raises:
            ValueError: If signer does not match public_key
        """
        if signer is not None and signer.public_key_b64 != public_key:
            raise ValueError("Signing key does not match the log's public key")

        log = cls.__new__(cls)
        log._lock = threading.RLock()
        log._signer = signer
        log._public_key = public_key
        log._events = []
        log._merkle_tree = MerkleTree()
        log._published_root = published_root
        log._previous_hash = ""
        for event in events:
            log._events.append(event)
            log._merkle_tree.add_leaf(event.current_hash)
            log._previous_hash = event.current_hash
        return log

    @property
    def events(self) -> List[RegistryEvent]:
        """Copy of all logged events."""
        with self._lock:
            return self._events.copy()

    @property
    def event_count(self) -> int:
        with self._lock:
            return len(self._events)

    @property
    def merkle_root(self) -> Optional[str]:
        with self._lock:
            return self._merkle_tree.root

    @property
    def published_root(self) -> Optional[str]:
        """
        Merkle root stored with an imported log, or None for a log built in
        this process. ``merkle_root`` is always recomputed from the events.
        """
        return self._published_root

    @property
    def public_key(self) -> str:
        """Base64 public key that verifies this log's signatures."""
        return self._public_key

    @property
    def read_only(self) -> bool:
        return self._signer is None

    def append(self, event: RegistryEvent) -> RegistryEvent:
        """
        Link, hash, sign and store an event.

        Args:
            event: Unsigned event built by the registry

        Returns:
            RegistryEvent: The same event with chain fields filled in

        Raises:
            ReadOnlyLogError: If the log has no signing key
        """
        with self._lock:
            if self._signer is None:
                raise ReadOnlyLogError("Event log was restored without its signing key")

            event.previous_hash = self._previous_hash
            event.current_hash = event.compute_hash()
            event.signature = self._signer.sign_string(event.current_hash).tagged

            self._merkle_tree.add_leaf(event.current_hash)
            self._previous_hash = event.current_hash
            self._events.append(event)

            logger.debug(
                "Logged %s event %s (record=%s)",
                event.event_type.value, event.event_id, event.record_id
            )
            return event

    def get_inclusion_proof(self, event_index: int) -> InclusionProof:
        with self._lock:
            return self._merkle_tree.get_inclusion_proof(event_index)

    def get_event_by_id(self, event_id: str) -> Optional[RegistryEvent]:
        with self._lock:
            for event in self._events:
                if event.event_id == event_id:
                    return event
            return None

    def get_events_by_type(self, event_type: EventType) -> List[RegistryEvent]:
        with self._lock:
            return [e for e in self._events if e.event_type == event_type]

    def get_events_for_record(self, record_id: int) -> List[RegistryEvent]:
        """All events that touched a given record, in log order."""
        with self._lock:
            return [e for e in self._events if e.record_id == record_id]

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            counts = {event_type.value: 0 for event_type in EventType}
            for event in self._events:
                counts[event.event_type.value] += 1
            return {
                "total_events": len(self._events),
                "by_type": counts,
                "merkle_root": self._merkle_tree.root,
                "merkle_size": self._merkle_tree.size,
            }

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "version": EXPORT_VERSION,
                "exported_at": datetime.now(timezone.utc).isoformat(),
                "public_key": self._public_key,
                "merkle_root": self._merkle_tree.root,
                "event_count": len(self._events),
                "events": [event.to_dict() for event in self._events],
            }

    def export_events(self, filepath: str):
        """Write the log as JSON."""
        with self._lock:
            with open(filepath, 'w') as f:
                json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_dict(cls, data: dict, signer: Optional[Ed25519Signer] = None) -> 'EventLog':
        events = [create_event_from_dict(e) for e in data.get('events', [])]
        return cls.restore(
            events,
            data.get('public_key', ''),
            signer=signer,
            published_root=data.get('merkle_root'),
        )

    @classmethod
    def import_events(cls, filepath: str, signer: Optional[Ed25519Signer] = None) -> 'EventLog':
        """Load a log written by ``export_events``."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data, signer=signer)
