"""
Proof Registry: hash attestation with permanent identifiers

Registers a content hash with a short label, assigns it a sequential
identifier, and lets anyone verify it later. Only the original submitter can
deactivate a record; nothing can edit or delete one.

This library provides:
- A registry with hash uniqueness and immutable authorship
- Soft deletion restricted to the submitter
- An Ed25519-signed, hash-chained event log with Merkle proofs
- Replay and invariant verification for auditors
- Versioned JSON snapshots

Example:
    >>> from proof_registry import Registry, ExecutionContext
    >>>
    >>> registry = Registry(admin="0xadmin")
    >>> alice = ExecutionContext(caller="0xa11ce")
    >>>
    >>> record_id = registry.register("0xaa", "doc1", ctx=alice)
    >>> registry.verify_hash("0xaa")
    HashVerification(exists=True, active=True, identifier=0)
    >>> registry.verify_hash("0xbb")
    HashVerification(exists=False, active=False, identifier=0)
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"

from proof_registry.core.errors import (
    RegistryError,
    InvalidHash,
    HashAlreadyRegistered,
    NotFound,
    Unauthorized,
    AlreadyInactive,
    InvalidAddress,
    SnapshotError,
)
from proof_registry.core.records import Proof, HashVerification, ExecutionContext
from proof_registry.core.events import (
    RegistryEvent,
    EventType,
    ProofRegistered,
    ProofDeactivated,
    AdminTransferred,
)
from proof_registry.core.event_log import EventLog
from proof_registry.core.registry import Registry
from proof_registry.core.signer import Ed25519Signer
from proof_registry.core.verifier import (
    ChainVerifier,
    ReplayVerifier,
    StateVerifier,
    FullVerificationResult,
    full_verification,
)
from proof_registry.core.snapshot import export_snapshot, load_snapshot

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Errors
    "RegistryError",
    "InvalidHash",
    "HashAlreadyRegistered",
    "NotFound",
    "Unauthorized",
    "AlreadyInactive",
    "InvalidAddress",
    "SnapshotError",
    # Records
    "Proof",
    "HashVerification",
    "ExecutionContext",
    # Events
    "RegistryEvent",
    "EventType",
    "ProofRegistered",
    "ProofDeactivated",
    "AdminTransferred",
    "EventLog",
    # Core components
    "Registry",
    "Ed25519Signer",
    # Verification
    "ChainVerifier",
    "ReplayVerifier",
    "StateVerifier",
    "FullVerificationResult",
    "full_verification",
    # Snapshots
    "export_snapshot",
    "load_snapshot",
]
