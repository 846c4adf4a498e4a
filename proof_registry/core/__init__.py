"""
Proof Registry Core Module

Submodules:
    - errors: Rejection taxonomy
    - records: Proof, HashVerification, ExecutionContext and key normalization
    - registry: The record store and its operations
    - events: Event type definitions
    - event_log: Signed, hash-chained, Merkle-committed event log
    - signer: Ed25519 signing
    - merkle: Merkle tree for inclusion proofs
    - verifier: Chain, replay and state verification
    - snapshot: Versioned JSON export/import
"""

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

from proof_registry.core.records import (
    Proof,
    HashVerification,
    ExecutionContext,
    ZERO_ADDRESS,
    ZERO_HASH,
    normalize_hash,
    normalize_address,
    is_zero_address,
)

from proof_registry.core.events import (
    RegistryEvent,
    EventType,
    ProofRegistered,
    ProofDeactivated,
    AdminTransferred,
    generate_event_id,
    hash_data,
    create_event_from_dict,
)

from proof_registry.core.signer import (
    Ed25519Signer,
    SignatureResult,
    VerificationResult,
    generate_key_pair_b64,
)

from proof_registry.core.merkle import MerkleTree, InclusionProof

from proof_registry.core.event_log import EventLog, ReadOnlyLogError

from proof_registry.core.registry import Registry

from proof_registry.core.verifier import (
    ChainVerifier,
    MerkleVerifier,
    ReplayVerifier,
    StateVerifier,
    ChainVerificationResult,
    ReplayResult,
    StateVerificationResult,
    FullVerificationResult,
    full_verification,
)

from proof_registry.core.snapshot import (
    SCHEMA_VERSION,
    export_snapshot,
    load_snapshot,
    registry_from_dict,
    snapshot_to_dict,
)

__all__ = [
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
    "ZERO_ADDRESS",
    "ZERO_HASH",
    "normalize_hash",
    "normalize_address",
    "is_zero_address",
    # Events
    "RegistryEvent",
    "EventType",
    "ProofRegistered",
    "ProofDeactivated",
    "AdminTransferred",
    "generate_event_id",
    "hash_data",
    "create_event_from_dict",
    # Signer
    "Ed25519Signer",
    "SignatureResult",
    "VerificationResult",
    "generate_key_pair_b64",
    # Merkle
    "MerkleTree",
    "InclusionProof",
    # Event log
    "EventLog",
    "ReadOnlyLogError",
    # Registry
    "Registry",
    # Verifier
    "ChainVerifier",
    "MerkleVerifier",
    "ReplayVerifier",
    "StateVerifier",
    "ChainVerificationResult",
    "ReplayResult",
    "StateVerificationResult",
    "FullVerificationResult",
    "full_verification",
    # Snapshot
    "SCHEMA_VERSION",
    "export_snapshot",
    "load_snapshot",
    "registry_from_dict",
    "snapshot_to_dict",
]
