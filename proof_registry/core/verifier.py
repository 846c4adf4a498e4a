"""
Proof Registry Audit Verification

Checks an exported event log (and optionally a live or restored registry)
from the outside, the way an indexer consuming the public feed would:

1. Chain Verification - previous_hash links, content hashes, signatures
2. Merkle Verification - inclusion proofs against a published root
3. Replay Verification - rebuilding the registry from its events; every
   event must be one the registry would have accepted, and the rebuilt state
   must match the registry under audit
4. State Verification - the registry's tables agree with each other

Verifiers never raise on tampered input. They report through result objects.

Usage:
    >>> from proof_registry.core.verifier import full_verification
    >>>
    >>> result = full_verification(
    ...     registry.event_log.events,
    ...     public_key=registry.event_log.public_key,
    ...     registry=registry,
    ... )
    >>> result.is_valid
    True
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from proof_registry.core.errors import RegistryError
from proof_registry.core.events import (
    AdminTransferred,
    ProofDeactivated,
    ProofRegistered,
    RegistryEvent,
)
from proof_registry.core.merkle import InclusionProof, MerkleTree
from proof_registry.core.records import ExecutionContext, is_zero_address
from proof_registry.core.registry import Registry
from proof_registry.core.signer import Ed25519Signer
from proof_registry.utils.helpers import parse_timestamp

logger = logging.getLogger(__name__)


def _join_issues(issues: List[str], sep: str = "; ") -> Optional[str]:
    return sep.join(issues) if issues else None


@dataclass
class ChainVerificationResult:
    """
    Result of a hash chain verification.

    Attributes:
        is_valid: True if every link, hash and signature checks out
        events_verified: Number of events examined
        first_invalid_index: Index of the first broken event, if any
        invalid_hashes: (index, expected, actual) for broken links/hashes
        invalid_signatures: Indices with bad or missing signatures
    """
    is_valid: bool
    events_verified: int = 0
    first_invalid_index: Optional[int] = None
    error_message: Optional[str] = None
    invalid_hashes: List[Tuple[int, str, str]] = field(default_factory=list)
    invalid_signatures: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "events_verified": self.events_verified,
            "first_invalid_index": self.first_invalid_index,
            "error_message": self.error_message,
            "invalid_hash_count": len(self.invalid_hashes),
            "invalid_signature_count": len(self.invalid_signatures)
        }


class ChainVerifier:
    """
    Verifies hash chain integrity and signatures of a registry event log.

    Args:
        public_key: Base64 public key. Without it signatures are not checked.
    """

    def __init__(self, public_key: Optional[str] = None):
        self._public_key = public_key

    def verify(
        self,
        events: List[RegistryEvent],
        verify_signatures: bool = True
    ) -> ChainVerificationResult:
        if not events:
            return ChainVerificationResult(is_valid=True, events_verified=0)

        invalid_hashes = []
        invalid_signatures = []
        previous_hash = ""
        check_signatures = verify_signatures and bool(self._public_key)

        for i, event in enumerate(events):
            if event.previous_hash != previous_hash:
                invalid_hashes.append((
                    i,
                    f"Expected previous_hash: {previous_hash[:23]}...",
                    f"Got: {event.previous_hash[:23]}..." if event.previous_hash else "empty"
                ))

            computed_hash = event.compute_hash()
            if event.current_hash != computed_hash:
                invalid_hashes.append((
                    i,
                    f"Expected hash: {computed_hash[:23]}...",
                    f"Got: {event.current_hash[:23]}..."
                ))

            if check_signatures:
                result = Ed25519Signer.verify_tagged(
                    event.current_hash.encode('utf-8'),
                    event.signature,
                    self._public_key
                )
                if not result.is_valid:
                    invalid_signatures.append(i)

            previous_hash = event.current_hash

        issues = []
        if invalid_hashes:
            issues.append(f"{len(invalid_hashes)} invalid hashes")
        if invalid_signatures:
            issues.append(f"{len(invalid_signatures)} invalid signatures")

        first_invalid = min(
            [entry[0] for entry in invalid_hashes] + invalid_signatures,
            default=None
        )
        if issues:
            logger.warning("Event chain verification failed: %s", "; ".join(issues))

        return ChainVerificationResult(
            is_valid=not issues,
            events_verified=len(events),
            first_invalid_index=first_invalid,
            error_message=_join_issues(issues),
            invalid_hashes=invalid_hashes,
            invalid_signatures=invalid_signatures
        )


class MerkleVerifier:
    """Verifies Merkle inclusion proofs for registry events."""

    @staticmethod
    def verify_event_inclusion(
        event: RegistryEvent,
        proof: InclusionProof,
        expected_root: str
    ) -> bool:
        """
        Check that an event is in the log committed to by ``expected_root``.

        The event's stored hash must also match its content, so an edited
        event cannot borrow the proof of the original.
        """
        if event.compute_hash() != event.current_hash:
            return False
        return MerkleTree.verify_inclusion_proof(event.current_hash, proof, expected_root)


@dataclass
class ReplayResult:
    """
    Result of replaying an event log into a fresh registry.

    Attributes:
        is_valid: True if every event replayed and the state matched
        events_replayed: Number of events applied
        records_rebuilt: Records in the rebuilt registry
        rejected_events: (index, reason) for events the registry refused
        state_mismatches: Differences from the registry under audit
        registry: The rebuilt registry, when the genesis event was usable
    """
    is_valid: bool
    events_replayed: int = 0
    records_rebuilt: int = 0
    rejected_events: List[Tuple[int, str]] = field(default_factory=list)
    state_mismatches: List[str] = field(default_factory=list)
    error_message: Optional[str] = None
    registry: Optional[Registry] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "events_replayed": self.events_replayed,
            "records_rebuilt": self.records_rebuilt,
            "rejected_events": [
                {"index": index, "reason": reason} for index, reason in self.rejected_events
            ],
            "state_mismatches": self.state_mismatches,
            "error_message": self.error_message,
        }


class ReplayVerifier:
    """
    Rebuilds registry state from the event feed.

    The first event must be the genesis admin transfer from the zero
    identity. Each following event is re-executed as the operation it
    records, with its actor as caller and its timestamp as the clock.
    """

    def verify(
        self,
        events: List[RegistryEvent],
        registry: Optional[Registry] = None
    ) -> ReplayResult:
        if not events:
            return ReplayResult(is_valid=False, error_message="Event log is empty (no genesis event)")

        genesis = events[0]
        if not isinstance(genesis, AdminTransferred) or not is_zero_address(genesis.previous_admin):
            return ReplayResult(
                is_valid=False,
                rejected_events=[(0, "first event is not a genesis admin transfer")],
                error_message="Missing genesis event",
            )

        try:
            replayed = Registry(admin=genesis.new_admin, now=parse_timestamp(genesis.timestamp))
        except (RegistryError, ValueError) as e:
            return ReplayResult(
                is_valid=False,
                rejected_events=[(0, str(e))],
                error_message=f"Unusable genesis event: {e}",
            )

        rejected = []
        for index, event in enumerate(events[1:], start=1):
            reason = self._apply(replayed, event)
            if reason:
                rejected.append((index, reason))

        mismatches = self._compare(replayed, registry) if registry is not None else []

        issues = []
        if rejected:
            issues.append(f"{len(rejected)} events rejected on replay")
        if mismatches:
            issues.append(f"{len(mismatches)} state mismatches")
        if issues:
            logger.warning("Replay verification failed: %s", "; ".join(issues))

        return ReplayResult(
            is_valid=not issues,
            events_replayed=len(events),
            records_rebuilt=replayed.total_records,
            rejected_events=rejected,
            state_mismatches=mismatches,
            error_message=_join_issues(issues),
            registry=replayed,
        )

    @staticmethod
    def _apply(replayed: Registry, event: RegistryEvent) -> Optional[str]:
        """Re-run one event; return a rejection reason or None."""
        try:
            ctx = ExecutionContext(caller=event.actor, now=parse_timestamp(event.timestamp))

            if isinstance(event, ProofRegistered):
                if event.submitter != event.actor:
                    return "submitter differs from actor"
                identifier = replayed.register(
                    event.data_hash, event.subject, event.context, ctx=ctx
                )
                if identifier != event.record_id:
                    return f"record_id {event.record_id} but replay assigned {identifier}"

            elif isinstance(event, ProofDeactivated):
                replayed.deactivate(event.record_id, ctx=ctx)

            elif isinstance(event, AdminTransferred):
                if event.previous_admin != replayed.admin:
                    return f"previous_admin {event.previous_admin!r} but admin was {replayed.admin!r}"
                replayed.transfer_admin(event.new_admin, ctx=ctx)

            else:
                return f"unknown event class {type(event).__name__}"

        except (RegistryError, ValueError, TypeError) as e:
            return f"{event.event_type.value}: {e}"
        return None

    @staticmethod
    def _compare(replayed: Registry, registry: Registry) -> List[str]:
        mismatches = []
        if replayed.admin != registry.admin:
            mismatches.append(f"admin: log says {replayed.admin!r}, registry has {registry.admin!r}")
        if replayed.total_records != registry.total_records:
            mismatches.append(
                f"total_records: log says {replayed.total_records}, "
                f"registry has {registry.total_records}"
            )

        for expected, actual in zip(replayed.proofs(), registry.proofs()):
            if expected != actual:
                mismatches.append(f"record {expected.identifier} differs from its events")

        submitters = {proof.submitter for proof in registry.proofs()}
        submitters.update(proof.submitter for proof in replayed.proofs())
        for submitter in sorted(submitters):
            if replayed.list_by_submitter(submitter) != registry.list_by_submitter(submitter):
                mismatches.append(f"owner index for {submitter!r} differs from its events")
        return mismatches


@dataclass
class StateVerificationResult:
    is_valid: bool
    records_checked: int = 0
    violations: List[str] = field(default_factory=list)
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "records_checked": self.records_checked,
            "violations": self.violations,
            "error_message": self.error_message,
        }


class StateVerifier:
    """
    Checks that a registry's tables agree with each other:

    - identifiers are exactly 0..total_records-1
    - every record's hash resolves back to that record, hashes are unique
    - each submitter's index lists exactly their records, in order
    """

    def verify(self, registry: Registry) -> StateVerificationResult:
        proofs = registry.proofs()
        violations = []

        seen_hashes = {}
        owners = {}
        for position, proof in enumerate(proofs):
            if proof.identifier != position:
                violations.append(f"record at position {position} has identifier {proof.identifier}")
            if proof.data_hash in seen_hashes:
                violations.append(
                    f"hash {proof.data_hash} on records {seen_hashes[proof.data_hash]} and {position}"
                )
            seen_hashes.setdefault(proof.data_hash, position)
            if registry.lookup_hash(proof.data_hash) != position:
                violations.append(f"hash index does not resolve record {position}")
            owners.setdefault(proof.submitter, []).append(position)

        for submitter, identifiers in owners.items():
            if registry.list_by_submitter(submitter) != tuple(identifiers):
                violations.append(f"owner index for {submitter!r} is inconsistent")

        return StateVerificationResult(
            is_valid=not violations,
            records_checked=len(proofs),
            violations=violations,
            error_message=_join_issues([f"{len(violations)} invariant violations"] if violations else []),
        )


@dataclass
class FullVerificationResult:
    """Chain + replay (+ state, + Merkle root) verification."""
    is_valid: bool
    chain: ChainVerificationResult
    replay: ReplayResult
    state: Optional[StateVerificationResult] = None
    merkle_root_valid: Optional[bool] = None
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "chain": self.chain.to_dict(),
            "replay": self.replay.to_dict(),
            "state": self.state.to_dict() if self.state else None,
            "merkle_root_valid": self.merkle_root_valid,
            "error_message": self.error_message
        }


def full_verification(
    events: List[RegistryEvent],
    public_key: Optional[str] = None,
    expected_merkle_root: Optional[str] = None,
    registry: Optional[Registry] = None
) -> FullVerificationResult:
    """
    Run every applicable check over an event log.

    Args:
        events: Events in log order
        public_key: Base64 key for signature checks (skipped if None)
        expected_merkle_root: Published root to compare against (skipped if None)
        registry: Registry whose state must match the log (skipped if None)

    Returns:
        FullVerificationResult: Combined results
    """
    chain_result = ChainVerifier(public_key).verify(events, verify_signatures=bool(public_key))
    replay_result = ReplayVerifier().verify(events, registry=registry)
    state_result = StateVerifier().verify(registry) if registry is not None else None

    merkle_root_valid = None
    if expected_merkle_root:
        try:
            tree = MerkleTree.from_leaves([event.current_hash for event in events])
            merkle_root_valid = (tree.root == expected_merkle_root)
        except (TypeError, ValueError):
            merkle_root_valid = False

    issues = []
    if not chain_result.is_valid:
        issues.append(f"Chain: {chain_result.error_message}")
    if not replay_result.is_valid:
        issues.append(f"Replay: {replay_result.error_message}")
    if state_result is not None and not state_result.is_valid:
        issues.append(f"State: {state_result.error_message}")
    if merkle_root_valid is False:
        issues.append("Merkle root mismatch")

    return FullVerificationResult(
        is_valid=not issues,
        chain=chain_result,
        replay=replay_result,
        state=state_result,
        merkle_root_valid=merkle_root_valid,
        error_message=_join_issues(issues, " | ")
    )


