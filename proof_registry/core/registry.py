"""
Proof Registry

The record store and its operations. A registry owns four structures that
are kept consistent at all times:

    records     identifier -> Proof            (append-only list)
    hash_index  data hash  -> identifier        (first registration wins)
    by_owner    submitter  -> [identifiers]     (creation order)
    admin       identity allowed to hand the admin role on

Every operation runs under one reentrant lock and checks all of its
preconditions before touching any structure, so a call either commits fully
(state change plus exactly one event in the log) or raises with no effect.

Usage:
    >>> from proof_registry import Registry, ExecutionContext
    >>>
    >>> registry = Registry(admin="0xadmin")
    >>> alice = ExecutionContext(caller="0xa11ce")
    >>> registry.register("0xaa", "doc1", ctx=alice)
    0
    >>> registry.verify_hash("0xaa")
    HashVerification(exists=True, active=True, identifier=0)
    >>> registry.deactivate(0, ctx=alice)
    >>> registry.verify_hash("0xaa")
    HashVerification(exists=True, active=False, identifier=0)
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from proof_registry.core.errors import (
    AlreadyInactive,
    HashAlreadyRegistered,
    NotFound,
    RegistryError,
    SnapshotError,
    Unauthorized,
)
from proof_registry.core.event_log import EventLog
from proof_registry.core.events import (
    AdminTransferred,
    ProofDeactivated,
    ProofRegistered,
)
from proof_registry.core.records import (
    ZERO_ADDRESS,
    ExecutionContext,
    HashLike,
    HashVerification,
    Proof,
    is_zero_address,
    normalize_address,
    normalize_hash,
    require_address,
)
from proof_registry.core.signer import Ed25519Signer

logger = logging.getLogger(__name__)


class Registry:
    """
    Hash attestation registry.

    Args:
        admin: Initial admin identity
        signer: Key used to sign the event log. Generated if omitted.
        now: Time stamped on the genesis admin event (defaults to now)

    Raises:
        InvalidAddress: If admin is the zero identity
    """

    def __init__(
        self,
        admin: str,
        signer: Optional[Ed25519Signer] = None,
        now: Optional[datetime] = None
    ):
        admin = require_address(admin, "admin")
        self._init_state(admin, EventLog(signer))

        genesis = AdminTransferred(
            timestamp=(now or datetime.now(timezone.utc)).isoformat(),
            actor=admin,
            previous_admin=ZERO_ADDRESS,
            new_admin=admin,
        )
        self._event_log.append(genesis)
        logger.info("Registry created with admin %s", admin)

    def _init_state(self, admin: str, event_log: EventLog):
        self._lock = threading.RLock()
        self._records: List[Proof] = []
        self._hash_index: Dict[str, int] = {}
        self._by_owner: Dict[str, List[int]] = {}
        self._admin = admin
        self._event_log = event_log

    @classmethod
    def from_state(
        cls,
        admin: str,
        records: Iterable[Proof],
        event_log: EventLog
    ) -> 'Registry':
        """
        Rebuild a registry from stored records.

        ``hash_index`` and ``by_owner`` are derived from the records, never
        loaded, so they cannot disagree with them.

        Raises:
            SnapshotError: If identifiers are not dense, a hash repeats, or a
                record has a zero submitter
        """
        if is_zero_address(admin):
            raise SnapshotError("Snapshot has no admin")

        registry = cls.__new__(cls)
        registry._init_state(normalize_address(admin), event_log)

        for expected_id, proof in enumerate(records):
            if proof.identifier != expected_id:
                raise SnapshotError(
                    f"Record identifiers are not dense: expected {expected_id}, "
                    f"got {proof.identifier}"
                )
            if is_zero_address(proof.submitter):
                raise SnapshotError(f"Record {expected_id} has no submitter")
            if proof.data_hash in registry._hash_index:
                raise SnapshotError(
                    f"Hash {proof.data_hash} stored twice "
                    f"(records {registry._hash_index[proof.data_hash]} and {expected_id})"
                )
            registry._store(proof)

        logger.info(
            "Registry restored: %d records, admin %s",
            len(registry._records), registry._admin
        )
        return registry

    # ---- read accessors ---------------------------------------------------

    @property
    def admin(self) -> str:
        with self._lock:
            return self._admin

    @property
    def total_records(self) -> int:
        """Number of records ever created; also the next identifier."""
        with self._lock:
            return len(self._records)

    @property
    def next_id(self) -> int:
        return self.total_records

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    def proofs(self) -> Tuple[Proof, ...]:
        """All records, active and inactive, in identifier order."""
        with self._lock:
            return tuple(self._records)

    def get_proof(self, identifier: int) -> Proof:
        """
        Fetch a record by identifier.

        Raises:
            NotFound: If no record exists at identifier
        """
        with self._lock:
            return self._records[self._check_identifier(identifier)]

    def lookup_hash(self, data_hash: HashLike) -> Optional[int]:
        """
        Identifier registered for ``data_hash``, or None.

        None is the only "not found" answer; identifier 0 is an ordinary
        hit.

        Raises:
            InvalidHash: If data_hash cannot be parsed
        """
        canonical = normalize_hash(data_hash, allow_zero=True)
        with self._lock:
            return self._hash_index.get(canonical)

    def verify_hash(self, data_hash: HashLike) -> HashVerification:
        """
        Check whether a hash is registered and still active.

        Args:
            data_hash: Hash to look up

        Returns:
            HashVerification: ``(exists, active, identifier)``;
            ``(False, False, 0)`` when the hash has no record

        Raises:
            InvalidHash: If data_hash cannot be parsed
        """
        canonical = normalize_hash(data_hash, allow_zero=True)
        with self._lock:
            identifier = self._hash_index.get(canonical)
            if identifier is None:
                logger.debug("verify_hash %s: not registered", canonical)
                return HashVerification.not_found()

            proof = self._records[identifier]
            return HashVerification(
                exists=proof.data_hash == canonical,
                active=proof.is_active,
                identifier=identifier,
            )

    def list_by_submitter(self, address: str) -> Tuple[int, ...]:
        """Identifiers registered by ``address``, in creation order."""
        key = normalize_address(address)
        with self._lock:
            return tuple(self._by_owner.get(key, ()))

    # ---- mutations --------------------------------------------------------

    def register(
        self,
        data_hash: HashLike,
        subject: str,
        context: str = "",
        *,
        ctx: ExecutionContext
    ) -> int:
        """
        Register a content hash.

        Args:
            data_hash: Hash of the off-registry content
            subject: Short label
            context: Optional free-text label (case/project id)
            ctx: Caller and time of the operation

        Returns:
            int: The new record's identifier

        Raises:
            InvalidHash: If data_hash is empty, zero or malformed
            InvalidAddress: If the caller is the zero identity
            HashAlreadyRegistered: If data_hash already has a record
        """
        if not isinstance(subject, str) or not isinstance(context, str):
            raise TypeError("subject and context must be strings")

        with self._lock:
            try:
                canonical = normalize_hash(data_hash)
                submitter = require_address(ctx.caller, "submitter")
                existing = self._hash_index.get(canonical)
                if existing is not None:
                    raise HashAlreadyRegistered(canonical, existing)
            except RegistryError as exc:
                self._log_rejection("register", ctx, exc)
                raise

            identifier = len(self._records)
            proof = Proof(
                identifier=identifier,
                submitter=submitter,
                data_hash=canonical,
                subject=subject,
                context=context,
                created_at=ctx.now,
            )
            self._event_log.append(ProofRegistered(
                timestamp=ctx.now.isoformat(),
                actor=submitter,
                record_id=identifier,
                submitter=submitter,
                data_hash=canonical,
                subject=subject,
                context=context,
            ))
            self._store(proof)

            logger.info("Registered %s as record %d by %s", canonical, identifier, submitter)
            return identifier

    def deactivate(self, identifier: int, *, ctx: ExecutionContext) -> None:
        """
        Soft-delete a record. Only its submitter may do this.

        Raises:
            NotFound: If no record exists at identifier
            Unauthorized: If the caller is not the record's submitter
            AlreadyInactive: If the record was already deactivated
        """
        with self._lock:
            try:
                identifier = self._check_identifier(identifier)
                proof = self._records[identifier]
                if ctx.caller != proof.submitter:
                    raise Unauthorized(ctx.caller, f"deactivate record {identifier}", "submitter")
                if not proof.is_active:
                    raise AlreadyInactive(identifier)
            except RegistryError as exc:
                self._log_rejection("deactivate", ctx, exc)
                raise

            self._event_log.append(ProofDeactivated(
                timestamp=ctx.now.isoformat(),
                actor=ctx.caller,
                record_id=identifier,
            ))
            self._records[identifier] = proof.deactivated()

            logger.info("Deactivated record %d by %s", identifier, ctx.caller)

    def transfer_admin(self, new_admin: str, *, ctx: ExecutionContext) -> None:
        """
        Hand the admin role to ``new_admin``. Only the current admin may.

        Raises:
            Unauthorized: If the caller is not the admin
            InvalidAddress: If new_admin is the zero identity
        """
        with self._lock:
            try:
                if ctx.caller != self._admin:
                    raise Unauthorized(ctx.caller, "transfer admin", "admin")
                new_admin = require_address(new_admin, "new admin")
            except RegistryError as exc:
                self._log_rejection("transfer_admin", ctx, exc)
                raise

            previous = self._admin
            self._event_log.append(AdminTransferred(
                timestamp=ctx.now.isoformat(),
                actor=ctx.caller,
                previous_admin=previous,
                new_admin=new_admin,
            ))
            self._admin = new_admin

            logger.info("Admin transferred from %s to %s", previous, new_admin)

    # ---- internals --------------------------------------------------------

    def _store(self, proof: Proof):
        self._records.append(proof)
        self._hash_index[proof.data_hash] = proof.identifier
        self._by_owner.setdefault(proof.submitter, []).append(proof.identifier)

    def _check_identifier(self, identifier: int) -> int:
        # bool is an int subclass; True must not resolve to record 1
        if (
            isinstance(identifier, bool)
            or not isinstance(identifier, int)
            or not 0 <= identifier < len(self._records)
        ):
            raise NotFound(identifier)
        return identifier

    @staticmethod
    def _log_rejection(operation: str, ctx: ExecutionContext, exc: RegistryError):
        logger.warning("Rejected %s from %r: %s [%s]", operation, ctx.caller, exc, exc.code)

    def to_dict(self) -> dict:
        """Logical state: admin, next_id and records (indexes are derived)."""
        with self._lock:
            return {
                "admin": self._admin,
                "next_id": len(self._records),
                "records": [proof.to_dict() for proof in self._records],
            }

    def __repr__(self) -> str:
        return f"Registry(admin={self._admin!r}, total_records={len(self._records)})"
