"""
Proof Registry Record Types

This module defines the value types stored and returned by the registry:

    - Proof: one attestation that a content hash existed at a point in time
    - HashVerification: answer to "is this hash registered, and is it active?"
    - ExecutionContext: who is calling and when

It also holds the normalization rules for the two kinds of keys the registry
works with, content hashes and identities.

Hashes are fixed-width 32-byte values. Shorter inputs are right-padded with
zero bytes, so ``0xaa`` and ``0xaa00...00`` name the same hash. The canonical
form is ``0x`` followed by 64 lowercase hex digits.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import NamedTuple, Union

from proof_registry.core.errors import InvalidAddress, InvalidHash


HASH_SIZE = 32
ZERO_HASH = "0x" + "00" * HASH_SIZE
ZERO_ADDRESS = ""

HashLike = Union[str, bytes, bytearray]

_HASH_PREFIXES = ("sha256:", "0x", "0X")
_HEX_DIGITS = re.compile(r"[0-9a-fA-F]*")


def _hash_bytes(value: HashLike) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        text = value.strip()
        for prefix in _HASH_PREFIXES:
            if text.startswith(prefix):
                text = text[len(prefix):]
                break
        # bytes.fromhex skips whitespace between pairs
        if not _HEX_DIGITS.fullmatch(text):
            raise InvalidHash(value, "not hex")
        if len(text) % 2:
            raise InvalidHash(value, "odd-length hex")
        raw = bytes.fromhex(text)
    else:
        raise InvalidHash(value, "unsupported hash type")

    if not raw:
        raise InvalidHash(value, "empty hash")
    if len(raw) > HASH_SIZE:
        raise InvalidHash(value, f"hash longer than {HASH_SIZE} bytes")
    return raw.ljust(HASH_SIZE, b"\x00")


def normalize_hash(value: HashLike, allow_zero: bool = False) -> str:
    """
    Convert a hash input into its canonical ``0x``-prefixed form.

    Args:
        value: Raw bytes or a hex string (``0x``/``sha256:`` prefixes allowed)
        allow_zero: Accept the all-zero hash instead of rejecting it

    Returns:
        str: Canonical 32-byte hash

    Raises:
        InvalidHash: If the input is empty, oversize, non-hex, or zero
    """
    raw = _hash_bytes(value)
    canonical = "0x" + raw.hex()
    if canonical == ZERO_HASH and not allow_zero:
        raise InvalidHash(value, "zero hash")
    return canonical


def is_zero_address(address: str) -> bool:
    """True for the empty identity and for all-zero ``0x`` addresses."""
    if not address or not address.strip():
        return True
    text = address.strip()
    if text[:2].lower() == "0x":
        digits = text[2:]
        return not digits or set(digits) == {"0"}
    return False


def normalize_address(address: str) -> str:
    """Canonical identity string: stripped, hex addresses lower-cased."""
    if not isinstance(address, str):
        raise InvalidAddress(address)
    text = address.strip()
    if text[:2].lower() == "0x":
        return text.lower()
    return text


def require_address(address: str, role: str = "address") -> str:
    """Normalize ``address``, rejecting the zero identity."""
    canonical = normalize_address(address)
    if is_zero_address(canonical):
        raise InvalidAddress(address, role)
    return canonical


@dataclass(frozen=True)
class ExecutionContext:
    """
    Caller identity and current time for one registry operation.

    Attributes:
        caller: Identity invoking the operation
        now: Timezone-aware time the operation executes at
    """
    caller: str
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        object.__setattr__(self, "caller", normalize_address(self.caller))
        if self.now.tzinfo is None:
            object.__setattr__(self, "now", self.now.replace(tzinfo=timezone.utc))


@dataclass(frozen=True)
class Proof:
    """
    A registered attestation.

    Every field except ``is_active`` is fixed at registration. Deactivation
    produces a new instance through ``deactivated()``; the registry swaps it
    in, so a Proof handed out earlier keeps describing the state it was read
    from.

    Attributes:
        identifier: Dense sequential record id
        submitter: Identity that registered the hash
        data_hash: Canonical 32-byte content hash
        subject: Short human-readable label
        context: Optional free-text label (case/project id)
        created_at: Registration time
        is_active: False once the submitter has deactivated the record
    """
    identifier: int
    submitter: str
    data_hash: str
    subject: str
    context: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_active: bool = True

    def deactivated(self) -> "Proof":
        return replace(self, is_active=False)

    def to_dict(self) -> dict:
        return {
            "identifier": self.identifier,
            "submitter": self.submitter,
            "data_hash": self.data_hash,
            "subject": self.subject,
            "context": self.context,
            "created_at": self.created_at.isoformat(),
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Proof":
        created_at = data["created_at"]
        if isinstance(created_at, str):
            # Handle 'Z' suffix
            if created_at.endswith("Z"):
                created_at = created_at[:-1] + "+00:00"
            created_at = datetime.fromisoformat(created_at)
        return cls(
            identifier=int(data["identifier"]),
            submitter=normalize_address(data["submitter"]),
            data_hash=normalize_hash(data["data_hash"]),
            subject=data["subject"],
            context=data.get("context", ""),
            created_at=created_at,
            is_active=bool(data.get("is_active", True)),
        )


class HashVerification(NamedTuple):
    """Result of ``Registry.verify_hash``: ``(exists, active, identifier)``."""
    exists: bool
    active: bool
    identifier: int

    @classmethod
    def not_found(cls) -> "HashVerification":
        return cls(False, False, 0)
