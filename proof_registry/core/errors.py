"""
Proof Registry Errors

Every rejected registry operation raises one of the exceptions below. A
rejection never leaves a partial change behind: the registry checks all
preconditions before it touches any of its tables.

Taxonomy:
    - InvalidHash: empty, zero, oversize or non-hex content hash
    - HashAlreadyRegistered: the hash already has a record
    - NotFound: no record exists at the identifier
    - Unauthorized: caller is not the record's submitter (or not the admin)
    - AlreadyInactive: the record was already deactivated
    - InvalidAddress: zero/empty identity where a real one is required
"""

from typing import Any, Optional


class RegistryError(Exception):
    """
    Base class for registry rejections.

    Attributes:
        code: Stable machine-readable error kind
    """

    code = "REGISTRY_ERROR"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.details = details

    def to_dict(self) -> dict:
        return {"code": self.code, "message": str(self), **self.details}


class InvalidHash(RegistryError):
    code = "INVALID_HASH"

    def __init__(self, value: Any, reason: str = "invalid hash"):
        super().__init__(f"{reason}: {value!r}", value=repr(value))


class HashAlreadyRegistered(RegistryError):
    code = "HASH_ALREADY_REGISTERED"

    def __init__(self, data_hash: str, identifier: int):
        self.data_hash = data_hash
        self.identifier = identifier
        super().__init__(
            f"Hash {data_hash} already registered as record {identifier}",
            data_hash=data_hash,
            identifier=identifier,
        )


class NotFound(RegistryError):
    code = "NOT_FOUND"

    def __init__(self, identifier: Any):
        self.identifier = identifier
        super().__init__(f"No record with identifier {identifier!r}", identifier=identifier)


class Unauthorized(RegistryError):
    code = "UNAUTHORIZED"

    def __init__(self, caller: str, action: str, required: Optional[str] = None):
        self.caller = caller
        self.action = action
        message = f"{caller!r} is not allowed to {action}"
        if required:
            message += f" (requires {required})"
        super().__init__(message, caller=caller, action=action)


class AlreadyInactive(RegistryError):
    code = "ALREADY_INACTIVE"

    def __init__(self, identifier: int):
        self.identifier = identifier
        super().__init__(f"Record {identifier} is already inactive", identifier=identifier)


class InvalidAddress(RegistryError):
    code = "INVALID_ADDRESS"

    def __init__(self, value: Any, role: str = "address"):
        super().__init__(f"Invalid {role}: {value!r}", value=repr(value), role=role)


class SnapshotError(ValueError):
    """Raised when a registry snapshot is malformed or inconsistent."""
