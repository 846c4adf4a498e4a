"""
Proof Registry Event Signer

Ed25519 signatures over event hashes, so anyone holding the registry's public
key can check that an exported event log was produced by that registry.

Usage:
    >>> from proof_registry.core.signer import Ed25519Signer
    >>>
    >>> signer = Ed25519Signer()
    >>> result = signer.sign(b"data to sign")
    >>> Ed25519Signer.verify_with_public_key_b64(
    ...     b"data to sign", result.signature_b64, signer.public_key_b64
    ... ).is_valid
    True
"""

import base64
import binascii
from typing import Optional, Tuple
from dataclasses import dataclass

from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import SigningKey, VerifyKey


SIGNATURE_SCHEME = "ed25519"


@dataclass
class SignatureResult:
    """Result of a signing operation."""
    signature: bytes
    signature_b64: str
    public_key_b64: str

    @property
    def tagged(self) -> str:
        """Signature in the "ed25519:<b64>" form stored on events."""
        return f"{SIGNATURE_SCHEME}:{self.signature_b64}"


@dataclass
class VerificationResult:
    """Result of a signature verification."""
    is_valid: bool
    error_message: Optional[str] = None


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


class Ed25519Signer:
    """
    Ed25519 signing key holder.

    Args:
        private_key: Optional 32-byte seed. A fresh key is generated if
            omitted.
    """

    def __init__(self, private_key: Optional[bytes] = None):
        if private_key:
            self._signing_key = SigningKey(private_key)
        else:
            self._signing_key = SigningKey.generate()
        self._verify_key = self._signing_key.verify_key

    @classmethod
    def from_private_key_b64(cls, private_key_b64: str) -> 'Ed25519Signer':
        return cls(private_key=base64.b64decode(private_key_b64))

    @property
    def public_key(self) -> bytes:
        return bytes(self._verify_key)

    @property
    def public_key_b64(self) -> str:
        return _b64(self.public_key)

    @property
    def private_key(self) -> bytes:
        return bytes(self._signing_key)

    @property
    def private_key_b64(self) -> str:
        return _b64(self.private_key)

    def sign(self, data: bytes) -> SignatureResult:
        signature = self._signing_key.sign(data).signature
        return SignatureResult(
            signature=signature,
            signature_b64=_b64(signature),
            public_key_b64=self.public_key_b64,
        )

    def sign_string(self, data: str) -> SignatureResult:
        """Sign a string (UTF-8 encoded)."""
        return self.sign(data.encode('utf-8'))

    def verify(self, data: bytes, signature: bytes) -> VerificationResult:
        """Verify a signature against this signer's public key."""
        return self.verify_with_public_key(data, signature, self.public_key)

    @staticmethod
    def verify_with_public_key(
        data: bytes,
        signature: bytes,
        public_key: bytes
    ) -> VerificationResult:
        """
        Verify a signature using only a public key.

        Args:
            data: The original signed data
            signature: 64-byte Ed25519 signature
            public_key: 32-byte Ed25519 public key

        Returns:
            VerificationResult: is_valid plus the failure reason, if any
        """
        try:
            VerifyKey(public_key).verify(data, signature)
            return VerificationResult(is_valid=True)
        except BadSignatureError as e:
            return VerificationResult(is_valid=False, error_message=str(e))
        except (CryptoError, ValueError, TypeError) as e:
            return VerificationResult(is_valid=False, error_message=f"Verification error: {e}")

    @staticmethod
    def verify_with_public_key_b64(
        data: bytes,
        signature_b64: str,
        public_key_b64: str
    ) -> VerificationResult:
        """Verify using base64-encoded signature and public key."""
        try:
            signature = base64.b64decode(signature_b64, validate=True)
            public_key = base64.b64decode(public_key_b64, validate=True)
        except (binascii.Error, ValueError) as e:
            return VerificationResult(is_valid=False, error_message=f"Decode error: {e}")
        return Ed25519Signer.verify_with_public_key(data, signature, public_key)

    @staticmethod
    def verify_tagged(data: bytes, tagged_signature: str, public_key_b64: str) -> VerificationResult:
        """Verify an "ed25519:<b64>" signature as stored on events."""
        scheme, _, signature_b64 = tagged_signature.partition(':')
        if scheme != SIGNATURE_SCHEME or not signature_b64:
            return VerificationResult(
                is_valid=False,
                error_message=f"Unsupported signature format: {tagged_signature[:16]!r}"
            )
        return Ed25519Signer.verify_with_public_key_b64(data, signature_b64, public_key_b64)


def generate_key_pair_b64() -> Tuple[str, str]:
    """
    Generate a new Ed25519 key pair as base64 strings.

    Returns:
        Tuple[str, str]: (private_key_b64, public_key_b64)
    """
    signer = Ed25519Signer()
    return (signer.private_key_b64, signer.public_key_b64)
