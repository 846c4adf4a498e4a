"""
Tests for the Ed25519 event signer
"""

import base64

from proof_registry.core.signer import Ed25519Signer, generate_key_pair_b64


class TestEd25519Signer:
    def test_sign_and_verify(self):
        signer = Ed25519Signer()
        result = signer.sign(b"payload")
        assert len(result.signature) == 64
        assert signer.verify(b"payload", result.signature).is_valid

    def test_tampered_data_fails(self):
        signer = Ed25519Signer()
        result = signer.sign(b"payload")
        verification = signer.verify(b"payload!", result.signature)
        assert not verification.is_valid
        assert verification.error_message

    def test_key_reload(self):
        signer = Ed25519Signer()
        reloaded = Ed25519Signer.from_private_key_b64(signer.private_key_b64)
        assert reloaded.public_key_b64 == signer.public_key_b64

    def test_tagged_signature(self):
        signer = Ed25519Signer()
        tagged = signer.sign_string("sha256:abc").tagged
        assert tagged.startswith("ed25519:")
        assert Ed25519Signer.verify_tagged(b"sha256:abc", tagged, signer.public_key_b64).is_valid

    def test_tagged_signature_wrong_key(self):
        tagged = Ed25519Signer().sign(b"x").tagged
        assert not Ed25519Signer.verify_tagged(b"x", tagged, Ed25519Signer().public_key_b64).is_valid

    def test_unsupported_scheme(self):
        result = Ed25519Signer.verify_tagged(b"x", "rsa:AAAA", Ed25519Signer().public_key_b64)
        assert not result.is_valid

    def test_bad_base64(self):
        result = Ed25519Signer.verify_with_public_key_b64(b"x", "!!!", "???")
        assert not result.is_valid
        assert result.error_message.startswith("Decode error")

    def test_wrong_length_key(self):
        signature = Ed25519Signer().sign(b"x").signature_b64
        short_key = base64.b64encode(b"\x01" * 5).decode()
        assert not Ed25519Signer.verify_with_public_key_b64(b"x", signature, short_key).is_valid

    def test_generate_key_pair(self):
        private_b64, public_b64 = generate_key_pair_b64()
        assert Ed25519Signer.from_private_key_b64(private_b64).public_key_b64 == public_b64
