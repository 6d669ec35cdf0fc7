"""Tests for security utilities."""

import hashlib
import hmac

from src.forum_admin.core.security import (
    generate_hex_token,
    sign_payload,
    verify_signature,
)


class TestTokenGeneration:
    """Test token generation."""

    def test_generate_hex_token_default_length(self):
        token = generate_hex_token()

        assert len(token) == 64
        int(token, 16)

    def test_generate_hex_token_custom_length(self):
        assert len(generate_hex_token(8)) == 16

    def test_generate_hex_token_uniqueness(self):
        tokens = [generate_hex_token() for _ in range(100)]
        assert len(set(tokens)) == 100


class TestPayloadSignatures:
    """Test HMAC signing of SSO payloads."""

    def test_sign_payload_is_hmac_sha256(self):
        expected = hmac.new(b"secret", b"payload", hashlib.sha256).hexdigest()

        assert sign_payload("payload", "secret") == expected

    def test_verify_accepts_matching_signature(self):
        signature = sign_payload("payload", "secret")

        assert verify_signature("payload", signature, "secret")

    def test_verify_tolerates_case_and_whitespace(self):
        """Hex digests from other stacks may be uppercase or padded."""
        signature = sign_payload("payload", "secret")

        assert verify_signature("payload", f" {signature.upper()}\n", "secret")

    def test_verify_rejects_mismatch(self):
        assert not verify_signature("payload", sign_payload("other", "secret"), "secret")
        assert not verify_signature("payload", sign_payload("payload", "x"), "secret")

    def test_verify_rejects_missing_signature(self):
        assert not verify_signature("payload", None, "secret")
        assert not verify_signature("payload", "", "secret")

    def test_verify_rejects_non_ascii_signature(self):
        assert not verify_signature("payload", "é" * 64, "secret")
