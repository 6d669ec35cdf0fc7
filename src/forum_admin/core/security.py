"""Security utilities: token generation and payload signatures."""

import hashlib
import hmac
import secrets


def generate_hex_token(length: int = 32) -> str:
    """Generate a random hex token (API keys, email and confirmation tokens)."""
    return secrets.token_hex(length)


def sign_payload(payload: str, secret: str) -> str:
    """HMAC-SHA256 hex digest of ``payload`` keyed with ``secret``."""
    return hmac.new(
        secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def verify_signature(payload: str, signature: str | None, secret: str) -> bool:
    """Constant-time check of ``signature`` against ``payload``.

    Args:
        payload: The exact text that was signed
        signature: Hex digest presented by the caller
        secret: Shared secret

    Returns:
        True if the signature matches, False otherwise
    """
    if not signature:
        return False
    expected = sign_payload(payload, secret).encode("ascii")
    # compare_digest refuses non-ASCII str, so compare bytes
    return hmac.compare_digest(expected, signature.strip().lower().encode("utf-8"))
