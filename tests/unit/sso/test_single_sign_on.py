"""Unit tests for the signed SSO payload codec."""

import base64
from urllib.parse import parse_qs

import pytest

from src.forum_admin.core.errors import MalformedPayloadError, SignatureError
from src.forum_admin.core.security import sign_payload
from src.forum_admin.core.services.sso import (
    ExternalIdentityClaim,
    build_payload,
    decode,
    encode,
)

SECRET = "shared-secret"


def _signed(query: str, secret: str = SECRET) -> tuple[str, str]:
    sso = base64.b64encode(query.encode("utf-8")).decode("ascii")
    return sso, sign_payload(sso, secret)


class TestDecode:
    """Verification happens before anything is parsed."""

    def test_decodes_known_fields(self):
        """Should map string, boolean and custom fields onto the claim."""
        sso, sig = _signed(
            "external_id=1&email=bob%40bob.com&name=Bob+The+Bob&username=bob"
            "&admin=true&moderator=0&custom.shirt_size=XL&locale=en"
        )

        claim = decode(sso, sig, SECRET)

        assert claim.external_id == "1"
        assert claim.email == "bob@bob.com"
        assert claim.name == "Bob The Bob"
        assert claim.username == "bob"
        assert claim.admin is True
        assert claim.moderator is False
        assert claim.require_activation is None
        assert claim.custom_fields == {"shirt_size": "XL"}
        assert claim.extra == {"locale": "en"}

    def test_blank_strings_become_absent(self):
        """Should treat empty values as not provided."""
        sso, sig = _signed("external_id=1&email=&name=&admin=")

        claim = decode(sso, sig, SECRET)

        assert claim.email is None
        assert claim.name is None
        assert claim.admin is None

    def test_boolean_parsing_is_case_insensitive(self):
        sso, sig = _signed("external_id=1&admin=TRUE&moderator=False")

        claim = decode(sso, sig, SECRET)

        assert claim.admin is True
        assert claim.moderator is False

    def test_rejects_wrong_signature(self):
        """Should refuse a payload signed with another secret."""
        sso, sig = _signed("external_id=1", secret="other-secret")

        with pytest.raises(SignatureError):
            decode(sso, sig, SECRET)

    def test_rejects_tampered_payload(self):
        sso, sig = _signed("external_id=1&admin=false")
        tampered = base64.b64encode(b"external_id=1&admin=true").decode("ascii")

        with pytest.raises(SignatureError):
            decode(tampered, sig, SECRET)

    @pytest.mark.parametrize("secret", [None, ""])
    def test_rejects_missing_secret(self, secret):
        sso, sig = _signed("external_id=1")

        with pytest.raises(SignatureError):
            decode(sso, sig, secret)

    def test_rejects_missing_signature(self):
        sso, _ = _signed("external_id=1")

        with pytest.raises(SignatureError):
            decode(sso, None, SECRET)

    def test_rejects_missing_external_id(self):
        sso, sig = _signed("email=bob%40bob.com")

        with pytest.raises(MalformedPayloadError):
            decode(sso, sig, SECRET)

    def test_rejects_blank_external_id(self):
        sso, sig = _signed("external_id=%20%20&email=bob%40bob.com")

        with pytest.raises(MalformedPayloadError):
            decode(sso, sig, SECRET)

    def test_rejects_invalid_base64(self):
        sso = "not base64!!"

        with pytest.raises(MalformedPayloadError):
            decode(sso, sign_payload(sso, SECRET), SECRET)

    def test_rejects_non_ascii_signature(self):
        """Should treat a signature with non-hex characters as a mismatch."""
        sso, _ = _signed("external_id=1")

        with pytest.raises(SignatureError):
            decode(sso, "é" * 64, SECRET)

    def test_rejects_signed_non_ascii_payload(self):
        sso = "YWJjé"

        with pytest.raises(MalformedPayloadError):
            decode(sso, sign_payload(sso, SECRET), SECRET)

    def test_rejects_invalid_boolean(self):
        sso, sig = _signed("external_id=1&admin=maybe")

        with pytest.raises(MalformedPayloadError):
            decode(sso, sig, SECRET)

    def test_rejects_empty_payload(self):
        with pytest.raises(MalformedPayloadError):
            decode("", "abc", SECRET)


class TestEncode:
    def test_encoded_claim_decodes_to_the_same_claim(self):
        claim = ExternalIdentityClaim(
            external_id="42",
            email="jane@example.com",
            name="Jane",
            require_activation=True,
            custom_fields={"team": "blue"},
        )

        sso, sig = encode(claim, SECRET)

        assert decode(sso, sig, SECRET) == claim

    def test_build_payload_renders_form_body(self):
        """Should produce an ``sso=...&sig=...`` body that verifies."""
        claim = ExternalIdentityClaim(external_id="7", username="seven")

        body = parse_qs(build_payload(claim, SECRET))

        assert set(body) == {"sso", "sig"}
        assert decode(body["sso"][0], body["sig"][0], SECRET).username == "seven"

    def test_claim_requires_external_id(self):
        with pytest.raises(ValueError):
            ExternalIdentityClaim(external_id="   ")
