"""Signed single sign-on payload codec.

Wire format (form-encoded)::

    sso=<base64(url-encoded claims)>&sig=<hex HMAC-SHA256(sso, secret)>

The signature covers the base64 text exactly as transmitted, so it is checked
before anything is decoded. Blank values are treated as absent here and only
here; the rest of the application sees ``None``.
"""

import base64
from typing import Any
from urllib.parse import parse_qsl, urlencode

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.forum_admin.core.errors import MalformedPayloadError, SignatureError
from src.forum_admin.core.security import sign_payload, verify_signature

STRING_FIELDS = (
    "nonce",
    "email",
    "name",
    "username",
    "avatar_url",
    "title",
    "return_sso_url",
)
BOOLEAN_FIELDS = (
    "admin",
    "moderator",
    "require_activation",
    "suppress_welcome_message",
    "avatar_force_update",
)
CUSTOM_PREFIX = "custom."

_TRUE = {"true", "1"}
_FALSE = {"false", "0"}


class ExternalIdentityClaim(BaseModel):
    """Identity attributes asserted by the provider for a single request."""

    model_config = ConfigDict(frozen=True)

    external_id: str = Field(description="Stable provider-side identifier")
    nonce: str | None = None
    email: str | None = None
    name: str | None = None
    username: str | None = None
    avatar_url: str | None = None
    title: str | None = None
    return_sso_url: str | None = None

    admin: bool | None = None
    moderator: bool | None = None
    require_activation: bool | None = None
    suppress_welcome_message: bool | None = None
    avatar_force_update: bool | None = None

    custom_fields: dict[str, str] = Field(default_factory=dict)
    extra: dict[str, str] = Field(default_factory=dict)

    @field_validator("external_id")
    @classmethod
    def _external_id_present(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("external_id must not be blank")
        return value

    def to_query(self) -> str:
        """Render the claims as the url-encoded query string that gets signed."""
        pairs: list[tuple[str, str]] = [("external_id", self.external_id)]
        for field in STRING_FIELDS:
            value = getattr(self, field)
            if value is not None:
                pairs.append((field, value))
        for field in BOOLEAN_FIELDS:
            value = getattr(self, field)
            if value is not None:
                pairs.append((field, "true" if value else "false"))
        for key, value in sorted(self.custom_fields.items()):
            pairs.append((f"{CUSTOM_PREFIX}{key}", value))
        for key, value in sorted(self.extra.items()):
            pairs.append((key, value))
        return urlencode(pairs)


def _parse_bool(key: str, raw: str) -> bool | None:
    value = raw.strip().lower()
    if not value:
        return None
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise MalformedPayloadError(
        f"Invalid boolean for {key}: {raw!r}", {"field": key, "value": raw}
    )


def parse_claims(query: str) -> ExternalIdentityClaim:
    """Turn a decoded, already verified query string into a claim."""
    data: dict[str, Any] = {}
    custom_fields: dict[str, str] = {}
    extra: dict[str, str] = {}

    for key, raw in parse_qsl(query, keep_blank_values=True):
        if key == "external_id":
            data[key] = raw
        elif key in STRING_FIELDS:
            data[key] = raw.strip() or None
        elif key in BOOLEAN_FIELDS:
            data[key] = _parse_bool(key, raw)
        elif key.startswith(CUSTOM_PREFIX):
            custom_fields[key[len(CUSTOM_PREFIX) :]] = raw
        else:
            extra[key] = raw

    if not (data.get("external_id") or "").strip():
        raise MalformedPayloadError("Payload is missing external_id")

    return ExternalIdentityClaim(**data, custom_fields=custom_fields, extra=extra)


def decode(sso: str | None, sig: str | None, secret: str | None) -> ExternalIdentityClaim:
    """Verify and decode a signed payload.

    Args:
        sso: Base64 payload as transmitted
        sig: Hex HMAC-SHA256 signature of ``sso``
        secret: Shared secret configured for SSO

    Returns:
        The decoded claim set

    Raises:
        SignatureError: Secret missing or signature mismatch
        MalformedPayloadError: Payload is not valid base64/UTF-8 or lacks
            an ``external_id``
    """
    if not secret:
        raise SignatureError("SSO secret is not configured")
    if not sso:
        raise MalformedPayloadError("Payload is empty")
    if not verify_signature(sso, sig, secret):
        raise SignatureError()

    try:
        compact = "".join(sso.split())
        query = base64.b64decode(compact, validate=True).decode("utf-8")
    except ValueError as e:
        # also covers binascii.Error, UnicodeDecodeError and non-ASCII text
        raise MalformedPayloadError(f"Payload is not valid base64: {e}") from e

    return parse_claims(query)


def encode(claim: ExternalIdentityClaim, secret: str) -> tuple[str, str]:
    """Sign a claim; returns ``(sso, sig)``."""
    sso = base64.b64encode(claim.to_query().encode("utf-8")).decode("ascii")
    return sso, sign_payload(sso, secret)


def build_payload(claim: ExternalIdentityClaim, secret: str) -> str:
    """Full ``sso=...&sig=...`` form body for a claim."""
    sso, sig = encode(claim, secret)
    return urlencode({"sso": sso, "sig": sig})
