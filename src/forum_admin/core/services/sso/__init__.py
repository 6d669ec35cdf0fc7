from .identity_resolver import IdentityResolver
from .policy import OverridePolicy
from .reconciliation import ReconciliationEngine
from .single_sign_on import ExternalIdentityClaim, build_payload, decode, encode
from .sso_sync import SSOSyncService

__all__ = [
    "ExternalIdentityClaim",
    "IdentityResolver",
    "OverridePolicy",
    "ReconciliationEngine",
    "SSOSyncService",
    "build_payload",
    "decode",
    "encode",
]
