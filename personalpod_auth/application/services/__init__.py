"""Auth core services."""

from personalpod_auth.application.services.auth_orchestrator import AuthOrchestrator
from personalpod_auth.application.services.credential_store import CredentialStore
from personalpod_auth.application.services.maintenance import TokenMaintenance
from personalpod_auth.application.services.mfa_engine import MFAEngine
from personalpod_auth.application.services.policy import AuthPolicy
from personalpod_auth.application.services.session_issuer import SessionIssuer
from personalpod_auth.application.services.token_vault import TokenVault, hash_token

__all__ = [
    "AuthOrchestrator",
    "AuthPolicy",
    "CredentialStore",
    "MFAEngine",
    "SessionIssuer",
    "TokenMaintenance",
    "TokenVault",
    "hash_token",
]
