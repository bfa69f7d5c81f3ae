"""Domain entities."""

from personalpod_auth.domain.entities.auth_state import (
    AccessTokenClaims,
    Authenticated,
    AuthState,
    AuthTokens,
    LoginOutcome,
    MFAPending,
    Unauthenticated,
)
from personalpod_auth.domain.entities.mfa_enrollment import MFAEnrollment
from personalpod_auth.domain.entities.user import User

__all__ = [
    "AccessTokenClaims",
    "AuthState",
    "AuthTokens",
    "Authenticated",
    "LoginOutcome",
    "MFAEnrollment",
    "MFAPending",
    "Unauthenticated",
    "User",
]
