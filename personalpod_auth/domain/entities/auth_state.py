"""Authentication state variants.

A login moves through `Unauthenticated -> MFAPending -> Authenticated` (or
straight to `Authenticated` when MFA is off). Each state is its own
immutable type, so code that holds an `MFAPending` cannot hand out tokens
and code that holds `Authenticated` never carries an MFA session token.

Usage:
    match outcome:
        case MFAPending(mfa_session_token=token):
            return {"requires_mfa": True, "mfa_session_token": token}
        case Authenticated(tokens=tokens):
            return {"access_token": tokens.access_token, ...}
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True, kw_only=True)
class AuthTokens:
    """Access/refresh token pair representing an authenticated session.

    Attributes:
        access_token: Signed, stateless, short-lived token.
        refresh_token: Opaque rotating token.
        token_type: Always "bearer".
        expires_in: Access token lifetime in seconds.
    """

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"


@dataclass(frozen=True, slots=True, kw_only=True)
class AccessTokenClaims:
    """Claims extracted from a validated access token."""

    user_id: UUID
    issued_at: datetime
    expires_at: datetime
    token_id: str


@dataclass(frozen=True, slots=True)
class Unauthenticated:
    """No session: never logged in, or the MFA session token lapsed."""


@dataclass(frozen=True, slots=True, kw_only=True)
class MFAPending:
    """Password verified, second factor outstanding.

    Attributes:
        user_id: User awaiting the second factor.
        expires_at: When the pending state falls back to Unauthenticated.
        mfa_session_token: Single-use token bridging to `complete_mfa`.
            Present when the state is first created; None when the state
            is reconstructed by a read-only lookup.
    """

    user_id: UUID
    expires_at: datetime
    mfa_session_token: str | None = None

    @property
    def requires_mfa(self) -> bool:
        return True


@dataclass(frozen=True, slots=True, kw_only=True)
class Authenticated:
    """Fully authenticated session.

    Attributes:
        user_id: Authenticated user.
        tokens: Freshly minted token pair.
        backup_codes_remaining: Unused backup codes, when a backup code was
            just consumed or MFA is enabled; None otherwise.
        low_backup_codes: True when the remaining count is at or below the
            configured warning threshold.
    """

    user_id: UUID
    tokens: AuthTokens
    backup_codes_remaining: int | None = None
    low_backup_codes: bool = False

    @property
    def requires_mfa(self) -> bool:
        return False


type LoginOutcome = MFAPending | Authenticated
type AuthState = Unauthenticated | MFAPending | Authenticated
