"""Authentication error types.

All are DomainError dataclasses returned inside Failure. Messages on the
login and MFA paths are deliberately generic; callers that need precision
inspect `code`.
"""

from dataclasses import dataclass
from uuid import UUID

from personalpod_auth.core.enums import ErrorCode
from personalpod_auth.core.errors import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class InvalidCredentialsError(DomainError):
    """Wrong password or unknown account (indistinguishable by design)."""

    code: ErrorCode = ErrorCode.INVALID_CREDENTIALS
    message: str = "Invalid email or password"


@dataclass(frozen=True, slots=True, kw_only=True)
class InvalidTokenError(DomainError):
    """Token is unknown, of the wrong kind, already used, or expired."""

    code: ErrorCode = ErrorCode.TOKEN_INVALID
    message: str = "Token is invalid or has expired"


@dataclass(frozen=True, slots=True, kw_only=True)
class AlreadyUsedError(InvalidTokenError):
    """Token or backup code was consumed earlier (or by a concurrent request)."""

    code: ErrorCode = ErrorCode.TOKEN_ALREADY_USED


@dataclass(frozen=True, slots=True, kw_only=True)
class RefreshTokenReuseError(InvalidTokenError):
    """A refresh token that was already rotated was presented again.

    Internal to the session layer: it carries the owner so every session
    of that user can be revoked, and is converted to a plain
    InvalidTokenError before leaving SessionIssuer.
    """

    code: ErrorCode = ErrorCode.TOKEN_REUSE_DETECTED
    user_id: UUID


@dataclass(frozen=True, slots=True, kw_only=True)
class ExpiredTokenError(DomainError):
    """Signed access token is past its expiry."""

    code: ErrorCode = ErrorCode.TOKEN_EXPIRED
    message: str = "Token has expired"


@dataclass(frozen=True, slots=True, kw_only=True)
class InvalidCodeError(DomainError):
    """Wrong, replayed or already-used MFA code."""

    code: ErrorCode = ErrorCode.MFA_CODE_INVALID
    message: str = "Invalid verification code"


@dataclass(frozen=True, slots=True, kw_only=True)
class AccountDisabledError(DomainError):
    """Account is deactivated."""

    code: ErrorCode = ErrorCode.ACCOUNT_DISABLED
    message: str = "Account is disabled"


@dataclass(frozen=True, slots=True, kw_only=True)
class EmailNotVerifiedError(DomainError):
    """Login blocked until the email address is verified."""

    code: ErrorCode = ErrorCode.EMAIL_NOT_VERIFIED
    message: str = "Please verify your email address before logging in"
