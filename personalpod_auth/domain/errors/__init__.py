"""Domain errors for the auth core.

Usage:
    from personalpod_auth.domain.errors import InvalidTokenError
"""

from personalpod_auth.domain.errors.authentication_error import (
    AccountDisabledError,
    AlreadyUsedError,
    EmailNotVerifiedError,
    ExpiredTokenError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidTokenError,
    RefreshTokenReuseError,
)
from personalpod_auth.domain.errors.rate_limit_error import RateLimitedError

__all__ = [
    "AccountDisabledError",
    "AlreadyUsedError",
    "EmailNotVerifiedError",
    "ExpiredTokenError",
    "InvalidCodeError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "RateLimitedError",
    "RefreshTokenReuseError",
]
