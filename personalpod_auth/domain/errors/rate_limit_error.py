"""Throttling error."""

from dataclasses import dataclass

from personalpod_auth.core.enums import ErrorCode
from personalpod_auth.core.errors import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitedError(DomainError):
    """Request volume ceiling reached.

    Distinct from authentication failures so transports can answer with a
    throttling status and a Retry-After header.

    Attributes:
        retry_after: Seconds until the caller may try again.
    """

    code: ErrorCode = ErrorCode.RATE_LIMIT_EXCEEDED
    message: str = "Too many requests, please try again later"
    retry_after: float = 0.0
