"""RateLimiter protocol (port).

A single capability interface, `check(key)`, replaces per-route limiter
instances. Policy (limits and windows per scope) lives in the adapter's
configuration; the core only builds keys of the form
``<scope>:<ip>:<identifier>``.

Fail-open:
    Implementations return an allowing decision when their backing store
    is unavailable. Rate limiting must never deny service on its own.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitDecision:
    """Outcome of a rate-limit check.

    Attributes:
        allowed: Whether the request may proceed.
        retry_after: Seconds until the window resets (0 when allowed).
        remaining: Requests left in the current window.
    """

    allowed: bool
    retry_after: float = 0.0
    remaining: int = 0


class RateLimiterProtocol(Protocol):
    """Request-volume limiter."""

    async def check(self, key: str) -> RateLimitDecision:
        """Count one request against `key` and decide.

        Args:
            key: ``<scope>:<ip>:<identifier>``, e.g. ``login:203.0.113.9:a@x.com``.

        Returns:
            RateLimitDecision for this request.
        """
        ...
