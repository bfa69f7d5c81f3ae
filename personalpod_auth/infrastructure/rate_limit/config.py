"""Rate limit rules per scope.

Keys checked by the auth core have the form ``<scope>:<ip>:<email>``; the
scope prefix selects the rule. Limits come from Settings so they can be
tuned per environment without code changes.

Usage:
    rules = build_rate_limit_rules(get_settings())
    rule = rules[RateLimitScope.LOGIN]
"""

from dataclasses import dataclass
from enum import Enum

from personalpod_auth.core.config import Settings


class RateLimitScope(str, Enum):
    """Entry points guarded by the rate limiter."""

    LOGIN = "login"
    PASSWORD_RESET = "password_reset"
    VERIFICATION_RESEND = "verification_resend"


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitRule:
    """Fixed-window limit.

    Attributes:
        max_requests: Requests allowed per window.
        window_seconds: Window length.
    """

    max_requests: int
    window_seconds: int

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if self.window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")


def build_rate_limit_rules(settings: Settings) -> dict[str, RateLimitRule]:
    """Build the scope -> rule mapping from settings."""
    return {
        RateLimitScope.LOGIN.value: RateLimitRule(
            max_requests=settings.rate_limit_login_max,
            window_seconds=settings.rate_limit_login_window_seconds,
        ),
        RateLimitScope.PASSWORD_RESET.value: RateLimitRule(
            max_requests=settings.rate_limit_password_reset_max,
            window_seconds=settings.rate_limit_password_reset_window_seconds,
        ),
        RateLimitScope.VERIFICATION_RESEND.value: RateLimitRule(
            max_requests=settings.rate_limit_verification_resend_max,
            window_seconds=settings.rate_limit_verification_resend_window_seconds,
        ),
    }
