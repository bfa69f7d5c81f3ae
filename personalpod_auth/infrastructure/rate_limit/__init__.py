"""Rate limiting adapters.

- RedisRateLimiter: fixed-window counters in Redis (fail-open)
- RateLimitRule / build_rate_limit_rules: per-scope limits from settings
"""

from personalpod_auth.infrastructure.rate_limit.config import (
    RateLimitRule,
    RateLimitScope,
    build_rate_limit_rules,
)
from personalpod_auth.infrastructure.rate_limit.redis_rate_limiter import (
    RedisRateLimiter,
)

__all__ = [
    "RateLimitRule",
    "RateLimitScope",
    "RedisRateLimiter",
    "build_rate_limit_rules",
]
