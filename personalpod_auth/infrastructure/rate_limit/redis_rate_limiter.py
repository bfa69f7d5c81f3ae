"""Redis fixed-window rate limiter.

Each key gets a counter that lives for one window: INCR, then EXPIRE with
NX so only the first request of a window sets the TTL. Both commands run
in one MULTI/EXEC pipeline.

Fail-open policy:
    Any Redis error is logged and the request is allowed. Rate limiting
    must never deny service on its own.
"""

from typing import Any

from redis.exceptions import RedisError

from personalpod_auth.domain.protocols.logger_protocol import LoggerProtocol
from personalpod_auth.domain.protocols.rate_limiter_protocol import (
    RateLimitDecision,
)
from personalpod_auth.infrastructure.rate_limit.config import RateLimitRule

_KEY_PREFIX = "ratelimit"


class RedisRateLimiter:
    """RateLimiterProtocol implementation backed by Redis.

    Args:
        redis_client: An async Redis client (redis.asyncio.Redis compatible).
        rules: Scope name -> rule. Keys whose scope has no rule are allowed.
        logger: Structured logger.

    Example:
        >>> limiter = RedisRateLimiter(
        ...     redis_client=Redis.from_url(url),
        ...     rules=build_rate_limit_rules(settings),
        ...     logger=get_logger(),
        ... )
        >>> decision = await limiter.check("login:203.0.113.9:a@x.com")
    """

    def __init__(
        self,
        *,
        redis_client: Any,
        rules: dict[str, RateLimitRule],
        logger: LoggerProtocol,
    ) -> None:
        self.redis = redis_client
        self._rules = rules
        self._logger = logger

    async def check(self, key: str) -> RateLimitDecision:
        scope = key.split(":", 1)[0]
        rule = self._rules.get(scope)
        if rule is None:
            self._logger.warning("rate_limit_rule_missing", scope=scope)
            return RateLimitDecision(allowed=True)

        redis_key = f"{_KEY_PREFIX}:{key}"
        try:
            pipe = self.redis.pipeline(transaction=True)
            pipe.incr(redis_key)
            pipe.expire(redis_key, rule.window_seconds, nx=True)
            pipe.ttl(redis_key)
            count, _, ttl = await pipe.execute()
        except RedisError as exc:
            self._logger.error("rate_limit_backend_unavailable", error=exc, scope=scope)
            return RateLimitDecision(allowed=True, remaining=rule.max_requests)

        count = int(count)
        ttl = int(ttl)
        remaining = max(0, rule.max_requests - count)
        if count <= rule.max_requests:
            return RateLimitDecision(allowed=True, remaining=remaining)

        retry_after = float(ttl if ttl > 0 else rule.window_seconds)
        self._logger.warning(
            "rate_limit_exceeded", scope=scope, retry_after=retry_after
        )
        return RateLimitDecision(allowed=False, retry_after=retry_after, remaining=0)
