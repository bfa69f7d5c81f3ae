"""Infrastructure dependency factories.

Application-scoped singletons for core infrastructure services:
- Database (PostgreSQL via asyncpg, SQLite via aiosqlite in tests)
- Logging (structlog console adapter)
- Clock and random source
- Password hashing (argon2id)
- Access tokens (JWT)
- TOTP (pyotp)
- Encryption (AES-256-GCM)
- Notifier (stub)
- Rate limiting (Redis fixed window, optional)
- AuthPolicy

Adapter imports stay inside the factories so importing the container never
pulls in every backend.
"""

from functools import lru_cache
from typing import TYPE_CHECKING

from personalpod_auth.core.config import get_settings
from personalpod_auth.core.result import Failure

if TYPE_CHECKING:
    from personalpod_auth.application.services.policy import AuthPolicy
    from personalpod_auth.domain.protocols import (
        AccessTokenProtocol,
        ClockProtocol,
        EncryptionProtocol,
        LoggerProtocol,
        NotifierProtocol,
        PasswordHashingProtocol,
        RandomSourceProtocol,
        RateLimiterProtocol,
        TOTPProtocol,
    )
    from personalpod_auth.infrastructure.persistence.database import Database


# ============================================================================
# Application-Scoped Dependencies (Singletons)
# ============================================================================


@lru_cache()
def get_database() -> "Database":
    """Get database manager singleton (app-scoped).

    Usage:
        db = get_database()
        async with db.get_session() as session:
            orchestrator = build_auth_orchestrator(session)
    """
    from personalpod_auth.infrastructure.persistence.database import Database

    settings = get_settings()
    return Database(database_url=settings.database_url, echo=settings.db_echo)


@lru_cache()
def get_logger() -> "LoggerProtocol":
    """Return the application-scoped logger singleton.

    - development: ConsoleAdapter (human-readable)
    - testing/ci/production: ConsoleAdapter (JSON)
    """
    from personalpod_auth.infrastructure.logging.console_adapter import (
        ConsoleAdapter,
    )

    settings = get_settings()
    return ConsoleAdapter(
        use_json=not settings.is_development, level=settings.log_level
    )


@lru_cache()
def get_clock() -> "ClockProtocol":
    from personalpod_auth.infrastructure.system import SystemClock

    return SystemClock()


@lru_cache()
def get_random_source() -> "RandomSourceProtocol":
    from personalpod_auth.infrastructure.system import SecretsRandomSource

    return SecretsRandomSource()


@lru_cache()
def get_password_service() -> "PasswordHashingProtocol":
    """Get password hashing service singleton (argon2id, bcrypt legacy)."""
    from personalpod_auth.infrastructure.security import Argon2PasswordService

    settings = get_settings()
    return Argon2PasswordService(
        time_cost=settings.argon2_time_cost,
        memory_cost=settings.argon2_memory_cost,
        parallelism=settings.argon2_parallelism,
    )


@lru_cache()
def get_dummy_password_hash() -> str:
    """Hash of a random throwaway password, for unknown-account logins."""
    return get_password_service().hash_password(
        get_random_source().token_bytes(16).hex()
    )


@lru_cache()
def get_token_service() -> "AccessTokenProtocol":
    """Get JWT access token service singleton."""
    from personalpod_auth.infrastructure.security import JWTService

    settings = get_settings()
    return JWTService(
        secret_key=settings.secret_key,
        expiration_minutes=settings.access_token_expire_minutes,
        algorithm=settings.jwt_algorithm,
    )


@lru_cache()
def get_totp_service() -> "TOTPProtocol":
    from personalpod_auth.infrastructure.security import PyOTPService

    return PyOTPService()


@lru_cache()
def get_encryption_service() -> "EncryptionProtocol":
    """Get AES-256-GCM encryption service singleton.

    Raises:
        RuntimeError: If the configured key is unusable.
    """
    from personalpod_auth.infrastructure.security import EncryptionService

    result = EncryptionService.create(get_settings().encryption_key.encode("utf-8"))
    if isinstance(result, Failure):
        raise RuntimeError(f"Failed to initialize encryption service: {result.error}")
    return result.value


@lru_cache()
def get_notifier() -> "NotifierProtocol":
    from personalpod_auth.infrastructure.email import StubNotifier

    return StubNotifier(logger=get_logger())


@lru_cache()
def get_rate_limiter() -> "RateLimiterProtocol | None":
    """Get rate limiter singleton, or None when no Redis is configured.

    Fail-open: Redis errors allow the request.
    """
    settings = get_settings()
    if settings.redis_url is None:
        return None

    from redis.asyncio import ConnectionPool, Redis

    from personalpod_auth.infrastructure.rate_limit import (
        RedisRateLimiter,
        build_rate_limit_rules,
    )

    pool = ConnectionPool.from_url(
        settings.redis_url,
        max_connections=20,
        decode_responses=False,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
    )
    return RedisRateLimiter(
        redis_client=Redis(connection_pool=pool),
        rules=build_rate_limit_rules(settings),
        logger=get_logger(),
    )


@lru_cache()
def get_auth_policy() -> "AuthPolicy":
    from personalpod_auth.application.services.policy import AuthPolicy

    return AuthPolicy.from_settings(get_settings())
