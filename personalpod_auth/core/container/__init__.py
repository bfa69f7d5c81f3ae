"""Container module - Centralized dependency injection.

Re-exports the factory functions so callers import from one place:

    from personalpod_auth.core.container import get_database, build_session_issuer

The container is organized into modules:
- infrastructure: application-scoped adapters (db, logging, security, ...)
- services: request-scoped service graphs built on one AsyncSession
"""

from personalpod_auth.core.container.infrastructure import (
    get_auth_policy,
    get_clock,
    get_database,
    get_dummy_password_hash,
    get_encryption_service,
    get_logger,
    get_notifier,
    get_password_service,
    get_random_source,
    get_rate_limiter,
    get_token_service,
    get_totp_service,
)
from personalpod_auth.core.container.services import (
    build_auth_orchestrator,
    build_credential_store,
    build_mfa_engine,
    build_session_issuer,
    build_token_maintenance,
    build_token_vault,
)

__all__ = [
    "build_auth_orchestrator",
    "build_credential_store",
    "build_mfa_engine",
    "build_session_issuer",
    "build_token_maintenance",
    "build_token_vault",
    "get_auth_policy",
    "get_clock",
    "get_database",
    "get_dummy_password_hash",
    "get_encryption_service",
    "get_logger",
    "get_notifier",
    "get_password_service",
    "get_random_source",
    "get_rate_limiter",
    "get_token_service",
    "get_totp_service",
]
