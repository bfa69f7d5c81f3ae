"""Service factories (request-scoped).

Each unit of work opens one AsyncSession; the factories wire repositories
on that session together with the application-scoped singletons.

Usage:
    async with get_database().get_session() as session:
        orchestrator = build_auth_orchestrator(session)
        result = await orchestrator.forgot_password("a@x.com", client_ip=ip)
"""

from sqlalchemy.ext.asyncio import AsyncSession

from personalpod_auth.application.services import (
    AuthOrchestrator,
    CredentialStore,
    MFAEngine,
    SessionIssuer,
    TokenMaintenance,
    TokenVault,
)
from personalpod_auth.core.container.infrastructure import (
    get_auth_policy,
    get_clock,
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
from personalpod_auth.infrastructure.persistence.repositories import (
    BackupCodeRepository,
    MFAEnrollmentRepository,
    PasswordCredentialRepository,
    RefreshTokenRepository,
    UserRepository,
    VerificationTokenRepository,
)


def build_credential_store(session: AsyncSession) -> CredentialStore:
    return CredentialStore(
        credential_repo=PasswordCredentialRepository(session),
        password_service=get_password_service(),
        clock=get_clock(),
        random_source=get_random_source(),
        logger=get_logger(),
        policy=get_auth_policy().password_policy,
        dummy_hash=get_dummy_password_hash(),
    )


def build_token_vault(session: AsyncSession) -> TokenVault:
    policy = get_auth_policy()
    return TokenVault(
        verification_token_repo=VerificationTokenRepository(session),
        refresh_token_repo=RefreshTokenRepository(session),
        clock=get_clock(),
        random_source=get_random_source(),
        logger=get_logger(),
        refresh_token_ttl=policy.refresh_token_ttl,
        purge_grace=policy.token_purge_grace,
    )


def build_mfa_engine(session: AsyncSession) -> MFAEngine:
    policy = get_auth_policy()
    return MFAEngine(
        enrollment_repo=MFAEnrollmentRepository(session),
        backup_code_repo=BackupCodeRepository(session),
        totp_service=get_totp_service(),
        encryption_service=get_encryption_service(),
        clock=get_clock(),
        random_source=get_random_source(),
        logger=get_logger(),
        issuer=policy.mfa_issuer,
        valid_window=policy.totp_valid_window,
        backup_code_count=policy.backup_code_count,
        backup_code_pepper=policy.backup_code_pepper,
        pending_ttl=policy.pending_mfa_ttl,
        purge_grace=policy.token_purge_grace,
    )


def build_session_issuer(session: AsyncSession) -> SessionIssuer:
    policy = get_auth_policy()
    return SessionIssuer(
        user_repo=UserRepository(session),
        credential_store=build_credential_store(session),
        token_vault=build_token_vault(session),
        mfa_engine=build_mfa_engine(session),
        access_token_service=get_token_service(),
        clock=get_clock(),
        logger=get_logger(),
        mfa_session_ttl=policy.mfa_session_ttl,
        block_unverified_login=policy.block_unverified_login,
        backup_code_low_threshold=policy.backup_code_low_threshold,
        rate_limiter=get_rate_limiter(),
    )


def build_auth_orchestrator(session: AsyncSession) -> AuthOrchestrator:
    return AuthOrchestrator(
        user_repo=UserRepository(session),
        credential_store=build_credential_store(session),
        token_vault=build_token_vault(session),
        mfa_engine=build_mfa_engine(session),
        notifier=get_notifier(),
        clock=get_clock(),
        random_source=get_random_source(),
        logger=get_logger(),
        policy=get_auth_policy(),
        rate_limiter=get_rate_limiter(),
    )


def build_token_maintenance(session: AsyncSession) -> TokenMaintenance:
    return TokenMaintenance(
        token_vault=build_token_vault(session),
        mfa_engine=build_mfa_engine(session),
        logger=get_logger(),
    )
