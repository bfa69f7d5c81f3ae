"""Pytest configuration and shared fixtures.

This configuration ensures:
1. Settings can be constructed without a real environment (test secrets)
2. Every integration test gets its own SQLite database file
3. Time and randomness are deterministic (FakeClock, SequentialRandomSource)
4. Service graphs are wired exactly like the container does, with
   test doubles swapped in for the clock, notifier and rate limiter
"""

import os
from dataclasses import dataclass
from datetime import timedelta
from unittest.mock import Mock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

# Settings requires these; set before anything imports the container
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdefghij")
os.environ.setdefault("ENCRYPTION_KEY", "0123456789abcdef0123456789abcdef")
os.environ.setdefault("BACKUP_CODE_PEPPER", "test-backup-code-pepper")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from personalpod_auth.application.services import (  # noqa: E402
    AuthOrchestrator,
    AuthPolicy,
    CredentialStore,
    MFAEngine,
    SessionIssuer,
    TokenMaintenance,
    TokenVault,
)
from personalpod_auth.infrastructure.persistence.database import Database  # noqa: E402
from personalpod_auth.infrastructure.persistence.repositories import (  # noqa: E402
    BackupCodeRepository,
    MFAEnrollmentRepository,
    PasswordCredentialRepository,
    RefreshTokenRepository,
    UserRepository,
    VerificationTokenRepository,
)
from personalpod_auth.infrastructure.security import (  # noqa: E402
    Argon2PasswordService,
    EncryptionService,
    JWTService,
    PyOTPService,
)
from tests.utils.fakes import (  # noqa: E402
    FakeClock,
    RecordingNotifier,
    SequentialRandomSource,
)

TEST_JWT_SECRET = "unit-test-jwt-secret-0123456789abcdef"
TEST_ENCRYPTION_KEY = b"fedcba9876543210fedcba9876543210"
TEST_PASSWORD = "Str0ng!Passw0rd"


@pytest.fixture
def mock_logger():
    """Provide a mock logger for testing.

    Usage:
        def test_something(mock_logger):
            service = MyService(logger=mock_logger)
            service.do_something()
            mock_logger.info.assert_called_once()
    """
    logger = Mock()
    logger.info = Mock()
    logger.debug = Mock()
    logger.error = Mock()
    logger.warning = Mock()
    return logger


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def random_source():
    return SequentialRandomSource()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture(scope="session")
def password_service():
    """Argon2id with minimal cost parameters so tests stay fast."""
    return Argon2PasswordService(time_cost=1, memory_cost=1024, parallelism=1)


@pytest.fixture(scope="session")
def encryption_service():
    return EncryptionService.create(TEST_ENCRYPTION_KEY).value


@pytest.fixture(scope="session")
def totp_service():
    return PyOTPService()


@pytest.fixture(scope="session")
def jwt_service():
    return JWTService(secret_key=TEST_JWT_SECRET, expiration_minutes=15)


@pytest.fixture
def policy():
    """AuthPolicy for tests: no latency padding, known pepper."""
    return AuthPolicy(
        backup_code_pepper="test-backup-code-pepper",
        anti_enumeration_min_latency=timedelta(0),
    )


@pytest_asyncio.fixture
async def test_database(tmp_path):
    """Provide a fresh SQLite database file with all tables created.

    Returns the Database object (not a session), so tests can open several
    independent sessions, e.g. to race concurrent requests.

    Usage:
        async def test_something(test_database):
            async with test_database.get_session() as session1:
                ...
            async with test_database.get_session() as session2:
                ...
    """
    db = Database(database_url=f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}")
    await db.create_all()
    yield db
    await db.close()


@dataclass
class AuthStack:
    """Service graph bound to one session."""

    session: AsyncSession
    user_repo: UserRepository
    credential_store: CredentialStore
    token_vault: TokenVault
    mfa_engine: MFAEngine
    session_issuer: SessionIssuer
    orchestrator: AuthOrchestrator
    maintenance: TokenMaintenance


@pytest.fixture
def build_stack(
    clock,
    random_source,
    notifier,
    mock_logger,
    policy,
    password_service,
    encryption_service,
    totp_service,
    jwt_service,
):
    """Factory wiring the services on a session, mirroring the container.

    Usage:
        async with test_database.get_session() as session:
            stack = build_stack(session)
            await stack.orchestrator.register(...)
    """

    def factory(
        session: AsyncSession,
        *,
        auth_policy: AuthPolicy | None = None,
        rate_limiter=None,
    ) -> AuthStack:
        active_policy = auth_policy or policy
        user_repo = UserRepository(session)
        credential_store = CredentialStore(
            credential_repo=PasswordCredentialRepository(session),
            password_service=password_service,
            clock=clock,
            random_source=random_source,
            logger=mock_logger,
            policy=active_policy.password_policy,
        )
        token_vault = TokenVault(
            verification_token_repo=VerificationTokenRepository(session),
            refresh_token_repo=RefreshTokenRepository(session),
            clock=clock,
            random_source=random_source,
            logger=mock_logger,
            refresh_token_ttl=active_policy.refresh_token_ttl,
            purge_grace=active_policy.token_purge_grace,
        )
        mfa_engine = MFAEngine(
            enrollment_repo=MFAEnrollmentRepository(session),
            backup_code_repo=BackupCodeRepository(session),
            totp_service=totp_service,
            encryption_service=encryption_service,
            clock=clock,
            random_source=random_source,
            logger=mock_logger,
            issuer=active_policy.mfa_issuer,
            valid_window=active_policy.totp_valid_window,
            backup_code_count=active_policy.backup_code_count,
            backup_code_pepper=active_policy.backup_code_pepper,
            pending_ttl=active_policy.pending_mfa_ttl,
            purge_grace=active_policy.token_purge_grace,
        )
        session_issuer = SessionIssuer(
            user_repo=user_repo,
            credential_store=credential_store,
            token_vault=token_vault,
            mfa_engine=mfa_engine,
            access_token_service=jwt_service,
            clock=clock,
            logger=mock_logger,
            mfa_session_ttl=active_policy.mfa_session_ttl,
            block_unverified_login=active_policy.block_unverified_login,
            backup_code_low_threshold=active_policy.backup_code_low_threshold,
            rate_limiter=rate_limiter,
        )
        orchestrator = AuthOrchestrator(
            user_repo=user_repo,
            credential_store=credential_store,
            token_vault=token_vault,
            mfa_engine=mfa_engine,
            notifier=notifier,
            clock=clock,
            random_source=random_source,
            logger=mock_logger,
            policy=active_policy,
            rate_limiter=rate_limiter,
        )
        return AuthStack(
            session=session,
            user_repo=user_repo,
            credential_store=credential_store,
            token_vault=token_vault,
            mfa_engine=mfa_engine,
            session_issuer=session_issuer,
            orchestrator=orchestrator,
            maintenance=TokenMaintenance(
                token_vault=token_vault, mfa_engine=mfa_engine, logger=mock_logger
            ),
        )

    return factory
