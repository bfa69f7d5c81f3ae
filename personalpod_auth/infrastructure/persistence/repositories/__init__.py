"""SQLAlchemy repository implementations (adapters)."""

from personalpod_auth.infrastructure.persistence.repositories.backup_code_repository import (
    BackupCodeRepository,
)
from personalpod_auth.infrastructure.persistence.repositories.mfa_enrollment_repository import (
    MFAEnrollmentRepository,
)
from personalpod_auth.infrastructure.persistence.repositories.password_credential_repository import (
    PasswordCredentialRepository,
)
from personalpod_auth.infrastructure.persistence.repositories.refresh_token_repository import (
    RefreshTokenRepository,
)
from personalpod_auth.infrastructure.persistence.repositories.user_repository import (
    UserRepository,
)
from personalpod_auth.infrastructure.persistence.repositories.verification_token_repository import (
    VerificationTokenRepository,
)

__all__ = [
    "BackupCodeRepository",
    "MFAEnrollmentRepository",
    "PasswordCredentialRepository",
    "RefreshTokenRepository",
    "UserRepository",
    "VerificationTokenRepository",
]
