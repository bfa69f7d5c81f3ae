"""Database models.

Infrastructure concern only; domain entities live in
personalpod_auth/domain/entities/ and are mapped by the repositories.

Models Organization:
    - user.py: User identity
    - password_credential.py: One password hash per user
    - verification_token.py: Single-use tokens (email verification,
      password reset, MFA session)
    - refresh_token.py: Rotating refresh tokens
    - mfa_enrollment.py: TOTP enrollment
    - backup_code.py: MFA backup codes
"""

from personalpod_auth.infrastructure.persistence.base import BaseModel
from personalpod_auth.infrastructure.persistence.models.backup_code import BackupCode
from personalpod_auth.infrastructure.persistence.models.mfa_enrollment import (
    MFAEnrollment,
)
from personalpod_auth.infrastructure.persistence.models.password_credential import (
    PasswordCredential,
)
from personalpod_auth.infrastructure.persistence.models.refresh_token import (
    RefreshToken,
)
from personalpod_auth.infrastructure.persistence.models.user import User
from personalpod_auth.infrastructure.persistence.models.verification_token import (
    VerificationToken,
)

__all__ = [
    "BackupCode",
    "BaseModel",
    "MFAEnrollment",
    "PasswordCredential",
    "RefreshToken",
    "User",
    "VerificationToken",
]
