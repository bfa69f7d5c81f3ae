"""Domain protocols (ports).

Infrastructure adapters satisfy these structurally; none inherit from them.
"""

from personalpod_auth.domain.protocols.access_token_protocol import (
    AccessTokenProtocol,
)
from personalpod_auth.domain.protocols.backup_code_repository import (
    BackupCodeRepository,
)
from personalpod_auth.domain.protocols.clock_protocol import ClockProtocol
from personalpod_auth.domain.protocols.encryption_protocol import (
    DecryptionError,
    EncryptionError,
    EncryptionKeyError,
    EncryptionProtocol,
)
from personalpod_auth.domain.protocols.logger_protocol import LoggerProtocol
from personalpod_auth.domain.protocols.mfa_enrollment_repository import (
    MFAEnrollmentRepository,
)
from personalpod_auth.domain.protocols.notifier_protocol import NotifierProtocol
from personalpod_auth.domain.protocols.password_credential_repository import (
    PasswordCredentialRepository,
)
from personalpod_auth.domain.protocols.password_hashing_protocol import (
    PasswordHashingProtocol,
)
from personalpod_auth.domain.protocols.random_source_protocol import (
    RandomSourceProtocol,
)
from personalpod_auth.domain.protocols.rate_limiter_protocol import (
    RateLimitDecision,
    RateLimiterProtocol,
)
from personalpod_auth.domain.protocols.refresh_token_repository import (
    RefreshTokenData,
    RefreshTokenRepository,
)
from personalpod_auth.domain.protocols.totp_protocol import TOTPProtocol
from personalpod_auth.domain.protocols.user_repository import UserRepository
from personalpod_auth.domain.protocols.verification_token_repository import (
    VerificationTokenData,
    VerificationTokenRepository,
)

__all__ = [
    "AccessTokenProtocol",
    "BackupCodeRepository",
    "ClockProtocol",
    "DecryptionError",
    "EncryptionError",
    "EncryptionKeyError",
    "EncryptionProtocol",
    "LoggerProtocol",
    "MFAEnrollmentRepository",
    "NotifierProtocol",
    "PasswordCredentialRepository",
    "PasswordHashingProtocol",
    "RandomSourceProtocol",
    "RateLimitDecision",
    "RateLimiterProtocol",
    "RefreshTokenData",
    "RefreshTokenRepository",
    "TOTPProtocol",
    "UserRepository",
    "VerificationTokenData",
    "VerificationTokenRepository",
]
