"""Security adapters: password hashing, access tokens, TOTP, encryption."""

from personalpod_auth.infrastructure.security.argon2_password_service import (
    Argon2PasswordService,
)
from personalpod_auth.infrastructure.security.encryption_service import (
    EncryptionService,
)
from personalpod_auth.infrastructure.security.jwt_service import JWTService
from personalpod_auth.infrastructure.security.totp_service import PyOTPService

__all__ = [
    "Argon2PasswordService",
    "EncryptionService",
    "JWTService",
    "PyOTPService",
]
