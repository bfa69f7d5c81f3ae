"""Machine-readable error codes.

Error codes follow ENTITY_ACTION_REASON naming convention and are carried
by every DomainError returned inside a Failure.

Categories:
- Validation errors (INVALID_*, PASSWORD_*)
- Resource errors (*_NOT_FOUND)
- Conflict errors (*_ALREADY_EXISTS, MFA_*)
- Authentication errors (INVALID_CREDENTIALS, TOKEN_*, MFA_CODE_*)
- Account state errors (ACCOUNT_*, EMAIL_NOT_VERIFIED)
- Throttling (RATE_LIMIT_*)
- Encryption errors (ENCRYPTION_*, DECRYPTION_*)
"""

from enum import Enum


class ErrorCode(Enum):
    """Machine-readable error codes."""

    # Validation errors
    INVALID_EMAIL = "invalid_email"
    INVALID_USERNAME = "invalid_username"
    PASSWORD_TOO_WEAK = "password_too_weak"

    # Resource errors
    USER_NOT_FOUND = "user_not_found"
    CREDENTIAL_NOT_FOUND = "credential_not_found"
    MFA_NOT_ENROLLED = "mfa_not_enrolled"

    # Conflict errors
    EMAIL_ALREADY_EXISTS = "email_already_exists"
    USERNAME_ALREADY_EXISTS = "username_already_exists"
    MFA_ALREADY_ENABLED = "mfa_already_enabled"
    MFA_NOT_ENABLED = "mfa_not_enabled"

    # Authentication errors
    INVALID_CREDENTIALS = "invalid_credentials"
    TOKEN_INVALID = "token_invalid"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_ALREADY_USED = "token_already_used"
    TOKEN_REUSE_DETECTED = "token_reuse_detected"
    MFA_CODE_INVALID = "mfa_code_invalid"

    # Account state errors
    ACCOUNT_DISABLED = "account_disabled"
    EMAIL_NOT_VERIFIED = "email_not_verified"

    # Throttling
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"

    # Encryption errors
    ENCRYPTION_KEY_INVALID = "encryption_key_invalid"
    DECRYPTION_FAILED = "decryption_failed"
