"""Centralized constants for internal implementation details.

These are fixed properties of the auth core, NOT environment-specific
configuration. For tunables use `personalpod_auth/core/config.py`.
"""

# =============================================================================
# Token and Key Lengths
# =============================================================================

TOKEN_BYTES: int = 32
"""Entropy of verification, reset and MFA-session tokens (256 bits, hex encoded)."""

REFRESH_TOKEN_BYTES: int = 32
"""Entropy of refresh tokens (256 bits, hex encoded)."""

AES_KEY_LENGTH: int = 32
"""AES-256 encryption key length in bytes."""

MIN_JWT_SECRET_LENGTH: int = 32
"""Minimum length of the HMAC secret used to sign access tokens."""

# =============================================================================
# TOTP
# =============================================================================

TOTP_SECRET_BYTES: int = 20
"""TOTP shared secret size (160 bits, 32 base32 characters)."""

TOTP_DIGITS: int = 6
"""Number of digits in a TOTP code."""

TOTP_INTERVAL_SECONDS: int = 30
"""Length of one TOTP time step."""

# =============================================================================
# Backup Codes
# =============================================================================

BACKUP_CODE_BYTES: int = 5
"""Random bytes per backup code (40 bits, 8 base32 characters)."""

BACKUP_CODE_GROUP_SIZE: int = 4
"""Characters per dash-separated group in the display format (XXXX-XXXX)."""

# =============================================================================
# Password Limits
# =============================================================================

PASSWORD_MAX_LENGTH: int = 128
"""Upper bound on accepted password length."""

USERNAME_MAX_LENGTH: int = 64
"""Upper bound on username length."""

# =============================================================================
# Revocation Reasons
# =============================================================================

REVOKE_REASON_ROTATED: str = "rotated"
REVOKE_REASON_LOGOUT: str = "logout"
REVOKE_REASON_LOGOUT_ALL: str = "logout_all"
REVOKE_REASON_PASSWORD_RESET: str = "password_reset"
REVOKE_REASON_PASSWORD_CHANGED: str = "password_changed"
REVOKE_REASON_REUSE_DETECTED: str = "reuse_detected"
REVOKE_REASON_ACCOUNT_DEACTIVATED: str = "account_deactivated"

GENERIC_EMAIL_FLOW_MESSAGE: str = (
    "If an account with that email exists, we have sent instructions to it."
)
"""Uniform response for account-existence-sensitive email flows."""
