"""MFA enums."""

from enum import Enum


class MFACodeType(str, Enum):
    """Kind of second-factor code submitted at login."""

    TOTP = "totp"
    BACKUP = "backup"


class MFAState(str, Enum):
    """Per-user MFA enrollment state.

    Transitions:
        UNENROLLED -> PENDING_VERIFICATION (begin setup)
        PENDING_VERIFICATION -> ENABLED (verify setup)
        PENDING_VERIFICATION -> PENDING_VERIFICATION (begin setup again)
        ENABLED -> UNENROLLED (disable, after password re-verification)
    """

    UNENROLLED = "unenrolled"
    PENDING_VERIFICATION = "pending_verification"
    ENABLED = "enabled"
