"""Purposes of single-use opaque tokens held by the TokenVault."""

from enum import Enum


class TokenKind(str, Enum):
    """Single-purpose token kinds.

    A token redeemed under a different kind than it was issued for is
    rejected, so a password-reset link can never verify an email.
    """

    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"
    MFA_SESSION = "mfa_session"
