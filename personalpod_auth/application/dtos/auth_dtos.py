"""Auth DTOs (Data Transfer Objects).

Result shapes handed back to transports. None of them carries a password,
hash, token digest or encrypted secret.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from personalpod_auth.core.constants import GENERIC_EMAIL_FLOW_MESSAGE
from personalpod_auth.domain.entities import User
from personalpod_auth.domain.enums import MFACodeType, MFAState


@dataclass(frozen=True, kw_only=True)
class RegistrationProfile:
    """Registration input.

    Attributes:
        email: Raw email address (normalized during registration).
        password: Plaintext password, checked against the policy.
        username: Optional handle; derived from the email when omitted.
        first_name: Optional given name.
        last_name: Optional family name.
    """

    email: str
    password: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None


@dataclass(frozen=True, kw_only=True)
class UserProfile:
    """Public view of a user account."""

    id: UUID
    email: str
    username: str
    first_name: str | None
    last_name: str | None
    email_verified: bool
    is_active: bool
    mfa_enabled: bool
    created_at: datetime
    last_login_at: datetime | None

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            email_verified=user.email_verified,
            is_active=user.is_active,
            mfa_enabled=user.mfa_enabled,
            created_at=user.created_at,
            last_login_at=user.last_login_at,
        )


@dataclass(frozen=True, kw_only=True)
class MFASetup:
    """Material shown once when TOTP setup begins.

    Attributes:
        secret: Base32 secret for manual entry.
        provisioning_uri: ``otpauth://`` URI for QR rendering.
    """

    secret: str
    provisioning_uri: str


@dataclass(frozen=True, kw_only=True)
class MFAVerification:
    """Outcome of an accepted second factor.

    Attributes:
        code_type: Which factor was accepted.
        backup_codes_remaining: Unused backup codes after this verification.
    """

    code_type: MFACodeType
    backup_codes_remaining: int


@dataclass(frozen=True, kw_only=True)
class MFAStatus:
    """Read-only view of a user's MFA enrollment."""

    state: MFAState
    backup_codes_remaining: int = 0
    last_used_at: datetime | None = None


@dataclass(frozen=True)
class GenericResponse:
    """Uniform acknowledgement for account-existence-sensitive flows."""

    message: str = GENERIC_EMAIL_FLOW_MESSAGE


@dataclass(frozen=True, kw_only=True)
class MaintenanceReport:
    """Row counts removed by one maintenance run."""

    verification_tokens: int = 0
    refresh_tokens: int = 0
    pending_mfa_enrollments: int = 0
    backup_codes: int = 0

    @property
    def total(self) -> int:
        return (
            self.verification_tokens
            + self.refresh_tokens
            + self.pending_mfa_enrollments
            + self.backup_codes
        )
