"""User domain entity.

Pure business logic, no framework dependencies. The password lives in a
separate PasswordCredential owned by CredentialStore; `mfa_enabled` is
owned by the MFA enrollment persistence and is read-only here.
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass
class User:
    """User identity record.

    Business Rules:
        - Email is unique and stored lowercased
        - Username is unique (defaults to the email local part)
        - Never hard-deleted by the auth core: deactivation is a soft state
        - Changing email clears the verification flag

    Attributes:
        id: Unique user identifier (UUIDv7).
        email: Normalized email address.
        username: Unique handle.
        first_name: Optional given name.
        last_name: Optional family name.
        email_verified: Whether the current email has been verified.
        email_verified_at: When the current email was verified.
        is_active: False once the account is deactivated.
        mfa_enabled: Mirror of the MFA enrollment state.
        last_login_at: Time of the last completed login.
        deactivated_at: Time of deactivation.
        created_at: Creation time.
        updated_at: Last modification time.
    """

    id: UUID
    email: str
    username: str
    created_at: datetime
    updated_at: datetime
    first_name: str | None = None
    last_name: str | None = None
    email_verified: bool = False
    email_verified_at: datetime | None = None
    is_active: bool = True
    mfa_enabled: bool = False
    last_login_at: datetime | None = None
    deactivated_at: datetime | None = field(default=None)

    def mark_email_verified(self, now: datetime) -> None:
        """Mark the current email address as verified."""
        self.email_verified = True
        self.email_verified_at = now
        self.updated_at = now

    def change_email(self, new_email: str, now: datetime) -> None:
        """Switch to a new, unverified email address."""
        self.email = new_email
        self.email_verified = False
        self.email_verified_at = None
        self.updated_at = now

    def record_login(self, now: datetime) -> None:
        """Record a completed login."""
        self.last_login_at = now
        self.updated_at = now

    def deactivate(self, now: datetime) -> None:
        """Soft-delete the account.

        Idempotent: the first deactivation time is kept.
        """
        if self.is_active:
            self.is_active = False
            self.deactivated_at = now
        self.updated_at = now

    def update_profile(
        self,
        *,
        now: datetime,
        username: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> None:
        """Apply a partial profile update (None leaves a field unchanged)."""
        if username is not None:
            self.username = username
        if first_name is not None:
            self.first_name = first_name
        if last_name is not None:
            self.last_name = last_name
        self.updated_at = now
