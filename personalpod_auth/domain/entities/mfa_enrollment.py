"""MFA enrollment entity."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from personalpod_auth.domain.enums import MFAState


@dataclass(frozen=True, kw_only=True)
class MFAEnrollment:
    """One-to-one TOTP enrollment for a user.

    Attributes:
        user_id: Owning user.
        encrypted_secret: AES-GCM encrypted base32 TOTP secret.
        enabled: False while setup awaits its first valid code.
        enabled_at: When setup was verified.
        last_used_step: Highest TOTP time step accepted so far. Codes from
            this step or earlier are rejected to block replay.
        last_used_at: When a code was last accepted.
        created_at: When the current secret was generated.
    """

    user_id: UUID
    encrypted_secret: bytes
    enabled: bool
    created_at: datetime
    enabled_at: datetime | None = None
    last_used_step: int | None = None
    last_used_at: datetime | None = None

    @property
    def state(self) -> MFAState:
        """State machine position of this enrollment."""
        return MFAState.ENABLED if self.enabled else MFAState.PENDING_VERIFICATION
