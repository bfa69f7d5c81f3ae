"""MFAEnrollmentRepository protocol (port)."""

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from personalpod_auth.domain.entities import MFAEnrollment


class MFAEnrollmentRepository(Protocol):
    """Protocol for TOTP enrollment persistence.

    Writes that change whether MFA is enabled also update the user's
    `mfa_enabled` flag in the same transaction.

    Implementations:
        - MFAEnrollmentRepository (SQLAlchemy): personalpod_auth/infrastructure/persistence/repositories/
    """

    async def find_by_user_id(self, user_id: UUID) -> MFAEnrollment | None:
        """Return the user's enrollment, pending or enabled."""
        ...

    async def save_pending(
        self, user_id: UUID, encrypted_secret: bytes, now: datetime
    ) -> None:
        """Store a new secret with enabled=False, replacing a pending one."""
        ...

    async def enable(
        self,
        user_id: UUID,
        *,
        step: int,
        now: datetime,
        backup_code_hashes: Sequence[str] = (),
    ) -> bool:
        """Flip a pending enrollment to enabled.

        Records `step` as the last accepted TOTP step and replaces the
        user's backup codes with `backup_code_hashes`, all in one
        transaction.

        Returns:
            True when a pending enrollment was enabled by this call.
        """
        ...

    async def record_step(self, user_id: UUID, *, step: int, now: datetime) -> bool:
        """Accept a TOTP step if it is newer than the last accepted one.

        Conditional update on ``last_used_step < step``; a replayed or
        concurrent duplicate code observes False.
        """
        ...

    async def touch(self, user_id: UUID, now: datetime) -> None:
        """Update last_used_at (after a backup code login)."""
        ...

    async def delete(self, user_id: UUID) -> bool:
        """Delete the enrollment and clear the user's flag.

        Returns:
            True when an enrollment existed.
        """
        ...

    async def delete_pending_before(self, created_before: datetime) -> int:
        """Delete pending enrollments created before a cutoff."""
        ...
