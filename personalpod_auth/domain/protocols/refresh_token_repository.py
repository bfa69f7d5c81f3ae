"""RefreshTokenRepository protocol (port) for domain layer.

Refresh tokens are stored as SHA-256 digests. Invalidation marks rows
revoked (with a reason) instead of deleting them, so reuse of a rotated
token can be told apart from an unknown token.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID


@dataclass
class RefreshTokenData:
    """Data transfer object for refresh token information."""

    id: UUID
    user_id: UUID
    token_hash: str
    expires_at: datetime
    created_at: datetime
    revoked_at: datetime | None
    revoked_reason: str | None


class RefreshTokenRepository(Protocol):
    """Protocol for refresh token persistence operations.

    Token Lifecycle:
        1. Created at login (30-day expiration)
        2. Rotated on every refresh (old revoked, new inserted, one commit)
        3. Revoked on logout, logout-all, password change or reset

    Implementations:
        - RefreshTokenRepository (SQLAlchemy): personalpod_auth/infrastructure/persistence/repositories/
    """

    async def save(
        self,
        *,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
        now: datetime,
    ) -> RefreshTokenData:
        """Persist a new refresh token."""
        ...

    async def find_by_token_hash(self, token_hash: str) -> RefreshTokenData | None:
        """Find a refresh token by digest, revoked or not."""
        ...

    async def rotate(
        self,
        *,
        old_token_id: UUID,
        new_token_hash: str,
        new_expires_at: datetime,
        now: datetime,
        reason: str,
    ) -> RefreshTokenData | None:
        """Revoke the old token and insert its replacement atomically.

        The old row is revoked with a conditional UPDATE (still active and
        unexpired). When that update affects no row the replacement is not
        inserted.

        Returns:
            The new token, or None when the old token lost the race or had
            already been invalidated.
        """
        ...

    async def revoke(self, token_hash: str, now: datetime, reason: str) -> bool:
        """Revoke one active token.

        Returns:
            True when an active token was revoked.
        """
        ...

    async def revoke_all_for_user(self, user_id: UUID, now: datetime, reason: str) -> int:
        """Revoke every active token of a user.

        Returns:
            Number of tokens revoked.
        """
        ...

    async def delete_stale(self, *, now: datetime, created_before: datetime) -> int:
        """Delete expired or revoked tokens created before the grace cutoff."""
        ...
