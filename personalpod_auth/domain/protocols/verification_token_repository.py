"""VerificationTokenRepository protocol (port).

Stores single-use tokens of every TokenKind (email verification, password
reset, MFA session). Only the SHA-256 digest of a token is persisted.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from personalpod_auth.domain.enums import TokenKind


@dataclass
class VerificationTokenData:
    """Data transfer object for a single-use token row."""

    id: UUID
    user_id: UUID
    kind: TokenKind
    token_hash: str
    expires_at: datetime
    used_at: datetime | None
    created_at: datetime


class VerificationTokenRepository(Protocol):
    """Protocol for single-use token persistence.

    Token Lifecycle:
        1. Created on request (earlier unused tokens of the same kind are
           invalidated first)
        2. Looked up by digest
        3. Consumed with a conditional update (used_at IS NULL)
        4. Purged by the maintenance job once expired or used

    Implementations:
        - VerificationTokenRepository (SQLAlchemy): personalpod_auth/infrastructure/persistence/repositories/
    """

    async def save(
        self,
        *,
        user_id: UUID,
        kind: TokenKind,
        token_hash: str,
        expires_at: datetime,
        now: datetime,
    ) -> VerificationTokenData:
        """Persist a new token."""
        ...

    async def find_by_token_hash(self, token_hash: str) -> VerificationTokenData | None:
        """Find a token by digest regardless of state."""
        ...

    async def mark_as_used(self, token_id: UUID, now: datetime) -> bool:
        """Consume a token if it is still unused and unexpired.

        Executed as one conditional UPDATE; under concurrency exactly one
        caller observes True.

        Returns:
            True when this call consumed the token.
        """
        ...

    async def release(self, token_id: UUID, used_at: datetime, now: datetime) -> bool:
        """Undo a consumption made at `used_at`, if the token is still unexpired.

        Returns:
            True when the token is usable again.
        """
        ...

    async def invalidate_unused(self, user_id: UUID, kind: TokenKind, now: datetime) -> int:
        """Mark every unused token of a kind for a user as used.

        Returns:
            Number of tokens invalidated.
        """
        ...

    async def count_recent(self, user_id: UUID, kind: TokenKind, since: datetime) -> int:
        """Count tokens of a kind created for a user since a point in time."""
        ...

    async def delete_stale(self, *, now: datetime, created_before: datetime) -> int:
        """Delete expired or used tokens created before the grace cutoff.

        Returns:
            Number of rows deleted.
        """
        ...
