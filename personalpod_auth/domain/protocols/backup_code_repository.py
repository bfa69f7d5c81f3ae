"""BackupCodeRepository protocol (port).

Backup codes are stored only as keyed digests.
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID


class BackupCodeRepository(Protocol):
    """Protocol for backup code persistence.

    Implementations:
        - BackupCodeRepository (SQLAlchemy): personalpod_auth/infrastructure/persistence/repositories/
    """

    async def replace_all(
        self, user_id: UUID, code_hashes: list[str], now: datetime
    ) -> None:
        """Delete every existing code for the user and insert a new batch."""
        ...

    async def consume(self, user_id: UUID, code_hash: str, now: datetime) -> bool:
        """Mark a matching unused code as used.

        Conditional update on ``used_at IS NULL``.

        Returns:
            True when this call consumed the code.
        """
        ...

    async def count_unused(self, user_id: UUID) -> int:
        """Count codes still available."""
        ...

    async def delete_all(self, user_id: UUID) -> int:
        """Delete all codes for a user."""
        ...

    async def delete_used_before(self, used_before: datetime) -> int:
        """Delete codes consumed before a cutoff."""
        ...
