"""PasswordCredentialRepository protocol (port).

One credential row per user. Only CredentialStore uses this port; no other
component ever sees a password hash.
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID


class PasswordCredentialRepository(Protocol):
    """Protocol for password hash persistence.

    Implementations:
        - PasswordCredentialRepository (SQLAlchemy): personalpod_auth/infrastructure/persistence/repositories/
    """

    async def find_hash(self, user_id: UUID) -> str | None:
        """Return the stored hash, or None when the user has no credential."""
        ...

    async def upsert(self, user_id: UUID, password_hash: str, now: datetime) -> None:
        """Create the credential or replace the existing hash."""
        ...

    async def replace(self, user_id: UUID, password_hash: str, now: datetime) -> bool:
        """Atomically replace an existing hash.

        Returns:
            True when a credential existed and was replaced.
        """
        ...

    async def replace_if_matches(
        self,
        user_id: UUID,
        expected_hash: str,
        new_hash: str,
        now: datetime,
    ) -> bool:
        """Replace the hash only if it still equals `expected_hash`.

        Used for transparent rehashing after a successful verification, so a
        concurrent password change is never overwritten by the rehash.
        """
        ...
