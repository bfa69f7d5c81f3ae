"""UserRepository protocol (port)."""

from typing import Protocol
from uuid import UUID

from personalpod_auth.domain.entities import User


class UserRepository(Protocol):
    """Protocol for user persistence.

    `mfa_enabled` is owned by the MFA enrollment repository; `update` must
    not write it, so a stale User instance can never undo an MFA change.

    Implementations:
        - UserRepository (SQLAlchemy): personalpod_auth/infrastructure/persistence/repositories/
    """

    async def find_by_id(self, user_id: UUID) -> User | None:
        """Find user by ID."""
        ...

    async def find_by_email(self, email: str) -> User | None:
        """Find user by normalized email address."""
        ...

    async def exists_by_email(self, email: str) -> bool:
        """Check whether an email address is taken."""
        ...

    async def exists_by_username(self, username: str) -> bool:
        """Check whether a username is taken (case-insensitive)."""
        ...

    async def save(self, user: User) -> None:
        """Insert a new user.

        Raises:
            IntegrityError: If email or username is already taken
                (concurrent registration past the existence checks).
        """
        ...

    async def update(self, user: User) -> None:
        """Persist profile, verification, activity and login fields."""
        ...
