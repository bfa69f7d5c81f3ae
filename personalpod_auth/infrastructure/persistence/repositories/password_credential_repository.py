"""PasswordCredentialRepository - SQLAlchemy implementation.

Every replacement is a single UPDATE statement, so a password change is
atomic with respect to concurrent verifications.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from personalpod_auth.infrastructure.persistence.models.password_credential import (
    PasswordCredential,
)


class PasswordCredentialRepository:
    """SQLAlchemy implementation of PasswordCredentialRepository protocol."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_hash(self, user_id: UUID) -> str | None:
        stmt = select(PasswordCredential.password_hash).where(
            PasswordCredential.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(self, user_id: UUID, password_hash: str, now: datetime) -> None:
        """Replace the hash, inserting the row when the user has none yet."""
        if await self._update(user_id, password_hash, now) == 0:
            self.session.add(
                PasswordCredential(
                    user_id=user_id,
                    password_hash=password_hash,
                    created_at=now,
                    updated_at=now,
                )
            )
        await self.session.commit()

    async def replace(self, user_id: UUID, password_hash: str, now: datetime) -> bool:
        replaced = await self._update(user_id, password_hash, now) == 1
        await self.session.commit()
        return replaced

    async def replace_if_matches(
        self,
        user_id: UUID,
        expected_hash: str,
        new_hash: str,
        now: datetime,
    ) -> bool:
        stmt = (
            update(PasswordCredential)
            .where(PasswordCredential.user_id == user_id)
            .where(PasswordCredential.password_hash == expected_hash)
            .values(password_hash=new_hash, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    async def _update(self, user_id: UUID, password_hash: str, now: datetime) -> int:
        stmt = (
            update(PasswordCredential)
            .where(PasswordCredential.user_id == user_id)
            .values(password_hash=password_hash, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount
