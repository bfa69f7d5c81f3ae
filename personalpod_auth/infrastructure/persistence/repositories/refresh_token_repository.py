"""RefreshTokenRepository - SQLAlchemy implementation for refresh token persistence.

Rotation revokes the old row with a conditional UPDATE and inserts the
replacement in the same commit; a rotation that loses the race inserts
nothing.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from personalpod_auth.domain.protocols.refresh_token_repository import RefreshTokenData
from personalpod_auth.infrastructure.persistence.models.refresh_token import (
    RefreshToken,
)


def _to_data(model: RefreshToken) -> RefreshTokenData:
    """Convert database model to domain DTO."""
    return RefreshTokenData(
        id=model.id,
        user_id=model.user_id,
        token_hash=model.token_hash,
        expires_at=model.expires_at,
        created_at=model.created_at,
        revoked_at=model.revoked_at,
        revoked_reason=model.revoked_reason,
    )


class RefreshTokenRepository:
    """SQLAlchemy implementation of RefreshTokenRepository protocol.

    Example:
        >>> repo = RefreshTokenRepository(session)
        >>> token = await repo.find_by_token_hash(digest)
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def save(
        self,
        *,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
        now: datetime,
    ) -> RefreshTokenData:
        model = RefreshToken(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            created_at=now,
        )
        self.session.add(model)
        await self.session.commit()
        return _to_data(model)

    async def find_by_token_hash(self, token_hash: str) -> RefreshTokenData | None:
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.token_hash == token_hash)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_data(model) if model is not None else None

    async def rotate(
        self,
        *,
        old_token_id: UUID,
        new_token_hash: str,
        new_expires_at: datetime,
        now: datetime,
        reason: str,
    ) -> RefreshTokenData | None:
        user_id = await self.session.scalar(
            select(RefreshToken.user_id).where(RefreshToken.id == old_token_id)
        )
        if user_id is None:
            return None

        stmt = (
            update(RefreshToken)
            .where(RefreshToken.id == old_token_id)
            .where(RefreshToken.revoked_at.is_(None))
            .where(RefreshToken.expires_at > now)
            .values(revoked_at=now, revoked_reason=reason)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            await self.session.rollback()
            return None

        model = RefreshToken(
            user_id=user_id,
            token_hash=new_token_hash,
            expires_at=new_expires_at,
            created_at=now,
        )
        self.session.add(model)
        await self.session.commit()
        return _to_data(model)

    async def revoke(self, token_hash: str, now: datetime, reason: str) -> bool:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token_hash == token_hash)
            .where(RefreshToken.revoked_at.is_(None))
            .values(revoked_at=now, revoked_reason=reason)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    async def revoke_all_for_user(self, user_id: UUID, now: datetime, reason: str) -> int:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .where(RefreshToken.revoked_at.is_(None))
            .values(revoked_at=now, revoked_reason=reason)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount

    async def delete_stale(self, *, now: datetime, created_before: datetime) -> int:
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.created_at < created_before)
            .where(
                or_(
                    RefreshToken.expires_at <= now,
                    RefreshToken.revoked_at.is_not(None),
                )
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount
