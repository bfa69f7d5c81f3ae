"""VerificationTokenRepository - SQLAlchemy implementation.

Consumption is a conditional UPDATE (``used_at IS NULL AND expires_at >
now``) whose affected-row count decides the single winner among
concurrent redemptions.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from personalpod_auth.domain.enums import TokenKind
from personalpod_auth.domain.protocols.verification_token_repository import (
    VerificationTokenData,
)
from personalpod_auth.infrastructure.persistence.models.verification_token import (
    VerificationToken,
)


def _to_data(model: VerificationToken) -> VerificationTokenData:
    """Convert database model to domain DTO."""
    return VerificationTokenData(
        id=model.id,
        user_id=model.user_id,
        kind=TokenKind(model.kind),
        token_hash=model.token_hash,
        expires_at=model.expires_at,
        used_at=model.used_at,
        created_at=model.created_at,
    )


class VerificationTokenRepository:
    """SQLAlchemy implementation of VerificationTokenRepository protocol.

    Example:
        >>> repo = VerificationTokenRepository(session)
        >>> token = await repo.find_by_token_hash(digest)
        >>> consumed = await repo.mark_as_used(token.id, clock.now())
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def save(
        self,
        *,
        user_id: UUID,
        kind: TokenKind,
        token_hash: str,
        expires_at: datetime,
        now: datetime,
    ) -> VerificationTokenData:
        model = VerificationToken(
            user_id=user_id,
            kind=kind.value,
            token_hash=token_hash,
            expires_at=expires_at,
            created_at=now,
        )
        self.session.add(model)
        await self.session.commit()
        return _to_data(model)

    async def find_by_token_hash(self, token_hash: str) -> VerificationTokenData | None:
        stmt = (
            select(VerificationToken)
            .where(VerificationToken.token_hash == token_hash)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_data(model) if model is not None else None

    async def mark_as_used(self, token_id: UUID, now: datetime) -> bool:
        stmt = (
            update(VerificationToken)
            .where(VerificationToken.id == token_id)
            .where(VerificationToken.used_at.is_(None))
            .where(VerificationToken.expires_at > now)
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    async def release(self, token_id: UUID, used_at: datetime, now: datetime) -> bool:
        stmt = (
            update(VerificationToken)
            .where(VerificationToken.id == token_id)
            .where(VerificationToken.used_at == used_at)
            .where(VerificationToken.expires_at > now)
            .values(used_at=None)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    async def invalidate_unused(self, user_id: UUID, kind: TokenKind, now: datetime) -> int:
        stmt = (
            update(VerificationToken)
            .where(VerificationToken.user_id == user_id)
            .where(VerificationToken.kind == kind.value)
            .where(VerificationToken.used_at.is_(None))
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount

    async def count_recent(self, user_id: UUID, kind: TokenKind, since: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(VerificationToken)
            .where(VerificationToken.user_id == user_id)
            .where(VerificationToken.kind == kind.value)
            .where(VerificationToken.created_at >= since)
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def delete_stale(self, *, now: datetime, created_before: datetime) -> int:
        stmt = (
            delete(VerificationToken)
            .where(VerificationToken.created_at < created_before)
            .where(
                or_(
                    VerificationToken.expires_at <= now,
                    VerificationToken.used_at.is_not(None),
                )
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount
