"""BackupCodeRepository - SQLAlchemy implementation.

Codes are stored only as keyed digests; consumption is a conditional
UPDATE on ``used_at IS NULL``.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from personalpod_auth.infrastructure.persistence.models.backup_code import BackupCode


class BackupCodeRepository:
    """SQLAlchemy implementation of BackupCodeRepository protocol."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def replace_all(
        self, user_id: UUID, code_hashes: list[str], now: datetime
    ) -> None:
        await self.session.execute(
            delete(BackupCode)
            .where(BackupCode.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        self.session.add_all(
            BackupCode(user_id=user_id, code_hash=code_hash, created_at=now)
            for code_hash in code_hashes
        )
        await self.session.commit()

    async def consume(self, user_id: UUID, code_hash: str, now: datetime) -> bool:
        stmt = (
            update(BackupCode)
            .where(BackupCode.user_id == user_id)
            .where(BackupCode.code_hash == code_hash)
            .where(BackupCode.used_at.is_(None))
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    async def count_unused(self, user_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(BackupCode)
            .where(BackupCode.user_id == user_id)
            .where(BackupCode.used_at.is_(None))
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def delete_all(self, user_id: UUID) -> int:
        stmt = (
            delete(BackupCode)
            .where(BackupCode.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount

    async def delete_used_before(self, used_before: datetime) -> int:
        stmt = (
            delete(BackupCode)
            .where(BackupCode.used_at.is_not(None))
            .where(BackupCode.used_at < used_before)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount
