"""MFAEnrollmentRepository - SQLAlchemy implementation.

Writes that change whether MFA is enabled update ``users.mfa_enabled``
in the same commit. Enabling also stores the first backup code batch in
that commit.
"""

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from personalpod_auth.domain.entities import MFAEnrollment
from personalpod_auth.infrastructure.persistence.models.backup_code import BackupCode
from personalpod_auth.infrastructure.persistence.models.mfa_enrollment import (
    MFAEnrollment as MFAEnrollmentModel,
)
from personalpod_auth.infrastructure.persistence.models.user import User as UserModel


def _to_domain(model: MFAEnrollmentModel) -> MFAEnrollment:
    return MFAEnrollment(
        user_id=model.user_id,
        encrypted_secret=model.encrypted_secret,
        enabled=model.enabled,
        created_at=model.created_at,
        enabled_at=model.enabled_at,
        last_used_step=model.last_used_step,
        last_used_at=model.last_used_at,
    )


class MFAEnrollmentRepository:
    """SQLAlchemy implementation of MFAEnrollmentRepository protocol."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_user_id(self, user_id: UUID) -> MFAEnrollment | None:
        stmt = (
            select(MFAEnrollmentModel)
            .where(MFAEnrollmentModel.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_domain(model) if model is not None else None

    async def save_pending(
        self, user_id: UUID, encrypted_secret: bytes, now: datetime
    ) -> None:
        """Store a pending secret.

        An existing pending row is overwritten in place; an enabled row is
        never touched (the caller refuses setup while enabled).
        """
        stmt = (
            update(MFAEnrollmentModel)
            .where(MFAEnrollmentModel.user_id == user_id)
            .where(MFAEnrollmentModel.enabled.is_(False))
            .values(
                encrypted_secret=encrypted_secret,
                created_at=now,
                updated_at=now,
                last_used_step=None,
                last_used_at=None,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            self.session.add(
                MFAEnrollmentModel(
                    user_id=user_id,
                    encrypted_secret=encrypted_secret,
                    enabled=False,
                    created_at=now,
                    updated_at=now,
                )
            )
        await self.session.commit()

    async def enable(
        self,
        user_id: UUID,
        *,
        step: int,
        now: datetime,
        backup_code_hashes: Sequence[str] = (),
    ) -> bool:
        stmt = (
            update(MFAEnrollmentModel)
            .where(MFAEnrollmentModel.user_id == user_id)
            .where(MFAEnrollmentModel.enabled.is_(False))
            .values(
                enabled=True,
                enabled_at=now,
                last_used_step=step,
                last_used_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            await self.session.rollback()
            return False

        await self._set_user_flag(user_id, True, now)
        await self.session.execute(
            delete(BackupCode)
            .where(BackupCode.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        self.session.add_all(
            BackupCode(user_id=user_id, code_hash=code_hash, created_at=now)
            for code_hash in backup_code_hashes
        )
        await self.session.commit()
        return True

    async def record_step(self, user_id: UUID, *, step: int, now: datetime) -> bool:
        stmt = (
            update(MFAEnrollmentModel)
            .where(MFAEnrollmentModel.user_id == user_id)
            .where(MFAEnrollmentModel.enabled.is_(True))
            .where(
                or_(
                    MFAEnrollmentModel.last_used_step.is_(None),
                    MFAEnrollmentModel.last_used_step < step,
                )
            )
            .values(last_used_step=step, last_used_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    async def touch(self, user_id: UUID, now: datetime) -> None:
        stmt = (
            update(MFAEnrollmentModel)
            .where(MFAEnrollmentModel.user_id == user_id)
            .values(last_used_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        await self.session.commit()

    async def delete(self, user_id: UUID) -> bool:
        stmt = (
            delete(MFAEnrollmentModel)
            .where(MFAEnrollmentModel.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self._set_user_flag(user_id, False, None)
        await self.session.commit()
        return result.rowcount > 0

    async def delete_pending_before(self, created_before: datetime) -> int:
        stmt = (
            delete(MFAEnrollmentModel)
            .where(MFAEnrollmentModel.enabled.is_(False))
            .where(MFAEnrollmentModel.created_at < created_before)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount

    async def _set_user_flag(
        self, user_id: UUID, enabled: bool, now: datetime | None
    ) -> None:
        values: dict[str, object] = {"mfa_enabled": enabled}
        if now is not None:
            values["updated_at"] = now
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
