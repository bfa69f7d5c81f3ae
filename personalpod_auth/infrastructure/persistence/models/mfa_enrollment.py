"""MFA enrollment model (one row per user)."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, Boolean, ForeignKey, LargeBinary
from sqlalchemy.orm import Mapped, mapped_column

from personalpod_auth.infrastructure.persistence.base import (
    BaseMutableModel,
    UTCDateTime,
)


class MFAEnrollment(BaseMutableModel):
    """TOTP enrollment.

    Fields:
        user_id: Owner (unique, cascade delete)
        encrypted_secret: AES-256-GCM encrypted base32 secret
        enabled: False until setup is verified
        last_used_step: Highest accepted TOTP step (replay defense)
        last_used_at: Last accepted second factor
    """

    __tablename__ = "mfa_enrollments"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    encrypted_secret: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    enabled_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    last_used_step: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    last_used_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
