"""MFA backup code model."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from personalpod_auth.infrastructure.persistence.base import BaseModel, UTCDateTime


class BackupCode(BaseModel):
    """Single-use MFA recovery code.

    Fields:
        user_id: Owner (cascade delete)
        code_hash: HMAC-SHA256 of the normalized code, keyed by the server
            pepper and salted with the user id
        used_at: Set once, by a conditional update
    """

    __tablename__ = "backup_codes"
    __table_args__ = (UniqueConstraint("user_id", "code_hash"),)

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    code_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
