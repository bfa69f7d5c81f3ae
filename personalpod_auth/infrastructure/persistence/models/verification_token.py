"""Single-use token model.

One table for every TokenKind. Only the SHA-256 digest of the token is
stored; the plaintext exists only in the link or response that carried it.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from personalpod_auth.infrastructure.persistence.base import BaseModel, UTCDateTime


class VerificationToken(BaseModel):
    """Single-use token.

    Fields:
        user_id: Owner (cascade delete)
        kind: email_verification | password_reset | mfa_session
        token_hash: SHA-256 hex digest (unique)
        expires_at: Expiry; expired tokens are invalid regardless of used_at
        used_at: Set once, by a conditional update
    """

    __tablename__ = "verification_tokens"
    __table_args__ = (
        Index("ix_verification_tokens_user_kind_created", "user_id", "kind", "created_at"),
    )

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    kind: Mapped[str] = mapped_column(String(32), nullable=False)
    token_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    used_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
