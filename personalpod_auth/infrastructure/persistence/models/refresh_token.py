"""Refresh token model.

Security:
    - token_hash: SHA-256 digest of a 256-bit random token (never plaintext)
    - revoked_at / revoked_reason: set on rotation, logout, password change
      or reuse detection; a revoked row is kept until purged so reuse of a
      rotated token can be detected
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from personalpod_auth.infrastructure.persistence.base import BaseModel, UTCDateTime


class RefreshToken(BaseModel):
    """Refresh token.

    Token Lifecycle:
        1. Created on login (30 day expiration)
        2. Rotated on each refresh (revoked with reason "rotated")
        3. Revoked on logout, password change/reset, or reuse detection
        4. Purged once expired or revoked and past the grace window
    """

    __tablename__ = "refresh_tokens"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    revoked_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    revoked_reason: Mapped[str | None] = mapped_column(String(50), nullable=True)
