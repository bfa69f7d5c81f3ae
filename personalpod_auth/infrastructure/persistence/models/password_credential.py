"""Password credential model (one row per user)."""

from uuid import UUID

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from personalpod_auth.infrastructure.persistence.base import BaseMutableModel


class PasswordCredential(BaseMutableModel):
    """Password hash for a user.

    Replaced in place on change or reset (not versioned). The unique
    constraint on user_id enforces exactly one credential per user.
    """

    __tablename__ = "password_credentials"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="argon2id hash (legacy bcrypt hashes are upgraded on login)",
    )
