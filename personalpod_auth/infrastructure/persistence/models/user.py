"""User database model.

Identity and account state only. The password hash lives in
`password_credentials`, MFA secrets in `mfa_enrollments`.
"""

from datetime import datetime

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from personalpod_auth.infrastructure.persistence.base import (
    BaseMutableModel,
    UTCDateTime,
)


class User(BaseMutableModel):
    """User model.

    Fields:
        email: Unique, lowercased email address
        username: Unique handle
        first_name / last_name: Optional profile fields
        email_verified / email_verified_at: Single source of truth for
            verification state
        is_active / deactivated_at: Soft-delete state
        mfa_enabled: Written only by the MFA enrollment repository
        last_login_at: Last completed login

    Indexes:
        - ix_users_email (unique)
        - ix_users_username (unique)
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="User email address (unique, lowercase)",
    )
    username: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
        comment="Unique username",
    )
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Email verification status",
    )
    email_verified_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="False once the account is deactivated (soft delete)",
    )
    deactivated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    mfa_enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Mirror of mfa_enrollments.enabled",
    )
    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
