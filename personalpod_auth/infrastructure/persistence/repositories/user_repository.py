"""UserRepository - SQLAlchemy implementation of UserRepository protocol.

Maps between domain User entities and the users table.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from personalpod_auth.domain.entities import User
from personalpod_auth.infrastructure.persistence.models.user import User as UserModel


class UserRepository:
    """SQLAlchemy implementation of UserRepository protocol.

    Does NOT inherit from the protocol (structural typing).

    Example:
        >>> async with db.get_session() as session:
        ...     repo = UserRepository(session)
        ...     user = await repo.find_by_email("user@example.com")
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def find_by_id(self, user_id: UUID) -> User | None:
        stmt = (
            select(UserModel)
            .where(UserModel.id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        user_model = result.scalar_one_or_none()

        if user_model is None:
            return None

        return self._to_domain(user_model)

    async def find_by_email(self, email: str) -> User | None:
        """Find user by email address.

        Emails are stored normalized and lowercased, so this is an exact
        match on the lowercased input.
        """
        stmt = (
            select(UserModel)
            .where(UserModel.email == email.lower())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        user_model = result.scalar_one_or_none()

        if user_model is None:
            return None

        return self._to_domain(user_model)

    async def exists_by_email(self, email: str) -> bool:
        stmt = select(UserModel.id).where(UserModel.email == email.lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def exists_by_username(self, username: str) -> bool:
        stmt = select(UserModel.id).where(
            func.lower(UserModel.username) == username.lower()
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def save(self, user: User) -> None:
        """Create new user in database.

        Raises:
            IntegrityError: If email or username already exists.
        """
        self.session.add(self._to_model(user))
        await self.session.commit()

    async def update(self, user: User) -> None:
        """Update an existing user.

        `mfa_enabled` is deliberately not written here; it belongs to the
        MFA enrollment repository.

        Raises:
            NoResultFound: If the user doesn't exist.
        """
        stmt = select(UserModel).where(UserModel.id == user.id)
        result = await self.session.execute(stmt)
        user_model = result.scalar_one()

        user_model.email = user.email
        user_model.username = user.username
        user_model.first_name = user.first_name
        user_model.last_name = user.last_name
        user_model.email_verified = user.email_verified
        user_model.email_verified_at = user.email_verified_at
        user_model.is_active = user.is_active
        user_model.deactivated_at = user.deactivated_at
        user_model.last_login_at = user.last_login_at
        user_model.updated_at = user.updated_at

        await self.session.commit()

    def _to_domain(self, user_model: UserModel) -> User:
        return User(
            id=user_model.id,
            email=user_model.email,
            username=user_model.username,
            first_name=user_model.first_name,
            last_name=user_model.last_name,
            email_verified=user_model.email_verified,
            email_verified_at=user_model.email_verified_at,
            is_active=user_model.is_active,
            deactivated_at=user_model.deactivated_at,
            mfa_enabled=user_model.mfa_enabled,
            last_login_at=user_model.last_login_at,
            created_at=user_model.created_at,
            updated_at=user_model.updated_at,
        )

    def _to_model(self, user: User) -> UserModel:
        return UserModel(
            id=user.id,
            email=user.email,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            email_verified=user.email_verified,
            email_verified_at=user.email_verified_at,
            is_active=user.is_active,
            deactivated_at=user.deactivated_at,
            mfa_enabled=user.mfa_enabled,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
