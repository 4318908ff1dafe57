"""
Identity Store

Registration and login. Both return a freshly issued access token; the
token is the only credential the rest of the API accepts.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from food_api.core.config import Settings
from food_api.core.errors import ConflictError, InvalidCredentialsError, NotFoundError, ValidationError
from food_api.core.security import create_token, hash_password, verify_password
from food_api.models import User, UserRole

logger = logging.getLogger(__name__)


class UserService:
    """User accounts backed by the users table."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
    ) -> tuple[User, str]:
        """
        Create an account and log it in.

        Raises:
            ValidationError: Password shorter than the configured minimum
            ConflictError: Email already registered
        """
        email = email.strip().lower()

        if len(password) < self.settings.password_min_length:
            raise ValidationError(
                f"Please enter a strong password "
                f"(at least {self.settings.password_min_length} characters)"
            )

        if await self.get_by_email(email) is not None:
            raise ConflictError("User already exists")

        hashed = await asyncio.to_thread(hash_password, password)
        user = User(name=name, email=email, password=hashed, role=role, cart_data={})
        self.db.add(user)

        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            await self.db.rollback()
            raise ConflictError("User already exists")

        logger.info(f"Registered {role.value} {user.id}")
        return user, create_token(user.id, self.settings)

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """
        Check credentials and issue a token.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
        """
        user = await self.get_by_email(email)
        if user is None:
            logger.info("Login attempt for unknown email")
            raise InvalidCredentialsError()

        if not await asyncio.to_thread(verify_password, password, user.password):
            logger.info(f"Wrong password for user {user.id}")
            raise InvalidCredentialsError()

        return user, create_token(user.id, self.settings)

    async def promote(self, email: str) -> User:
        """Grant the admin role to an existing account."""
        user = await self.get_by_email(email)
        if user is None:
            raise NotFoundError("No account with that email")
        user.role = UserRole.ADMIN
        await self.db.commit()
        logger.info(f"Promoted user {user.id} to admin")
        return user
