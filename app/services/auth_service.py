"""Authentication service for email/password signup and login."""

import logging
import uuid
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import create_access_token, hash_password, verify_password
from app.database.user_repo import user_repository
from app.models.models import User
from app.schemas.auth import UserResponse
from app.services.subscription_service import SubscriptionService
from app.utils.exceptions import ConflictException, ForbiddenException, UnauthorizedException

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    @staticmethod
    async def create_user(
        db: AsyncSession,
        email: str,
        password: str,
        name: Optional[str] = None,
    ) -> User:
        """Create a new user on the Free plan."""
        if await user_repository.get_user_by_email(db, email):
            raise ConflictException("An account with this email already exists")

        user = await user_repository.create_user(
            db,
            User(
                email=email.lower(),
                password_hash=hash_password(password),
                name=name or email.split("@")[0],
            ),
        )

        # Every new account starts on the free plan
        await SubscriptionService.assign_free_plan(db, user)

        await db.commit()
        await db.refresh(user)
        logger.info("Registered user %s", user.id)
        return user

    @staticmethod
    async def authenticate_email(db: AsyncSession, email: str, password: str) -> User:
        """Authenticate user with email and password."""
        user = await user_repository.get_user_by_email(db, email)

        if not user or not user.password_hash or not verify_password(password, user.password_hash):
            raise UnauthorizedException("Invalid email or password")

        if user.banned:
            raise ForbiddenException("This account has been banned")

        return user

    @staticmethod
    def generate_token(user_id: uuid.UUID, remember_me: bool = False) -> str:
        """Generate JWT token for user."""
        expires_delta = timedelta(days=30) if remember_me else None
        return create_access_token(
            data={"sub": str(user_id)},
            expires_delta=expires_delta,
        )

    @staticmethod
    def to_response(user: User) -> UserResponse:
        return UserResponse(
            id=str(user.id),
            email=user.email,
            name=user.name,
            role=user.role.value,
            banned=user.banned,
            created_at=user.created_at,
        )
