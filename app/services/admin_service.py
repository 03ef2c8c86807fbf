"""Back-office operations for administrators."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.database.subscription_repo import subscription_repository
from app.database.user_repo import user_repository
from app.database.video_repo import video_repository
from app.models.models import User, UserRole
from app.schemas.admin import DashboardStats
from app.schemas.auth import UserResponse
from app.schemas.videos import VideoResponse
from app.services.auth_service import AuthService
from app.services.subscription_service import SubscriptionService
from app.utils.exceptions import NotFoundException, ValidationException

logger = logging.getLogger(__name__)


class AdminService:
    """Service for admin dashboard and user management."""

    @staticmethod
    async def get_stats(db: AsyncSession) -> DashboardStats:
        return DashboardStats(
            user_count=await user_repository.count_users(db),
            video_count=await video_repository.count_videos(db),
            revenue_total=await subscription_repository.get_active_revenue_total(db),
        )

    @staticmethod
    async def list_users(db: AsyncSession) -> list[UserResponse]:
        return [AuthService.to_response(user) for user in await user_repository.list_users(db)]

    @staticmethod
    async def list_videos(db: AsyncSession) -> list[VideoResponse]:
        return [VideoResponse.from_model(video) for video in await video_repository.list_all_videos(db)]

    @staticmethod
    async def _get_user(db: AsyncSession, user_id: str) -> User:
        try:
            user = await user_repository.get_user(db, uuid.UUID(user_id))
        except ValueError:
            user = None
        if user is None:
            raise NotFoundException("User not found")
        return user

    @staticmethod
    async def update_role(db: AsyncSession, admin: User, user_id: str, role: str) -> UserResponse:
        user = await AdminService._get_user(db, user_id)
        if user.id == admin.id and role != UserRole.ADMIN.value:
            raise ValidationException("Admins cannot remove their own admin role")
        user.role = UserRole(role)
        await db.commit()
        await db.refresh(user)
        logger.info("User %s role set to %s by %s", user.id, role, admin.id)
        return AuthService.to_response(user)

    @staticmethod
    async def ban_user(db: AsyncSession, admin: User, user_id: str) -> UserResponse:
        """Flag a user as banned and deactivate their subscription. Admins cannot be banned."""
        user = await AdminService._get_user(db, user_id)
        if user.is_admin:
            raise ValidationException("Admin accounts cannot be banned")

        subscription = await subscription_repository.get_active_subscription(db, user.id)
        if subscription is not None:
            await SubscriptionService.deactivate(db, subscription)
        user.banned = True
        await db.commit()
        await db.refresh(user)
        logger.info("User %s banned by %s", user.id, admin.id)
        return AuthService.to_response(user)
