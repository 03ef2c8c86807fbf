"""Video CRUD with owner/admin authorization."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.database.video_repo import video_repository
from app.models.models import User, Video
from app.schemas.scenes import load_scenes
from app.schemas.videos import VideoCreate, VideoResponse
from app.services.subscription_service import SubscriptionService
from app.services.video_orchestrator import VideoJobOrchestrator
from app.utils.exceptions import ForbiddenException, NotFoundException

logger = logging.getLogger(__name__)


class VideoService:
    """Service for video operations."""

    @staticmethod
    def parse_video_id(video_id: str) -> uuid.UUID:
        try:
            return uuid.UUID(str(video_id))
        except ValueError:
            raise NotFoundException("Video not found")

    @staticmethod
    async def get_authorized_video(db: AsyncSession, user: User, video_id: str) -> Video:
        """
        Fetch a video the user may access.

        Owners can access their own videos; admins can access any video.

        Raises:
            NotFoundException: no such video
            ForbiddenException: the video belongs to someone else
        """
        video = await video_repository.get_video(db, VideoService.parse_video_id(video_id))
        if video is None:
            raise NotFoundException("Video not found")
        if video.user_id != user.id and not user.is_admin:
            raise ForbiddenException("You do not have access to this video")
        return video

    @staticmethod
    async def list_videos(db: AsyncSession, user: User) -> list[VideoResponse]:
        videos = await video_repository.list_user_videos(db, user.id)
        return [VideoResponse.from_model(video) for video in videos]

    @staticmethod
    async def create_video(
        db: AsyncSession,
        user: User,
        payload: VideoCreate,
        orchestrator: VideoJobOrchestrator,
    ) -> Video:
        plan = await SubscriptionService.get_effective_plan(db, user)
        return await orchestrator.submit(
            db,
            user,
            plan,
            payload.to_options(),
            text=payload.original_text,
            title=payload.title,
            scenes=load_scenes(payload.sections),
        )

    @staticmethod
    async def delete_video(
        db: AsyncSession,
        user: User,
        video_id: str,
        orchestrator: VideoJobOrchestrator,
    ) -> None:
        video = await VideoService.get_authorized_video(db, user, video_id)
        await video_repository.delete_video(db, video.id)
        orchestrator.forget(video.id)
        logger.info("Video %s deleted by %s", video.id, user.id)
