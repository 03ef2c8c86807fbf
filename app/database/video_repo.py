"""Video repository for database operations."""

import uuid
from typing import Any, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import Video, VideoStatus


class VideoRepository:
    """Repository for video database operations."""

    @staticmethod
    async def create_video(db: AsyncSession, video: Video) -> Video:
        """
        Stage a new video row. The caller commits, so the usage increment and
        the insert land in the same transaction.

        Args:
            db: Database session
            video: Video object to insert

        Returns:
            The Video with its generated ID
        """
        db.add(video)
        await db.flush()
        return video

    @staticmethod
    async def get_video(db: AsyncSession, video_id: uuid.UUID) -> Optional[Video]:
        return await db.get(Video, video_id, populate_existing=True)

    @staticmethod
    async def list_user_videos(db: AsyncSession, user_id: uuid.UUID) -> list[Video]:
        """Fetch a user's videos, newest first."""
        result = await db.execute(
            select(Video).where(Video.user_id == user_id).order_by(Video.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_all_videos(db: AsyncSession) -> list[Video]:
        result = await db.execute(select(Video).order_by(Video.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def count_videos(db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(Video))
        return result.scalar_one()

    @staticmethod
    async def update_sections(
        db: AsyncSession, video_id: uuid.UUID, sections: list[dict[str, Any]]
    ) -> bool:
        """Persist intermediate scenes while the job is still processing."""
        result = await db.execute(
            update(Video)
            .where(Video.id == video_id, Video.status == VideoStatus.PROCESSING)
            .values(sections=sections)
            .returning(Video.id)
            .execution_options(synchronize_session=False)
        )
        row = result.scalar_one_or_none()
        await db.commit()
        return row is not None

    @staticmethod
    async def mark_completed(
        db: AsyncSession,
        video_id: uuid.UUID,
        video_url: str,
        thumbnail_url: Optional[str],
        sections: list[dict[str, Any]],
        processing_result: Optional[str] = None,
    ) -> bool:
        """
        Move a video from processing to completed.

        The WHERE clause only matches a row that still exists and is still
        processing, so a deleted or already-terminal video is never rewritten.

        Args:
            db: Database session
            video_id: UUID of the video
            video_url: Rendered video location
            thumbnail_url: Thumbnail location (may be None)
            sections: Serialised scenes
            processing_result: Completion note shown to polling clients

        Returns:
            True if the row transitioned, False otherwise
        """
        result = await db.execute(
            update(Video)
            .where(Video.id == video_id, Video.status == VideoStatus.PROCESSING)
            .values(
                status=VideoStatus.COMPLETED,
                video_url=video_url,
                thumbnail_url=thumbnail_url,
                sections=sections,
                processing_result=processing_result,
            )
            .returning(Video.id)
            .execution_options(synchronize_session=False)
        )
        row = result.scalar_one_or_none()
        await db.commit()
        return row is not None

    @staticmethod
    async def mark_failed(
        db: AsyncSession,
        video_id: uuid.UUID,
        error_message: str,
        sections: Optional[list[dict[str, Any]]] = None,
    ) -> bool:
        """Move a video from processing to failed. Title and text are left untouched."""
        values: dict[str, Any] = {"status": VideoStatus.FAILED, "error_message": error_message}
        if sections is not None:
            values["sections"] = sections
        result = await db.execute(
            update(Video)
            .where(Video.id == video_id, Video.status == VideoStatus.PROCESSING)
            .values(**values)
            .returning(Video.id)
            .execution_options(synchronize_session=False)
        )
        row = result.scalar_one_or_none()
        await db.commit()
        return row is not None

    @staticmethod
    async def delete_video(db: AsyncSession, video_id: uuid.UUID) -> bool:
        result = await db.execute(
            delete(Video).where(Video.id == video_id).execution_options(synchronize_session=False)
        )
        await db.commit()
        return result.rowcount > 0


video_repository = VideoRepository()
