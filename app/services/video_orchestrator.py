"""Video generation jobs.

A job moves a video from ``processing`` to ``completed`` or ``failed``:

    segment -> enhance (optional) -> synthesize images -> assign timings -> render

Acceptance happens in the request: entitlement is checked, today's usage is
reserved with a single atomic increment and the ``processing`` row is inserted in
the same transaction. The job itself then runs as an asyncio task with its own
database session.

Every write the job makes is conditional on the row still being ``processing``.
A write that matches nothing means the video was deleted while the job ran; the
job stops there and discards whatever it produced.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.db import get_session_factory
from app.database.interfaces import UsageLedger, VideoStore
from app.database.usage_repo import usage_repository
from app.database.video_repo import video_repository
from app.models.models import SubscriptionPlan, User, Video, VideoStatus
from app.schemas.ai import ProcessingStatus
from app.schemas.scenes import Scene, load_scenes, reindex_scenes, serialize_scenes
from app.schemas.videos import DEFAULT_AI_MODEL, VideoOptions
from app.services.entitlement_service import check_entitlement
from app.services.image_synthesizer import ImageSynthesizer
from app.services.job_status import InMemoryJobStatus, JobStage, JobStatusSource
from app.services.renderer import Renderer
from app.services.scene_enhancer import SceneEnhancer
from app.services.scene_segmenter import SceneSegmenter, derive_scene_count, validate_text
from app.services.timeline import assign_timings, ensure_duration_fits
from app.utils.exceptions import AppException, ConflictException, DailyLimitExceeded

logger = logging.getLogger(__name__)

PREMIUM_ENHANCEMENT = "premiumEnhancement"
CUSTOM_AI_MODELS = "customAiModels"


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def required_feature(options: VideoOptions) -> Optional[str]:
    """Name of the plan feature ``options`` needs, if any."""
    if options.wants_enhancement:
        return PREMIUM_ENHANCEMENT
    if options.uses_custom_model:
        return CUSTOM_AI_MODELS
    return None


def default_title(text: str) -> str:
    first_line = text.strip().splitlines()[0] if text.strip() else ""
    return first_line[:60].strip() or "Untitled video"


@dataclass
class JobInput:
    text: str
    options: VideoOptions
    scenes: list[Scene] = field(default_factory=list)


class VideoJobOrchestrator:
    """Accepts video requests and drives their generation jobs."""

    def __init__(
        self,
        segmenter: SceneSegmenter,
        enhancer: SceneEnhancer,
        image_synthesizer: ImageSynthesizer,
        renderer: Renderer,
        status_source: Optional[JobStatusSource] = None,
        session_factory: Optional[Callable[[], async_sessionmaker[AsyncSession]]] = None,
        video_store: VideoStore = video_repository,
        usage_ledger: UsageLedger = usage_repository,
        today: Callable[[], date] = utc_today,
    ):
        self._segmenter = segmenter
        self._enhancer = enhancer
        self._images = image_synthesizer
        self._renderer = renderer
        self._status = status_source or InMemoryJobStatus()
        self._session_factory = session_factory or get_session_factory
        self._videos = video_store
        self._usage = usage_ledger
        self._today = today
        self._tasks: dict[uuid.UUID, asyncio.Task] = {}

    # ------------------------------------------------------------------
    # Acceptance
    # ------------------------------------------------------------------

    async def submit(
        self,
        db: AsyncSession,
        user: User,
        plan: SubscriptionPlan,
        options: VideoOptions,
        text: Optional[str] = None,
        title: Optional[str] = None,
        scenes: Optional[list[Scene]] = None,
    ) -> Video:
        """
        Accept a new video and start its job.

        Args:
            db: Request database session
            user: Owner of the new video
            plan: The owner's effective plan
            options: Requested format, resolution, duration and model
            text: Source text, required unless ``scenes`` are supplied
            title: Video title (derived from the text when omitted)
            scenes: Scenes prepared by the client; segmentation is skipped when given

        Returns:
            The new Video in ``processing`` state

        Raises:
            InsufficientInput: text too short and no scenes supplied
            EntitlementDenied: the plan does not allow the request
        """
        scenes = reindex_scenes(scenes or [])
        if scenes:
            text = (text or "").strip() or "\n".join(s.text_segment for s in scenes if s.text_segment)
        else:
            text = validate_text(text or "")
        ensure_duration_fits(len(scenes) or derive_scene_count(text), options.duration)

        today = self._today()
        usage_today = await self._usage.get_count(db, user.id, today)
        check_entitlement(plan, usage_today, options.duration, options.resolution, required_feature(options))

        reserved = await self._usage.try_increment(db, user.id, today, plan.daily_video_limit)
        if reserved is None:
            # Another request took the last slot after our read
            await db.rollback()
            raise DailyLimitExceeded(plan.daily_video_limit)

        video = Video(
            user_id=user.id,
            title=(title or "").strip() or default_title(text),
            original_text=text,
            format=options.format,
            duration=options.duration,
            resolution=options.resolution,
            ai_model=options.ai_model,
            status=VideoStatus.PROCESSING,
            sections=serialize_scenes(scenes) if scenes else None,
        )
        await self._videos.create_video(db, video)
        await db.commit()
        await db.refresh(video)
        logger.info("Accepted video %s for user %s (usage today %d/%d)", video.id, user.id, reserved, plan.daily_video_limit)

        self.start(video.id, JobInput(text=text, options=options, scenes=scenes))
        return video

    async def resume(
        self,
        video: Video,
        plan: SubscriptionPlan,
        options: VideoOptions,
        scenes: Optional[list[Scene]] = None,
    ) -> bool:
        """
        Start the job of an existing ``processing`` video without charging usage again.

        Returns:
            True if a job was started, False if one is already running

        Raises:
            ConflictException: the video already reached a terminal state
        """
        if self.is_running(video.id):
            return False
        if video.status.is_terminal:
            raise ConflictException(f"Video is already {video.status.value}")

        job_options = VideoOptions(
            format=video.format,
            resolution=video.resolution,
            duration=video.duration,
            ai_model=video.ai_model or DEFAULT_AI_MODEL,
            enhance=options.enhance,
            use_grok=options.use_grok,
        )
        check_entitlement(plan, None, job_options.duration, job_options.resolution, required_feature(job_options))

        job_scenes = reindex_scenes(scenes) if scenes else load_scenes(video.sections)
        ensure_duration_fits(len(job_scenes) or derive_scene_count(video.original_text), job_options.duration)
        self.start(video.id, JobInput(text=video.original_text, options=job_options, scenes=job_scenes))
        logger.info("Resumed job for video %s", video.id)
        return True

    # ------------------------------------------------------------------
    # Job lifecycle
    # ------------------------------------------------------------------

    def start(self, video_id: uuid.UUID, job_input: JobInput) -> asyncio.Task:
        running = self._tasks.get(video_id)
        if running is not None and not running.done():
            return running
        self._status.record(video_id, JobStage.ACCEPTED)
        task = asyncio.create_task(self.run_job(video_id, job_input), name=f"video-job-{video_id}")
        self._tasks[video_id] = task
        task.add_done_callback(lambda done: self._task_finished(video_id, done))
        return task

    def _task_finished(self, video_id: uuid.UUID, task: asyncio.Task) -> None:
        if self._tasks.get(video_id) is task:
            del self._tasks[video_id]

    @property
    def active_job_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    def is_running(self, video_id: uuid.UUID) -> bool:
        task = self._tasks.get(video_id)
        return task is not None and not task.done()

    async def wait(self, video_id: uuid.UUID) -> None:
        """Block until the job for ``video_id`` (if any) finishes."""
        task = self._tasks.get(video_id)
        if task is not None:
            await asyncio.wait({task})

    def forget(self, video_id: uuid.UUID) -> None:
        """Drop progress for a deleted video. A running job notices on its next write."""
        self._status.discard(video_id)

    async def shutdown(self) -> None:
        """Cancel running jobs. Their videos stay ``processing`` and can be resumed."""
        tasks = [task for task in self._tasks.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d running video jobs", len(tasks))
        self._tasks.clear()

    async def run_job(self, video_id: uuid.UUID, job_input: JobInput) -> None:
        """Run the pipeline for one video and persist its terminal state."""
        scenes = list(job_input.scenes)
        async with self._session_factory()() as db:
            try:
                if not scenes:
                    scenes = await self._segmenter.segment(job_input.text, derive_scene_count(job_input.text))
                self._status.record(video_id, JobStage.SEGMENTED)
                if not await self._videos.update_sections(db, video_id, serialize_scenes(scenes)):
                    self._cancelled(video_id)
                    return

                if job_input.options.wants_enhancement:
                    scenes = await self._enhance(video_id, scenes, job_input.options.use_grok)
                self._status.record(video_id, JobStage.ENHANCED)

                scenes = await self._images.synthesize_all(scenes, job_input.options.format)
                self._status.record(video_id, JobStage.IMAGES)

                scenes = assign_timings(scenes, job_input.options.duration)
                self._status.record(video_id, JobStage.TIMELINE)
                if not await self._videos.update_sections(db, video_id, serialize_scenes(scenes)):
                    self._cancelled(video_id)
                    return

                self._status.record(video_id, JobStage.RENDERING)
                result = await self._renderer.render(video_id, scenes, job_input.options)
                thumbnail_url = result.thumbnail_url or scenes[0].image_url

                if not await self._videos.mark_completed(
                    db, video_id, result.video_url, thumbnail_url, serialize_scenes(scenes), result.processing_result
                ):
                    self._cancelled(video_id)
                    return
                # The row now carries the terminal state
                self._status.discard(video_id)
                logger.info("Video %s completed", video_id)
            except AppException as exc:
                logger.warning("Video %s failed: %s (%s)", video_id, exc.message, exc.code)
                await self._fail(db, video_id, exc.message, scenes)
            except Exception:
                logger.exception("Video job %s crashed", video_id)
                await self._fail(db, video_id, "Unexpected error while generating the video", scenes)

    async def _enhance(self, video_id: uuid.UUID, scenes: list[Scene], use_premium: bool) -> list[Scene]:
        try:
            result = await self._enhancer.enhance(scenes, use_premium)
        except AppException as exc:
            logger.warning("Skipping enhancement for video %s: %s", video_id, exc.message)
            return scenes
        return result.scenes

    async def _fail(self, db: AsyncSession, video_id: uuid.UUID, message: str, scenes: list[Scene]) -> None:
        await db.rollback()
        sections = serialize_scenes(scenes) if scenes else None
        if await self._videos.mark_failed(db, video_id, message, sections):
            self._status.discard(video_id)
        else:
            self._cancelled(video_id)

    def _cancelled(self, video_id: uuid.UUID) -> None:
        logger.info("Video %s is gone or no longer processing; discarding job results", video_id)
        self._status.discard(video_id)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def processing_status(self, video: Video) -> ProcessingStatus:
        """
        Progress view for polling clients.

        Terminal videos always report their stored status with progress 100, so
        repeated reads after completion are identical.
        """
        if video.status.is_terminal:
            message = video.error_message if video.status is VideoStatus.FAILED else video.processing_result
            return ProcessingStatus(status=video.status.value, progress=100, stage=video.status.value, message=message)
        entry = self._status.get(video.id)
        if entry is None or entry.stage in (JobStage.COMPLETED, JobStage.FAILED):
            stage = "accepted" if self.is_running(video.id) else "pending"
            return ProcessingStatus(status=VideoStatus.PROCESSING.value, progress=0, stage=stage)
        return ProcessingStatus(
            status=VideoStatus.PROCESSING.value,
            progress=entry.progress,
            stage=entry.stage.value,
        )
