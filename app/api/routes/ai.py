"""AI pipeline routes: scene generation, enhancement, images and video jobs."""

from fastapi import APIRouter, status

from app.api.deps import CurrentUser, DB, Enhancer, Images, Orchestrator, Segmenter
from app.database.usage_repo import usage_repository
from app.schemas.ai import (
    CreateVideoRequest,
    DailyUsageInfo,
    EnhanceScenesRequest,
    EnhanceScenesResponse,
    GenerateImageRequest,
    GenerateScenesRequest,
    GenerateScenesResponse,
)
from app.schemas.scenes import reindex_scenes
from app.schemas.videos import VideoResponse
from app.services.entitlement_service import check_entitlement
from app.services.scene_segmenter import derive_scene_count, validate_text
from app.services.subscription_service import SubscriptionService
from app.services.video_orchestrator import PREMIUM_ENHANCEMENT, utc_today
from app.services.video_service import VideoService
from app.utils.envelopes import api_success

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/generate-scenes", response_model=dict)
async def generate_scenes(
    payload: GenerateScenesRequest,
    current_user: CurrentUser,
    db: DB,
    segmenter: Segmenter,
):
    """Split text into scenes. Does not consume the daily quota."""
    text = validate_text(payload.text)

    plan = await SubscriptionService.get_effective_plan(db, current_user)
    usage_today = await usage_repository.get_count(db, current_user.id, utc_today())
    check_entitlement(plan, usage_today)

    scenes = await segmenter.segment(text, derive_scene_count(text, payload.scene_count))
    response = GenerateScenesResponse(
        scenes=scenes,
        daily_usage=DailyUsageInfo(count=usage_today, limit=plan.daily_video_limit),
    )
    return api_success(response.model_dump(by_alias=True))


@router.post("/enhance-scenes", response_model=dict)
async def enhance_scenes(
    payload: EnhanceScenesRequest,
    current_user: CurrentUser,
    db: DB,
    enhancer: Enhancer,
):
    """Rewrite scene descriptions. Only paid plans may enhance scenes."""
    plan = await SubscriptionService.get_effective_plan(db, current_user)
    check_entitlement(plan, custom_feature=PREMIUM_ENHANCEMENT)

    result = await enhancer.enhance(reindex_scenes(payload.scenes), payload.use_grok)
    response = EnhanceScenesResponse(enhanced_scenes=result.scenes, model=result.model)
    return api_success(response.model_dump(by_alias=True))


@router.post("/generate-image", response_model=dict)
async def generate_image(
    payload: GenerateImageRequest,
    current_user: CurrentUser,
    images: Images,
):
    image_url = await images.synthesize(payload.description, payload.style)
    return api_success({"imageUrl": image_url})


@router.post("/create-video", response_model=dict, status_code=status.HTTP_202_ACCEPTED)
async def create_video(
    payload: CreateVideoRequest,
    current_user: CurrentUser,
    db: DB,
    orchestrator: Orchestrator,
):
    """
    Start a video job.

    Without ``videoId`` a new video is created and charged against today's quota.
    With ``videoId`` the job of an existing processing video is (re)started without
    charging again; a video that already finished yields 409.
    """
    plan = await SubscriptionService.get_effective_plan(db, current_user)

    if payload.video_id:
        video = await VideoService.get_authorized_video(db, current_user, payload.video_id)
        started = await orchestrator.resume(video, plan, payload.video_options, payload.scenes)
        message = "Video processing started" if started else "Video is already being processed"
    else:
        video = await orchestrator.submit(
            db,
            current_user,
            plan,
            payload.video_options,
            text=payload.text,
            title=payload.title,
            scenes=payload.scenes,
        )
        message = "Video processing started"

    return api_success(
        {
            "message": message,
            "video": VideoResponse.from_model(video).to_api(),
            "processingResult": orchestrator.processing_status(video).model_dump(),
        }
    )


@router.get("/video-status/{video_id}", response_model=dict)
async def video_status(
    video_id: str,
    current_user: CurrentUser,
    db: DB,
    orchestrator: Orchestrator,
):
    """Idempotent status read for polling clients."""
    video = await VideoService.get_authorized_video(db, current_user, video_id)
    return api_success(
        {
            "video": VideoResponse.from_model(video).to_api(),
            "processingStatus": orchestrator.processing_status(video).model_dump(),
        }
    )
