"""Video CRUD routes. Owners see their own videos; admins may read or delete any."""

from fastapi import APIRouter, status

from app.api.deps import CurrentUser, DB, Orchestrator
from app.schemas.videos import VideoCreate, VideoResponse
from app.services.video_service import VideoService
from app.utils.envelopes import api_message, api_success

router = APIRouter(prefix="/videos", tags=["videos"])


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_video(
    payload: VideoCreate,
    current_user: CurrentUser,
    db: DB,
    orchestrator: Orchestrator,
):
    video = await VideoService.create_video(db, current_user, payload, orchestrator)
    return api_success(VideoResponse.from_model(video).to_api())


@router.get("", response_model=dict)
async def list_videos(current_user: CurrentUser, db: DB):
    videos = await VideoService.list_videos(db, current_user)
    return api_success([video.to_api() for video in videos])


@router.get("/{video_id}", response_model=dict)
async def get_video(video_id: str, current_user: CurrentUser, db: DB):
    video = await VideoService.get_authorized_video(db, current_user, video_id)
    return api_success(VideoResponse.from_model(video).to_api())


@router.delete("/{video_id}", response_model=dict)
async def delete_video(
    video_id: str,
    current_user: CurrentUser,
    db: DB,
    orchestrator: Orchestrator,
):
    await VideoService.delete_video(db, current_user, video_id, orchestrator)
    return api_message("Video deleted", id=video_id)
