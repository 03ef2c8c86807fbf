"""Request/response schemas for the /ai and /grok endpoints."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.scenes import Scene
from app.schemas.videos import VideoOptions


class GenerateScenesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., max_length=20000)
    scene_count: Optional[int] = Field(None, alias="sceneCount", ge=1)


class DailyUsageInfo(BaseModel):
    count: int = Field(..., ge=0)
    limit: int = Field(..., ge=0)


class GenerateScenesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scenes: list[Scene]
    daily_usage: DailyUsageInfo = Field(..., alias="dailyUsage")


class EnhanceScenesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scenes: list[Scene] = Field(..., min_length=1, max_length=10)
    use_grok: bool = Field(False, alias="useGrok")


class EnhanceScenesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    enhanced_scenes: list[Scene] = Field(..., alias="enhancedScenes")
    model: str


class GenerateImageRequest(BaseModel):
    description: str = Field(..., min_length=1, max_length=2000)
    style: str = Field("realistic, cinematic", max_length=200)


class CreateVideoRequest(BaseModel):
    """Start (or resume) the generation job for a video.

    Without ``videoId`` a new video is created and charged against today's quota.
    """

    model_config = ConfigDict(populate_by_name=True)

    video_id: Optional[str] = Field(None, alias="videoId")
    title: Optional[str] = Field(None, max_length=200)
    text: Optional[str] = Field(None, max_length=20000)
    scenes: list[Scene] = Field(default_factory=list, max_length=10)
    video_options: VideoOptions = Field(default_factory=VideoOptions, alias="videoOptions")


class ProcessingStatus(BaseModel):
    status: str
    progress: int = Field(..., ge=0, le=100)
    stage: Optional[str] = None
    message: Optional[str] = None


class GrokSummarizeRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=20000)


class GrokAnalyzeImageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_base64: str = Field(..., min_length=1, alias="imageBase64")
