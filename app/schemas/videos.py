"""Video schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.models import Resolution, Video, VideoFormat

DEFAULT_AI_MODEL = "stable_diffusion_xl"


class VideoOptions(BaseModel):
    """Rendering options requested for a video."""

    model_config = ConfigDict(populate_by_name=True)

    format: VideoFormat = VideoFormat.STANDARD_16_9
    resolution: Resolution = Resolution.HD
    duration: int = Field(60, ge=1, le=3600, description="Target duration in seconds")
    ai_model: str = Field(DEFAULT_AI_MODEL, alias="aiModel", min_length=1, max_length=64)
    enhance: bool = Field(False, description="Rewrite scene descriptions before image synthesis")
    use_grok: bool = Field(False, alias="useGrok", description="Prefer the premium enhancement backend")

    @property
    def wants_enhancement(self) -> bool:
        return self.enhance or self.use_grok

    @property
    def uses_custom_model(self) -> bool:
        return self.ai_model != DEFAULT_AI_MODEL


class VideoCreate(BaseModel):
    """Body of POST /videos."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=200)
    original_text: str = Field(..., alias="originalText", max_length=20000)
    format: VideoFormat = VideoFormat.STANDARD_16_9
    resolution: Resolution = Resolution.HD
    duration: int = Field(60, ge=1, le=3600)
    ai_model: str = Field(DEFAULT_AI_MODEL, alias="aiModel", min_length=1, max_length=64)
    use_grok: bool = Field(False, alias="useGrok")
    sections: Optional[list[dict[str, Any]]] = None

    def to_options(self) -> VideoOptions:
        return VideoOptions(
            format=self.format,
            resolution=self.resolution,
            duration=self.duration,
            ai_model=self.ai_model,
            use_grok=self.use_grok,
        )


class VideoResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(..., alias="userId")
    title: str
    original_text: str = Field(..., alias="originalText")
    format: str
    duration: int
    resolution: str
    ai_model: Optional[str] = Field(None, alias="aiModel")
    status: str
    video_url: Optional[str] = Field(None, alias="videoUrl")
    thumbnail_url: Optional[str] = Field(None, alias="thumbnailUrl")
    error_message: Optional[str] = Field(None, alias="errorMessage")
    sections: Optional[list[dict[str, Any]]] = None
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_model(cls, video: Video) -> "VideoResponse":
        return cls(
            id=str(video.id),
            user_id=str(video.user_id),
            title=video.title,
            original_text=video.original_text,
            format=video.format.value,
            duration=video.duration,
            resolution=video.resolution.value,
            ai_model=video.ai_model,
            status=video.status.value,
            video_url=video.video_url,
            thumbnail_url=video.thumbnail_url,
            error_message=video.error_message,
            sections=video.sections,
            created_at=video.created_at,
        )

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
