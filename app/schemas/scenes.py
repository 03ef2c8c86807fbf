"""Scene schemas shared by the AI endpoints and the video pipeline."""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from app.utils.exceptions import ValidationException


class Scene(BaseModel):
    """One timed segment of a video.

    ``id`` is the ordinal index assigned by segmentation. Scenes are serialised into
    ``Video.sections`` with ``model_dump(by_alias=True)`` so stored keys match the API.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(0, ge=0)
    text_segment: str = Field(
        "",
        validation_alias=AliasChoices("text_segment", "textSegment"),
    )
    visual_description: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("visual_description", "visualDescription"),
    )
    enhanced_description: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("enhanced_description", "enhancedDescription"),
    )
    image_url: Optional[str] = Field(
        None,
        alias="imageUrl",
        validation_alias=AliasChoices("imageUrl", "image_url"),
    )
    start_time: Optional[int] = Field(
        None,
        ge=0,
        alias="startTime",
        validation_alias=AliasChoices("startTime", "start_time"),
    )
    end_time: Optional[int] = Field(
        None,
        ge=0,
        alias="endTime",
        validation_alias=AliasChoices("endTime", "end_time"),
    )

    @property
    def prompt(self) -> str:
        """Description used for image synthesis."""
        return self.enhanced_description or self.visual_description


class SegmentedScene(BaseModel):
    """A scene as returned by the text backend, before it is indexed."""

    model_config = ConfigDict(extra="ignore")

    text_segment: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("text_segment", "textSegment", "text"),
    )
    visual_description: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("visual_description", "visualDescription", "description"),
    )


_SCENE_LIST = TypeAdapter(list[Scene])


def serialize_scenes(scenes: list[Scene]) -> list[dict]:
    return [scene.model_dump(by_alias=True) for scene in scenes]


def load_scenes(sections: Optional[list[dict[str, Any]]]) -> list[Scene]:
    """Parse stored or client-supplied sections, re-indexed in list order.

    Raises:
        ValidationException: an entry is not a valid scene
    """
    if not sections:
        return []
    try:
        scenes = _SCENE_LIST.validate_python(sections)
    except ValidationError as exc:
        raise ValidationException("Invalid scene list", details={"errors": exc.error_count()}) from exc
    return reindex_scenes(scenes)


def reindex_scenes(scenes: list[Scene]) -> list[Scene]:
    return [scene.model_copy(update={"id": index}) for index, scene in enumerate(scenes)]
