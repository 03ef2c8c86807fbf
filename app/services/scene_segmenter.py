"""Split source text into ordered video scenes using the default text backend."""

import json
import logging
import math
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from app.schemas.scenes import Scene, SegmentedScene
from app.services.llm_client import TextBackendFactory, text_backend_factory
from app.utils.exceptions import ExternalServiceError, InsufficientInput, SceneGenerationFailed

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 10
CHARS_PER_SCENE = 500
MIN_DERIVED_SCENES = 3
MAX_SCENES = 10

_SEGMENTED_SCENES = TypeAdapter(list[SegmentedScene])

SYSTEM_PROMPT = "You are a video content planner. You turn text into visual scenes for short videos."


def derive_scene_count(text: str, requested: Optional[int] = None) -> int:
    """Roughly one scene per 500 characters, between 3 and 10.

    An explicit ``requested`` count is honoured but clamped to ``[1, MAX_SCENES]``.
    """
    if requested is not None:
        return max(1, min(requested, MAX_SCENES))
    estimated = math.ceil(len(text.strip()) / CHARS_PER_SCENE)
    return max(MIN_DERIVED_SCENES, min(estimated, MAX_SCENES))


def validate_text(text: str) -> str:
    cleaned = (text or "").strip()
    if len(cleaned) < MIN_TEXT_LENGTH:
        raise InsufficientInput(MIN_TEXT_LENGTH)
    return cleaned


def _extract_items(payload: Any) -> Any:
    if isinstance(payload, dict):
        for key in ("scenes", "items", "data"):
            if isinstance(payload.get(key), list):
                return payload[key]
    return payload


def parse_scene_payload(content: str) -> list[SegmentedScene]:
    """
    Parse a backend reply into validated scenes.

    The whole reply is first read as JSON (object with a ``scenes`` list, or a bare
    list). If that fails, the span between the first ``[`` and the last ``]`` is
    parsed instead, which tolerates prose or code fences around the payload.

    Raises:
        SceneGenerationFailed: no parsable list, or an item missing required fields
    """
    try:
        payload = json.loads(content)
    except json.JSONDecodeError:
        start = content.find("[")
        end = content.rfind("]")
        if start < 0 or end <= start:
            raise SceneGenerationFailed("Text backend did not return a JSON scene list")
        try:
            payload = json.loads(content[start : end + 1])
        except json.JSONDecodeError as exc:
            raise SceneGenerationFailed("Text backend returned malformed scene JSON") from exc

    items = _extract_items(payload)
    if not isinstance(items, list) or not items:
        raise SceneGenerationFailed("Text backend returned no scenes")
    try:
        return _SEGMENTED_SCENES.validate_python(items)
    except ValidationError as exc:
        raise SceneGenerationFailed(
            "Text backend returned scenes that failed validation",
            details={"errors": exc.error_count()},
        ) from exc


class SceneSegmenter:
    """Calls the default text backend to partition text into scenes."""

    def __init__(self, backend_factory: TextBackendFactory = text_backend_factory):
        self._backend_factory = backend_factory

    @staticmethod
    def build_prompt(text: str, scene_count: int) -> str:
        return (
            f"Split the following text into exactly {scene_count} visual scenes, in the order the "
            "content appears. For each scene give a short visual description suitable for an "
            "image generator and the excerpt of the text it covers. Respond only with JSON of the "
            'form {"scenes": [{"visual_description": "...", "text_segment": "..."}]}.\n\n'
            f"Text:\n{text}"
        )

    async def segment(self, text: str, scene_count: int) -> list[Scene]:
        """
        Split ``text`` into ``scene_count`` ordered scenes.

        Args:
            text: Source text (at least 10 characters after trimming)
            scene_count: Number of scenes to ask for

        Returns:
            Scenes indexed from 0 in source order

        Raises:
            InsufficientInput: text too short
            SceneGenerationFailed: backend failure or unusable reply
        """
        cleaned = validate_text(text)
        backend = await self._backend_factory.default()
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": self.build_prompt(cleaned, scene_count)},
        ]
        try:
            content = await backend.complete(messages, temperature=0.7, json_mode=True)
        except ExternalServiceError as exc:
            logger.warning("Scene segmentation call failed: %s", exc.message)
            raise SceneGenerationFailed(exc.message, details=exc.details) from exc

        segmented = parse_scene_payload(content)
        if len(segmented) != scene_count:
            logger.info("Asked for %d scenes, backend returned %d", scene_count, len(segmented))
        if len(segmented) > MAX_SCENES:
            segmented = segmented[:MAX_SCENES]

        return [
            Scene(id=index, text_segment=item.text_segment, visual_description=item.visual_description)
            for index, item in enumerate(segmented)
        ]
