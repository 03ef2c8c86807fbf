"""Rewrite scene descriptions into richer image prompts."""

import logging
from dataclasses import dataclass

import openai

from app.schemas.scenes import Scene
from app.services.llm_client import TextBackend, TextBackendFactory, text_backend_factory
from app.utils.exceptions import ConfigurationError, ExternalServiceError

logger = logging.getLogger(__name__)

ENHANCE_MAX_TOKENS = 200
ENHANCE_TEMPERATURE = 0.7


@dataclass
class EnhancementResult:
    scenes: list[Scene]
    model: str
    fell_back: bool = False


def build_enhancement_prompt(scene: Scene) -> str:
    return (
        "Write a high quality visual description for this video scene. Make it more vivid, "
        "striking and visually rich than the original.\n\n"
        f'Original visual description: "{scene.visual_description}"\n\n'
        f'Related text: "{scene.text_segment}"\n\n'
        "The new description should cover:\n"
        "1. The visual elements in detail\n"
        "2. Colour, lighting and perspective\n"
        "3. The emotional or dramatic effect of the scene\n\n"
        "Limit the answer to 100-150 words."
    )


class SceneEnhancer:
    """Enhances each scene independently with the selected text backend."""

    def __init__(self, backend_factory: TextBackendFactory = text_backend_factory):
        self._backend_factory = backend_factory

    async def select_backend(self, use_premium: bool) -> tuple[TextBackend, bool]:
        """
        Pick the backend for one batch.

        Returns:
            (backend, fell_back) where fell_back is True when premium was requested
            but the default backend was chosen
        """
        if use_premium:
            try:
                return await self._backend_factory.premium(), False
            except ConfigurationError as exc:
                logger.warning("Premium enhancement unavailable (%s); falling back to default backend", exc.message)
                return await self._backend_factory.default(), True
            except openai.OpenAIError as exc:
                logger.warning("Premium backend client could not be built (%s); falling back to default backend", exc)
                return await self._backend_factory.default(), True
        return await self._backend_factory.default(), False

    async def enhance(self, scenes: list[Scene], use_premium: bool = False) -> EnhancementResult:
        """
        Return a copy of ``scenes`` with ``enhanced_description`` filled in.

        Order and count always match the input. A scene whose backend call fails is
        returned unchanged.

        Raises:
            ConfigurationError: the default backend itself is not configured
        """
        backend, fell_back = await self.select_backend(use_premium)

        enhanced: list[Scene] = []
        failures = 0
        for scene in scenes:
            messages = [{"role": "user", "content": build_enhancement_prompt(scene)}]
            try:
                text = await backend.complete(
                    messages, temperature=ENHANCE_TEMPERATURE, max_tokens=ENHANCE_MAX_TOKENS
                )
            except ExternalServiceError as exc:
                failures += 1
                logger.warning("Enhancement of scene %d failed on %s: %s", scene.id, backend.name, exc.message)
                enhanced.append(scene.model_copy())
                continue
            enhanced.append(scene.model_copy(update={"enhanced_description": text.strip()}))

        if failures:
            logger.info("Enhanced %d/%d scenes with %s", len(scenes) - failures, len(scenes), backend.model)
        return EnhancementResult(scenes=enhanced, model=backend.model, fell_back=fell_back)
