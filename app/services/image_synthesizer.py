"""Text-to-image synthesis through the Hugging Face inference API."""

import asyncio
import base64
import logging
from typing import Optional

import httpx

from app.core.config import Settings, settings
from app.models.models import VideoFormat
from app.schemas.scenes import Scene
from app.services.config_provider import ConfigProvider, ResolvedConfig, config_provider
from app.utils.exceptions import AppException, ConfigurationError, ImageSynthesisFailed

logger = logging.getLogger(__name__)

DEFAULT_STYLE = "realistic, cinematic"
NEGATIVE_PROMPT = "blurry, low quality, distorted, deformed"

_STYLE_BY_FORMAT = {
    VideoFormat.TIKTOK: "vibrant, vertical composition",
    VideoFormat.YOUTUBE_SHORTS: "vibrant, vertical composition",
    VideoFormat.INSTAGRAM: "square composition, aesthetic",
}

_ASPECT_BY_FORMAT = {
    VideoFormat.STANDARD_16_9: "16:9",
    VideoFormat.YOUTUBE_SHORTS: "9:16",
    VideoFormat.TIKTOK: "9:16",
    VideoFormat.INSTAGRAM: "1:1",
}


def style_for_format(video_format: VideoFormat) -> str:
    return _STYLE_BY_FORMAT.get(video_format, DEFAULT_STYLE)


def aspect_ratio_for_format(video_format: VideoFormat) -> str:
    return _ASPECT_BY_FORMAT.get(video_format, "16:9")


def build_image_prompt(description: str, style: str, aspect_ratio: str = "16:9") -> str:
    return f"{description.strip()}, {style}, photorealistic, high quality, {aspect_ratio} aspect ratio"


class ImageSynthesizer:
    """Generates one still per scene and returns it as a base64 data URI."""

    def __init__(
        self,
        provider: ConfigProvider = config_provider,
        defaults: Settings = settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_backoff: Optional[float] = None,
        concurrency: Optional[int] = None,
    ):
        self._provider = provider
        self._defaults = defaults
        self._transport = transport
        self._retry_backoff = defaults.EXTERNAL_RETRY_BACKOFF_SECONDS if retry_backoff is None else retry_backoff
        self._concurrency = concurrency or defaults.IMAGE_SYNTHESIS_CONCURRENCY

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._defaults.IMAGE_BACKEND_TIMEOUT_SECONDS,
            transport=self._transport,
        )

    def _endpoint(self, config: ResolvedConfig) -> tuple[str, str]:
        api_key = config.get_secret("HUGGINGFACE_API_KEY")
        if not api_key:
            raise ConfigurationError("Image backend has no API key configured")
        model = config.get_value("HUGGINGFACE_IMAGE_MODEL", self._defaults.HUGGINGFACE_IMAGE_MODEL)
        return f"{self._defaults.HUGGINGFACE_API_URL.rstrip('/')}/{model}", api_key

    async def _request(
        self,
        client: httpx.AsyncClient,
        url: str,
        api_key: str,
        prompt: str,
        scene_index: Optional[int],
    ) -> str:
        payload = {"inputs": prompt, "parameters": {"negative_prompt": NEGATIVE_PROMPT}}
        headers = {"Authorization": f"Bearer {api_key}", "Accept": "image/*"}

        for attempt in (1, 2):
            try:
                response = await client.post(url, json=payload, headers=headers)
            except httpx.TransportError as exc:
                if attempt == 1:
                    logger.warning("Image backend transport error (%s); retrying", exc)
                    await asyncio.sleep(self._retry_backoff)
                    continue
                raise ImageSynthesisFailed(scene_index, f"Image backend unreachable: {exc}") from exc

            if response.status_code >= 500 and attempt == 1:
                logger.warning("Image backend returned %s; retrying", response.status_code)
                await asyncio.sleep(self._retry_backoff)
                continue
            if response.status_code != 200:
                logger.error(
                    "Image backend returned %s: %s", response.status_code, response.text[:200]
                )
                raise ImageSynthesisFailed(scene_index, f"Image backend error {response.status_code}")

            content_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
            if not content_type.startswith("image/") or not response.content:
                raise ImageSynthesisFailed(scene_index, "Image backend did not return an image")
            encoded = base64.b64encode(response.content).decode("ascii")
            return f"data:{content_type};base64,{encoded}"

        raise ImageSynthesisFailed(scene_index)

    async def synthesize(
        self,
        description: str,
        style: str = DEFAULT_STYLE,
        scene_index: Optional[int] = None,
        aspect_ratio: str = "16:9",
    ) -> str:
        """
        Generate a single image.

        Args:
            description: Visual description of the scene
            style: Style hint appended to the prompt
            scene_index: Reported in ImageSynthesisFailed
            aspect_ratio: Aspect-ratio qualifier appended to the prompt

        Returns:
            ``data:image/...;base64,...`` URI

        Raises:
            ConfigurationError: no API key configured
            ImageSynthesisFailed: backend error after the single retry
        """
        url, api_key = self._endpoint(await self._provider.load())
        async with self._client() as client:
            return await self._request(
                client, url, api_key, build_image_prompt(description, style, aspect_ratio), scene_index
            )

    async def synthesize_all(self, scenes: list[Scene], video_format: VideoFormat) -> list[Scene]:
        """
        Fill ``image_url`` for every scene using a bounded worker pool.

        Results are returned in input order. A scene whose image fails keeps
        ``image_url`` unset.
        """
        if not scenes:
            return []
        try:
            url, api_key = self._endpoint(await self._provider.load())
        except ConfigurationError as exc:
            logger.warning("Skipping image synthesis: %s", exc.message)
            return [scene.model_copy() for scene in scenes]

        style = style_for_format(video_format)
        aspect_ratio = aspect_ratio_for_format(video_format)
        semaphore = asyncio.Semaphore(self._concurrency)

        async with self._client() as client:

            async def _one(scene: Scene) -> Scene:
                async with semaphore:
                    try:
                        image = await self._request(
                            client,
                            url,
                            api_key,
                            build_image_prompt(scene.prompt, style, aspect_ratio),
                            scene.id,
                        )
                    except AppException as exc:
                        logger.warning("Image for scene %d failed: %s", scene.id, exc.message)
                        return scene.model_copy()
                return scene.model_copy(update={"image_url": image})

            results = await asyncio.gather(*(_one(scene) for scene in scenes))

        return list(results)
