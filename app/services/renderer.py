"""Rendering collaborator.

Real encoding is out of scope: ``SimulatedRenderer`` waits for a fixed delay and
returns a CDN-style URL. When a Gemini key is configured it also asks Gemini for a
short completion note; that call is best effort and never fails the render.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from app.core.config import Settings, settings
from app.schemas.scenes import Scene
from app.schemas.videos import VideoOptions
from app.services.config_provider import ConfigProvider, config_provider

logger = logging.getLogger(__name__)

CANNED_NOTE = "Video processing completed successfully and the video is ready to use."


@dataclass
class RenderResult:
    video_url: str
    thumbnail_url: Optional[str] = None
    processing_result: Optional[str] = None


class Renderer(Protocol):
    async def render(self, video_id: uuid.UUID, scenes: list[Scene], options: VideoOptions) -> RenderResult: ...


class SimulatedRenderer:
    def __init__(
        self,
        provider: ConfigProvider = config_provider,
        defaults: Settings = settings,
        delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._provider = provider
        self._defaults = defaults
        self._delay = defaults.RENDER_SIMULATION_DELAY_SECONDS if delay is None else delay
        self._transport = transport

    async def render(self, video_id: uuid.UUID, scenes: list[Scene], options: VideoOptions) -> RenderResult:
        logger.info(
            "Rendering video %s (%s, %s, %ss, %d scenes)",
            video_id,
            options.format.value,
            options.resolution.value,
            options.duration,
            len(scenes),
        )
        await asyncio.sleep(self._delay)
        note = await self._processing_note(scenes, options)
        base = self._defaults.CDN_BASE_URL.rstrip("/")
        return RenderResult(video_url=f"{base}/videos/{video_id}.mp4", processing_result=note)

    async def _processing_note(self, scenes: list[Scene], options: VideoOptions) -> str:
        config = await self._provider.load()
        api_key = config.get_secret("GEMINI_API_KEY")
        if not api_key:
            return CANNED_NOTE

        body = {
            "contents": [
                {
                    "parts": [
                        {
                            "text": (
                                "Video generation finished. Summarise it for the user in one short paragraph.\n"
                                f"- Format: {options.format.value}\n"
                                f"- Resolution: {options.resolution.value}\n"
                                f"- Duration: {options.duration} seconds\n"
                                f"- Scenes: {len(scenes)}"
                            )
                        }
                    ]
                }
            ],
            "generationConfig": {"temperature": 0.2, "maxOutputTokens": 200},
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._defaults.TEXT_BACKEND_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.post(self._defaults.GEMINI_API_URL, params={"key": api_key}, json=body)
                response.raise_for_status()
                return response.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("Gemini processing note unavailable: %s", exc)
            return CANNED_NOTE
