import asyncio
import base64
import json

import httpx
import pytest

from app.core.config import Settings
from app.models.models import VideoFormat
from app.schemas.scenes import Scene
from app.services.image_synthesizer import (
    NEGATIVE_PROMPT,
    ImageSynthesizer,
    build_image_prompt,
    style_for_format,
)
from app.utils.exceptions import ConfigurationError, ImageSynthesisFailed
from tests.fakes import StaticConfigProvider

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


def synthesizer(handler, api_key: str = "hf-key", concurrency: int = 4) -> ImageSynthesizer:
    settings_kwargs = {"HUGGINGFACE_API_KEY": api_key}
    return ImageSynthesizer(
        StaticConfigProvider(**settings_kwargs),
        defaults=Settings(**settings_kwargs),
        transport=httpx.MockTransport(handler),
        retry_backoff=0,
        concurrency=concurrency,
    )


def image_response() -> httpx.Response:
    return httpx.Response(200, content=PNG_BYTES, headers={"content-type": "image/png"})


def test_style_follows_the_video_format():
    assert style_for_format(VideoFormat.TIKTOK) == "vibrant, vertical composition"
    assert style_for_format(VideoFormat.INSTAGRAM) == "square composition, aesthetic"
    assert style_for_format(VideoFormat.STANDARD_16_9) == "realistic, cinematic"


def test_prompt_carries_style_and_aspect_ratio():
    prompt = build_image_prompt(" a red fox ", "vibrant", "9:16")
    assert prompt == "a red fox, vibrant, photorealistic, high quality, 9:16 aspect ratio"


async def test_synthesize_returns_a_data_uri():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return image_response()

    image = await synthesizer(handler).synthesize("a red fox")

    assert image == "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()
    body = json.loads(seen[0].content)
    assert body["inputs"].startswith("a red fox, realistic, cinematic")
    assert body["parameters"]["negative_prompt"] == NEGATIVE_PROMPT
    assert seen[0].headers["authorization"] == "Bearer hf-key"
    assert seen[0].url.path.endswith("/stabilityai/stable-diffusion-xl-base-1.0")


async def test_server_error_is_retried_once():
    responses = iter([httpx.Response(503, text="loading"), image_response()])
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return next(responses)

    image = await synthesizer(handler).synthesize("a red fox")

    assert image.startswith("data:image/png;base64,")
    assert len(calls) == 2


async def test_second_server_error_fails():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(502)

    with pytest.raises(ImageSynthesisFailed):
        await synthesizer(handler).synthesize("a red fox", scene_index=3)
    assert len(calls) == 2


async def test_client_error_is_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400, json={"error": "bad prompt"})

    with pytest.raises(ImageSynthesisFailed) as exc_info:
        await synthesizer(handler).synthesize("a red fox", scene_index=3)
    assert exc_info.value.details == {"sceneIndex": 3}
    assert len(calls) == 1


async def test_transport_error_is_retried_once():
    attempts = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["count"] += 1
        if attempts["count"] == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return image_response()

    assert (await synthesizer(handler).synthesize("a red fox")).startswith("data:image/png")
    assert attempts["count"] == 2


async def test_non_image_response_fails():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "model is loading"})

    with pytest.raises(ImageSynthesisFailed):
        await synthesizer(handler).synthesize("a red fox")


async def test_missing_key_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        await synthesizer(lambda request: image_response(), api_key="").synthesize("a red fox")


async def test_synthesize_all_preserves_order_and_isolates_failures():
    scenes = [Scene(id=i, visual_description=f"scene number {i}") for i in range(5)]

    async def handler(request: httpx.Request) -> httpx.Response:
        prompt = json.loads(request.content)["inputs"]
        index = int(prompt.split(",")[0].rsplit(" ", 1)[-1])
        # Later scenes finish first
        await asyncio.sleep((5 - index) * 0.01)
        if index == 2:
            return httpx.Response(400)
        return httpx.Response(200, content=f"img-{index}".encode(), headers={"content-type": "image/jpeg"})

    results = await synthesizer(handler, concurrency=5).synthesize_all(scenes, VideoFormat.TIKTOK)

    assert [scene.id for scene in results] == [0, 1, 2, 3, 4]
    assert results[2].image_url is None
    for index in (0, 1, 3, 4):
        encoded = base64.b64encode(f"img-{index}".encode()).decode()
        assert results[index].image_url == f"data:image/jpeg;base64,{encoded}"


async def test_synthesize_all_uses_enhanced_descriptions():
    prompts = []

    def handler(request: httpx.Request) -> httpx.Response:
        prompts.append(json.loads(request.content)["inputs"])
        return image_response()

    scene = Scene(id=0, visual_description="plain", enhanced_description="a glowing lighthouse")
    await synthesizer(handler).synthesize_all([scene], VideoFormat.INSTAGRAM)

    assert prompts == ["a glowing lighthouse, square composition, aesthetic, photorealistic, high quality, 1:1 aspect ratio"]


async def test_synthesize_all_without_key_leaves_scenes_untouched():
    scenes = [Scene(id=0, visual_description="plain")]
    results = await synthesizer(lambda request: image_response(), api_key="").synthesize_all(
        scenes, VideoFormat.STANDARD_16_9
    )
    assert results[0].image_url is None
