import asyncio

import httpx
import pytest

from app.clients.status_poller import PollTimeout, VideoStatusPoller
from tests.conftest import LONG_TEXT, auth_headers


def status_payload(status: str, progress: int) -> dict:
    return {
        "success": True,
        "data": {
            "video": {"id": "vid-1", "status": status},
            "processingStatus": {"status": status, "progress": progress, "stage": status, "message": None},
        },
        "error": None,
    }


def scripted_server(statuses):
    remaining = list(statuses)
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        status, progress = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        return httpx.Response(200, json=status_payload(status, progress))

    return handler, requests


async def test_polls_until_completed():
    handler, requests = scripted_server([("processing", 20), ("processing", 90), ("completed", 100)])
    sleeps: list[float] = []

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    updates = []
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test") as client:
        poller = VideoStatusPoller(client, token="tok", interval=5.0, sleep=fake_sleep)
        final = await poller.wait_for_terminal("vid-1", on_update=updates.append)

    assert final["processingStatus"]["status"] == "completed"
    assert [u["processingStatus"]["progress"] for u in updates] == [20, 90, 100]
    assert sleeps == [5.0, 5.0]
    assert requests[0].url.path == "/api/ai/video-status/vid-1"
    assert requests[0].headers["authorization"] == "Bearer tok"


async def test_failed_is_terminal():
    handler, requests = scripted_server([("failed", 100)])
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test") as client:
        final = await VideoStatusPoller(client).wait_for_terminal("vid-1")
    assert final["video"]["status"] == "failed"
    assert len(requests) == 1


async def test_gives_up_after_the_timeout():
    handler, _ = scripted_server([("processing", 40)])

    async def no_sleep(delay: float) -> None:
        return None

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test") as client:
        poller = VideoStatusPoller(client, interval=1.0, timeout=0.0, sleep=no_sleep)
        with pytest.raises(PollTimeout) as exc_info:
            await poller.wait_for_terminal("vid-1")

    assert exc_info.value.last["processingStatus"]["progress"] == 40


async def test_error_responses_raise():
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(404, json={"success": False})),
        base_url="http://test",
    ) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await VideoStatusPoller(client).poll_once("missing")


def test_jitter_stays_within_bounds():
    poller = VideoStatusPoller(httpx.AsyncClient(), interval=2.0, jitter=0.5)
    for _ in range(20):
        assert 2.0 <= poller.next_delay() <= 2.5


async def test_polls_the_real_status_endpoint(client, make_user, orchestrator):
    user = await make_user()
    created = await client.post(
        "/api/ai/create-video", json={"text": LONG_TEXT, "videoOptions": {"duration": 12}}, headers=auth_headers(user)
    )
    video_id = created.json()["data"]["video"]["id"]
    token = auth_headers(user)["Authorization"].split(" ", 1)[1]

    async def yield_to_job(delay: float) -> None:
        await asyncio.sleep(0.01)

    poller = VideoStatusPoller(client, token=token, interval=0.01, sleep=yield_to_job)
    final = await poller.wait_for_terminal(video_id)

    assert final["video"]["status"] == "completed"
    assert final["processingStatus"]["progress"] == 100
