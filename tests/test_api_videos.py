import asyncio
import uuid

from sqlalchemy import func, select

from app.core.db import get_session_factory
from app.database.usage_repo import usage_repository
from app.models.models import UserRole, Video
from app.services.video_orchestrator import utc_today
from tests.conftest import LONG_TEXT, auth_headers


async def video_count() -> int:
    async with get_session_factory()() as db:
        return (await db.execute(select(func.count()).select_from(Video))).scalar_one()


async def usage_today(user) -> int:
    async with get_session_factory()() as db:
        return await usage_repository.get_count(db, user.id, utc_today())


async def create_video(client, user, **body):
    payload = {"text": LONG_TEXT, "videoOptions": {"duration": 30}}
    payload.update(body)
    return await client.post("/api/ai/create-video", json=payload, headers=auth_headers(user))


async def poll(client, user, video_id):
    response = await client.get(f"/api/ai/video-status/{video_id}", headers=auth_headers(user))
    assert response.status_code == 200
    return response.json()["data"]


async def test_create_video_requires_authentication(client):
    response = await client.post("/api/ai/create-video", json={"text": LONG_TEXT})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


async def test_video_completes_and_status_is_stable(client, make_user, orchestrator, renderer):
    user = await make_user()
    renderer.gate.clear()

    response = await create_video(client, user, title="Lighthouse")
    assert response.status_code == 202
    data = response.json()["data"]
    assert data["video"]["status"] == "processing"
    assert data["video"]["title"] == "Lighthouse"
    video_id = data["video"]["id"]

    await asyncio.wait_for(renderer.started.wait(), timeout=5)
    for _ in range(2):
        status = await poll(client, user, video_id)
        assert status["video"]["status"] == "processing"
        assert status["processingStatus"]["stage"] == "rendering"
        assert status["video"]["videoUrl"] is None

    renderer.gate.set()
    await orchestrator.wait(uuid.UUID(video_id))

    first = await poll(client, user, video_id)
    second = await poll(client, user, video_id)
    assert first["video"]["status"] == "completed"
    assert first["video"]["videoUrl"] == f"https://cdn.test/videos/{video_id}.mp4"
    assert first["processingStatus"] == {
        "status": "completed",
        "progress": 100,
        "stage": "completed",
        "message": "Rendered in tests",
    }
    assert second == first

    sections = first["video"]["sections"]
    assert [scene["id"] for scene in sections] == list(range(len(sections)))
    assert sections[0]["startTime"] == 0
    assert sections[-1]["endTime"] == 30
    assert all(scene["imageUrl"] for scene in sections)
    assert first["video"]["thumbnailUrl"] == sections[0]["imageUrl"]
    assert await usage_today(user) == 1


async def test_daily_limit_rejects_without_side_effects(client, make_user):
    user = await make_user(plan_code="free")
    async with get_session_factory()() as db:
        await usage_repository.increment(db, user.id, utc_today())
        await usage_repository.increment(db, user.id, utc_today())
        await db.commit()

    response = await create_video(client, user)

    assert response.status_code == 403
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "DAILY_LIMIT_EXCEEDED"
    assert body["error"]["details"] == {"limit": 2}
    assert await video_count() == 0
    assert await usage_today(user) == 2


async def test_plan_limits_are_enforced(client, make_user):
    user = await make_user(plan_code="free")

    too_long = await create_video(client, user, videoOptions={"duration": 120})
    assert too_long.status_code == 403
    assert too_long.json()["error"]["code"] == "DURATION_EXCEEDED"

    too_sharp = await create_video(client, user, videoOptions={"duration": 30, "resolution": "1080p"})
    assert too_sharp.json()["error"]["code"] == "RESOLUTION_NOT_ALLOWED"

    custom = await create_video(client, user, videoOptions={"duration": 30, "aiModel": "flux"})
    assert custom.json()["error"]["details"] == {"feature": "customAiModels"}

    assert await video_count() == 0
    assert await usage_today(user) == 0


async def test_unknown_resolution_is_a_validation_error(client, make_user):
    user = await make_user()
    response = await create_video(client, user, videoOptions={"duration": 30, "resolution": "8K"})
    assert response.status_code == 422


async def test_short_text_is_rejected(client, make_user):
    user = await make_user()
    response = await create_video(client, user, text="tiny")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INSUFFICIENT_INPUT"
    assert await usage_today(user) == 0


async def test_client_scenes_skip_segmentation(client, make_user, orchestrator, default_backend):
    user = await make_user()
    scenes = [
        {"id": 7, "visual_description": "a storm over the sea", "text_segment": "The storm came."},
        {"id": 3, "visual_description": "a bell ringing", "text_segment": "He rang the bell."},
    ]

    response = await create_video(client, user, text=None, scenes=scenes)
    video_id = response.json()["data"]["video"]["id"]
    await orchestrator.wait(uuid.UUID(video_id))

    status = await poll(client, user, video_id)
    assert default_backend.calls == []
    assert [s["visual_description"] for s in status["video"]["sections"]] == [
        "a storm over the sea",
        "a bell ringing",
    ]
    assert [s["id"] for s in status["video"]["sections"]] == [0, 1]


async def test_failed_segmentation_marks_the_video_failed(client, make_user, orchestrator, default_backend):
    user = await make_user()
    default_backend.reply = "no scenes here"

    response = await create_video(client, user, title="Broken")
    video_id = response.json()["data"]["video"]["id"]
    await orchestrator.wait(uuid.UUID(video_id))

    status = await poll(client, user, video_id)
    assert status["video"]["status"] == "failed"
    assert status["video"]["errorMessage"]
    assert status["video"]["title"] == "Broken"
    assert status["video"]["originalText"] == LONG_TEXT.strip()
    assert status["processingStatus"]["progress"] == 100
    assert status["processingStatus"]["message"] == status["video"]["errorMessage"]


async def test_enhancement_failure_does_not_fail_the_video(
    client, make_user, orchestrator, premium_backend
):
    user = await make_user(plan_code="pro")
    premium_backend.fail_calls = {0}

    response = await create_video(client, user, videoOptions={"duration": 30, "useGrok": True})
    video_id = response.json()["data"]["video"]["id"]
    await orchestrator.wait(uuid.UUID(video_id))

    sections = (await poll(client, user, video_id))["video"]["sections"]
    assert sections[0]["enhanced_description"] is None
    assert all(s["enhanced_description"] == "a vivid premium description" for s in sections[1:])


async def test_other_users_cannot_read_a_video(client, make_user, orchestrator):
    owner = await make_user()
    stranger = await make_user()
    admin = await make_user(role=UserRole.ADMIN)

    video_id = (await create_video(client, owner)).json()["data"]["video"]["id"]
    await orchestrator.wait(uuid.UUID(video_id))

    forbidden = await client.get(f"/api/videos/{video_id}", headers=auth_headers(stranger))
    assert forbidden.status_code == 403
    status = await client.get(f"/api/ai/video-status/{video_id}", headers=auth_headers(stranger))
    assert status.status_code == 403

    allowed = await client.get(f"/api/videos/{video_id}", headers=auth_headers(admin))
    assert allowed.status_code == 200


async def test_unknown_video_is_not_found(client, make_user):
    user = await make_user()
    missing = await client.get(f"/api/videos/{uuid.uuid4()}", headers=auth_headers(user))
    garbage = await client.get("/api/videos/not-a-uuid", headers=auth_headers(user))
    assert missing.status_code == 404
    assert garbage.status_code == 404


async def test_deleting_a_running_video_discards_the_job(client, make_user, orchestrator, renderer):
    user = await make_user()
    renderer.gate.clear()

    video_id = (await create_video(client, user)).json()["data"]["video"]["id"]
    await asyncio.wait_for(renderer.started.wait(), timeout=5)

    deleted = await client.delete(f"/api/videos/{video_id}", headers=auth_headers(user))
    assert deleted.status_code == 200
    assert deleted.json()["data"] == {"message": "Video deleted", "id": video_id}

    renderer.gate.set()
    await orchestrator.wait(uuid.UUID(video_id))

    assert await video_count() == 0
    gone = await client.get(f"/api/ai/video-status/{video_id}", headers=auth_headers(user))
    assert gone.status_code == 404
    # Deletion does not refund the quota
    assert await usage_today(user) == 1


async def test_resume_does_not_charge_again(client, make_user, orchestrator, renderer):
    user = await make_user(plan_code="pro")
    renderer.gate.clear()

    video_id = (await create_video(client, user)).json()["data"]["video"]["id"]
    await asyncio.wait_for(renderer.started.wait(), timeout=5)

    again = await create_video(client, user, videoId=video_id)
    assert again.status_code == 202
    assert again.json()["data"]["message"] == "Video is already being processed"

    renderer.gate.set()
    await orchestrator.wait(uuid.UUID(video_id))

    finished = await create_video(client, user, videoId=video_id)
    assert finished.status_code == 409
    assert await usage_today(user) == 1


async def test_post_videos_creates_and_lists(client, make_user, orchestrator):
    user = await make_user()
    created = await client.post(
        "/api/videos",
        json={"title": "Harbour", "originalText": LONG_TEXT, "duration": 20},
        headers=auth_headers(user),
    )
    assert created.status_code == 201
    video_id = created.json()["data"]["id"]
    await orchestrator.wait(uuid.UUID(video_id))

    listed = await client.get("/api/videos", headers=auth_headers(user))
    assert [video["id"] for video in listed.json()["data"]] == [video_id]
    assert listed.json()["data"][0]["status"] == "completed"


async def test_scene_order_survives_out_of_order_images(client, make_user, orchestrator, image_synthesizer):
    user = await make_user()
    image_synthesizer.delays = {0: 0.05, 1: 0.02, 2: 0.0}

    video_id = (await create_video(client, user)).json()["data"]["video"]["id"]
    await orchestrator.wait(uuid.UUID(video_id))

    sections = (await poll(client, user, video_id))["video"]["sections"]
    assert image_synthesizer.completion_order == [2, 1, 0]
    assert [s["id"] for s in sections] == [0, 1, 2]
    assert [s["text_segment"] for s in sections] == ["segment 0", "segment 1", "segment 2"]
    assert [s["imageUrl"] for s in sections] == [f"https://img.test/{i}.png" for i in range(3)]


async def test_free_plan_cannot_request_enhancement(client, make_user):
    user = await make_user(plan_code="free")

    response = await create_video(client, user, videoOptions={"duration": 30, "enhance": True})

    assert response.status_code == 403
    assert response.json()["error"]["details"] == {"feature": "premiumEnhancement"}
    assert await video_count() == 0
    assert await usage_today(user) == 0


async def test_finished_jobs_leave_no_progress_entries(client, make_user, orchestrator, job_status, default_backend):
    user = await make_user(plan_code="business")
    video_ids = [(await create_video(client, user)).json()["data"]["video"]["id"] for _ in range(3)]
    for video_id in video_ids:
        await orchestrator.wait(uuid.UUID(video_id))

    default_backend.reply = "no scenes here"
    failed_id = (await create_video(client, user)).json()["data"]["video"]["id"]
    await orchestrator.wait(uuid.UUID(failed_id))

    assert len(job_status) == 0
    assert orchestrator.active_job_count == 0
    completed = await poll(client, user, video_ids[0])
    assert completed["processingStatus"]["message"] == "Rendered in tests"
    failed = await poll(client, user, failed_id)
    assert failed["processingStatus"]["status"] == "failed"
    assert failed["processingStatus"]["message"] == failed["video"]["errorMessage"]


async def test_duration_too_short_for_the_scenes_is_rejected(client, make_user):
    user = await make_user()

    response = await create_video(client, user, videoOptions={"duration": 2})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "DURATION_TOO_SHORT"
    assert await video_count() == 0
    assert await usage_today(user) == 0
