import uuid
from typing import Optional

import httpx
import pytest

from app.api import deps
from app.core.db import dispose_engine, get_engine, get_session_factory, init_engine_and_session
from app.core.security import hash_password
from app.database.seed import seed_plans
from app.database.subscription_repo import subscription_repository
from app.main import app
from app.models import Base
from app.models.models import Subscription, User, UserRole
from app.services.auth_service import AuthService
from app.services.job_status import InMemoryJobStatus
from app.services.scene_enhancer import SceneEnhancer
from app.services.scene_segmenter import SceneSegmenter
from app.services.video_orchestrator import VideoJobOrchestrator
from tests.fakes import FakeBackend, FakeBackendFactory, FakeImageSynthesizer, GatedRenderer, scenes_reply

LONG_TEXT = (
    "The lighthouse keeper climbed the spiral stairs every evening at dusk. "
    "From the top he watched the fishing boats return through the narrow channel. "
    "One stormy night a small boat lost its way and he rang the old bell until dawn. "
) * 4


@pytest.fixture
async def database(tmp_path):
    await dispose_engine()
    init_engine_and_session(f"sqlite+aiosqlite:///{tmp_path / 'vidgen-test.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with get_session_factory()() as session:
        await seed_plans(session)
    yield
    await dispose_engine()


@pytest.fixture
async def session(database):
    async with get_session_factory()() as db:
        yield db


@pytest.fixture
def make_user(database):
    async def _make(
        email: Optional[str] = None,
        plan_code: str = "free",
        role: UserRole = UserRole.USER,
        password: str = "password123",
    ) -> User:
        async with get_session_factory()() as db:
            user = User(
                email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
                password_hash=hash_password(password),
                name="Test User",
                role=role,
            )
            db.add(user)
            await db.flush()
            plan = await subscription_repository.get_plan_by_code(db, plan_code)
            db.add(Subscription(user_id=user.id, plan_id=plan.id, active=True))
            await db.commit()
            await db.refresh(user)
            return user

    return _make


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {AuthService.generate_token(user.id)}"}


@pytest.fixture
def default_backend():
    return FakeBackend(reply=scenes_reply)


@pytest.fixture
def premium_backend():
    return FakeBackend(name="grok", model="grok-2-1212", reply="a vivid premium description")


@pytest.fixture
def backend_factory(default_backend, premium_backend):
    return FakeBackendFactory(default=default_backend, premium=premium_backend)


@pytest.fixture
def image_synthesizer():
    return FakeImageSynthesizer()


@pytest.fixture
def renderer():
    return GatedRenderer()


@pytest.fixture
def job_status():
    return InMemoryJobStatus()


@pytest.fixture
async def orchestrator(database, backend_factory, image_synthesizer, renderer, job_status):
    orchestrator = VideoJobOrchestrator(
        segmenter=SceneSegmenter(backend_factory),
        enhancer=SceneEnhancer(backend_factory),
        image_synthesizer=image_synthesizer,
        renderer=renderer,
        status_source=job_status,
    )
    yield orchestrator
    renderer.gate.set()
    await orchestrator.shutdown()


@pytest.fixture
async def client(database, orchestrator, backend_factory, image_synthesizer):
    app.dependency_overrides[deps.get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[deps.get_backend_factory] = lambda: backend_factory
    app.dependency_overrides[deps.get_image_synthesizer] = lambda: image_synthesizer
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()
