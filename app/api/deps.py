"""FastAPI dependencies for authentication, database sessions and pipeline services."""

import uuid
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.security import decode_access_token
from app.database.user_repo import user_repository
from app.models.models import User
from app.services.config_provider import ConfigProvider, config_provider
from app.services.image_synthesizer import ImageSynthesizer
from app.services.job_status import InMemoryJobStatus
from app.services.llm_client import TextBackendFactory, text_backend_factory
from app.services.renderer import SimulatedRenderer
from app.services.scene_enhancer import SceneEnhancer
from app.services.scene_segmenter import SceneSegmenter
from app.services.video_orchestrator import VideoJobOrchestrator
from app.utils.exceptions import ForbiddenException, UnauthorizedException

bearer_scheme = HTTPBearer(auto_error=False)


async def _resolve_user(
    credentials: Optional[HTTPAuthorizationCredentials], db: AsyncSession
) -> Optional[User]:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        return None

    user_id_str: Optional[str] = payload.get("sub")
    if user_id_str is None:
        return None

    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError:
        return None

    return await user_repository.get_user(db, user_id)


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get current authenticated user from JWT token."""
    user = await _resolve_user(credentials, db)
    if user is None:
        raise UnauthorizedException("Could not validate credentials")
    if user.banned:
        raise ForbiddenException("This account has been banned")
    return user


async def get_admin_user(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    if not current_user.is_admin:
        raise ForbiddenException("Administrator access required")
    return current_user


def get_config_provider() -> ConfigProvider:
    return config_provider


def get_backend_factory() -> TextBackendFactory:
    return text_backend_factory


def get_segmenter(
    factory: Annotated[TextBackendFactory, Depends(get_backend_factory)],
) -> SceneSegmenter:
    return SceneSegmenter(factory)


def get_enhancer(
    factory: Annotated[TextBackendFactory, Depends(get_backend_factory)],
) -> SceneEnhancer:
    return SceneEnhancer(factory)


def get_image_synthesizer(
    provider: Annotated[ConfigProvider, Depends(get_config_provider)],
) -> ImageSynthesizer:
    return ImageSynthesizer(provider)


def build_orchestrator() -> VideoJobOrchestrator:
    return VideoJobOrchestrator(
        segmenter=SceneSegmenter(text_backend_factory),
        enhancer=SceneEnhancer(text_backend_factory),
        image_synthesizer=ImageSynthesizer(config_provider),
        renderer=SimulatedRenderer(config_provider),
        status_source=InMemoryJobStatus(),
    )


def get_orchestrator(request: Request) -> VideoJobOrchestrator:
    """The process-wide orchestrator, created at startup."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        orchestrator = build_orchestrator()
        request.app.state.orchestrator = orchestrator
    return orchestrator


# Convenience type aliases
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(get_admin_user)]
DB = Annotated[AsyncSession, Depends(get_db)]
Orchestrator = Annotated[VideoJobOrchestrator, Depends(get_orchestrator)]
Segmenter = Annotated[SceneSegmenter, Depends(get_segmenter)]
Enhancer = Annotated[SceneEnhancer, Depends(get_enhancer)]
Images = Annotated[ImageSynthesizer, Depends(get_image_synthesizer)]
Config = Annotated[ConfigProvider, Depends(get_config_provider)]
BackendFactory = Annotated[TextBackendFactory, Depends(get_backend_factory)]
