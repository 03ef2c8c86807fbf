"""Storage contracts the video pipeline depends on.

The orchestrator only talks to these protocols; the SQLAlchemy repositories in this
package satisfy them structurally, and tests may pass any other implementation.
"""

import uuid
from datetime import date
from typing import Any, Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import Video


class VideoStore(Protocol):
    async def create_video(self, db: AsyncSession, video: Video) -> Video: ...

    async def get_video(self, db: AsyncSession, video_id: uuid.UUID) -> Optional[Video]: ...

    async def update_sections(
        self, db: AsyncSession, video_id: uuid.UUID, sections: list[dict[str, Any]]
    ) -> bool: ...

    async def mark_completed(
        self,
        db: AsyncSession,
        video_id: uuid.UUID,
        video_url: str,
        thumbnail_url: Optional[str],
        sections: list[dict[str, Any]],
        processing_result: Optional[str] = None,
    ) -> bool: ...

    async def mark_failed(
        self,
        db: AsyncSession,
        video_id: uuid.UUID,
        error_message: str,
        sections: Optional[list[dict[str, Any]]] = None,
    ) -> bool: ...


class UsageLedger(Protocol):
    async def get_count(self, db: AsyncSession, user_id: uuid.UUID, usage_date: date) -> int: ...

    async def try_increment(
        self, db: AsyncSession, user_id: uuid.UUID, usage_date: date, limit: int
    ) -> Optional[int]: ...

    async def increment(self, db: AsyncSession, user_id: uuid.UUID, usage_date: date) -> int: ...
