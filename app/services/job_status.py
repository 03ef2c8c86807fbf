"""Progress reporting for video jobs.

Clients poll for status. The orchestrator reports stages to a ``JobStatusSource``;
the in-memory implementation below serves a single process, and a push-based
renderer can supply its own implementation without changing the orchestrator.
"""

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol


class JobStage(str, enum.Enum):
    ACCEPTED = "accepted"
    SEGMENTED = "segmented"
    ENHANCED = "enhanced"
    IMAGES = "images"
    TIMELINE = "timeline"
    RENDERING = "rendering"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def progress(self) -> int:
        return STAGE_PROGRESS[self]


STAGE_PROGRESS = {
    JobStage.ACCEPTED: 5,
    JobStage.SEGMENTED: 20,
    JobStage.ENHANCED: 40,
    JobStage.IMAGES: 70,
    JobStage.TIMELINE: 80,
    JobStage.RENDERING: 90,
    JobStage.COMPLETED: 100,
    JobStage.FAILED: 100,
}


@dataclass
class JobProgress:
    stage: JobStage
    message: Optional[str] = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def progress(self) -> int:
        return self.stage.progress


class JobStatusSource(Protocol):
    def record(self, video_id: uuid.UUID, stage: JobStage, message: Optional[str] = None) -> None: ...

    def get(self, video_id: uuid.UUID) -> Optional[JobProgress]: ...

    def discard(self, video_id: uuid.UUID) -> None: ...


class InMemoryJobStatus:
    """Stage tracker kept in process memory."""

    def __init__(self) -> None:
        self._entries: dict[uuid.UUID, JobProgress] = {}

    def record(self, video_id: uuid.UUID, stage: JobStage, message: Optional[str] = None) -> None:
        previous = self._entries.get(video_id)
        if previous is not None and previous.stage in (JobStage.COMPLETED, JobStage.FAILED):
            return
        if message is None and previous is not None:
            message = previous.message
        self._entries[video_id] = JobProgress(stage=stage, message=message)

    def get(self, video_id: uuid.UUID) -> Optional[JobProgress]:
        return self._entries.get(video_id)

    def discard(self, video_id: uuid.UUID) -> None:
        self._entries.pop(video_id, None)

    def __len__(self) -> int:
        return len(self._entries)
