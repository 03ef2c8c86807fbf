"""Client-side polling loop for video status.

Polls ``GET {api}/ai/video-status/{id}`` at a fixed interval until the video reaches
``completed`` or ``failed``. Optional jitter spreads out many concurrent pollers.
"""

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({"completed", "failed"})


class PollTimeout(TimeoutError):
    def __init__(self, video_id: str, last: Optional[dict[str, Any]]):
        self.video_id = video_id
        self.last = last
        super().__init__(f"Video {video_id} did not finish in time")


class VideoStatusPoller:
    def __init__(
        self,
        client: httpx.AsyncClient,
        token: Optional[str] = None,
        interval: float = settings.STATUS_POLL_INTERVAL_SECONDS,
        jitter: float = 0.0,
        timeout: float = 600.0,
        api_prefix: str = settings.API_PREFIX,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._client = client
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._interval = interval
        self._jitter = max(0.0, jitter)
        self._timeout = timeout
        self._prefix = api_prefix.rstrip("/")
        self._sleep = sleep

    def next_delay(self) -> float:
        if not self._jitter:
            return self._interval
        return self._interval + random.uniform(0, self._jitter)

    async def poll_once(self, video_id: str) -> dict[str, Any]:
        """Fetch the current ``{video, processingStatus}`` payload."""
        response = await self._client.get(f"{self._prefix}/ai/video-status/{video_id}", headers=self._headers)
        response.raise_for_status()
        return response.json()["data"]

    async def wait_for_terminal(
        self,
        video_id: str,
        on_update: Optional[Callable[[dict[str, Any]], None]] = None,
    ) -> dict[str, Any]:
        """
        Poll until the video is completed or failed.

        Returns:
            The last payload (terminal)

        Raises:
            PollTimeout: no terminal state within ``timeout`` seconds
            httpx.HTTPStatusError: the status endpoint returned an error
        """
        deadline = time.monotonic() + self._timeout
        last: Optional[dict[str, Any]] = None
        while True:
            last = await self.poll_once(video_id)
            if on_update is not None:
                on_update(last)
            status = last["processingStatus"]["status"]
            if status in TERMINAL_STATUSES:
                return last

            delay = self.next_delay()
            if time.monotonic() + delay > deadline:
                raise PollTimeout(video_id, last)
            logger.debug("Video %s still %s; next poll in %.1fs", video_id, status, delay)
            await self._sleep(delay)
