"""Scene timing."""

from app.schemas.scenes import Scene
from app.utils.exceptions import ValidationException


def ensure_duration_fits(scene_count: int, total_duration: int) -> None:
    """Every scene needs at least one second."""
    if total_duration < scene_count:
        raise ValidationException(
            f"A {total_duration}s video cannot hold {scene_count} scenes",
            details={"duration": total_duration, "sceneCount": scene_count},
            code="DURATION_TOO_SHORT",
        )


def assign_timings(scenes: list[Scene], total_duration: int) -> list[Scene]:
    """Split ``total_duration`` seconds evenly across ``scenes``.

    Each scene gets ``floor(total / n)`` seconds and the last scene absorbs the
    remainder, so timings are contiguous, strictly increasing and end exactly at
    ``total_duration``.
    """
    if not scenes:
        raise ValidationException("At least one scene is required", code="NO_SCENES")
    ensure_duration_fits(len(scenes), total_duration)

    per_scene = total_duration // len(scenes)
    last = len(scenes) - 1
    return [
        scene.model_copy(
            update={
                "start_time": index * per_scene,
                "end_time": total_duration if index == last else (index + 1) * per_scene,
            }
        )
        for index, scene in enumerate(scenes)
    ]
