"""Subscription-plan gating for video requests.

Pure decision logic over a plan and today's usage; nothing here touches the
database. Rules are applied in order and the first failing rule wins:

1. daily video count
2. maximum duration
3. maximum resolution (720p < 1080p < 4K)
4. custom AI models / premium enhancement
"""

from typing import Optional

from app.models.models import Resolution, SubscriptionPlan
from app.utils.exceptions import (
    DailyLimitExceeded,
    DurationExceeded,
    EntitlementDenied,
    FeatureRequiresUpgrade,
    ResolutionNotAllowed,
)


def evaluate_entitlement(
    plan: SubscriptionPlan,
    usage_today: Optional[int] = None,
    duration: Optional[int] = None,
    resolution: Optional[Resolution] = None,
    custom_feature: Optional[str] = None,
) -> Optional[EntitlementDenied]:
    """
    Decide whether ``plan`` allows a request.

    Any argument left as None skips its rule, so the same function gates both a
    full video request and a single check such as "may this user segment text today".

    Args:
        plan: The user's effective plan
        usage_today: Videos already created today
        duration: Requested duration in seconds
        resolution: Requested output resolution
        custom_feature: Name of a requested feature that needs ``custom_ai_models``

    Returns:
        None when allowed, otherwise the denial to raise
    """
    if usage_today is not None and usage_today >= plan.daily_video_limit:
        return DailyLimitExceeded(plan.daily_video_limit)
    if duration is not None and duration > plan.duration_limit:
        return DurationExceeded(plan.duration_limit)
    if resolution is not None and resolution.rank > plan.resolution.rank:
        return ResolutionNotAllowed(plan.resolution.value)
    if custom_feature and not plan.custom_ai_models:
        return FeatureRequiresUpgrade(custom_feature)
    return None


def check_entitlement(
    plan: SubscriptionPlan,
    usage_today: Optional[int] = None,
    duration: Optional[int] = None,
    resolution: Optional[Resolution] = None,
    custom_feature: Optional[str] = None,
) -> None:
    """Raise the first applicable EntitlementDenied, if any."""
    denial = evaluate_entitlement(plan, usage_today, duration, resolution, custom_feature)
    if denial is not None:
        raise denial
