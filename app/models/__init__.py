from app.models.base import Base
from app.models.models import (
    ApiConfig,
    DailyUsage,
    Subscription,
    SubscriptionPlan,
    User,
    Video,
)

__all__ = [
    "ApiConfig",
    "Base",
    "DailyUsage",
    "Subscription",
    "SubscriptionPlan",
    "User",
    "Video",
]
