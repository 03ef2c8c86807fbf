"""Bootstrap data: the plan catalog and the administrable API config keys."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import ApiConfig, Resolution, SubscriptionPlan
from app.services.config_provider import CONFIG_KEYS

logger = logging.getLogger(__name__)

PLAN_CATALOG = [
    {
        "code": "free",
        "name": "Free",
        "price_monthly": 0,
        "daily_video_limit": 2,
        "duration_limit": 60,
        "resolution": Resolution.HD,
        "has_watermark": True,
        "custom_ai_models": False,
    },
    {
        "code": "pro",
        "name": "Pro",
        "price_monthly": 99,
        "daily_video_limit": 10,
        "duration_limit": 180,
        "resolution": Resolution.FULL_HD,
        "has_watermark": False,
        "custom_ai_models": True,
    },
    {
        "code": "business",
        "name": "Business",
        "price_monthly": 299,
        "daily_video_limit": 50,
        "duration_limit": 300,
        "resolution": Resolution.UHD,
        "has_watermark": False,
        "custom_ai_models": True,
    },
]


async def seed_plans(session: AsyncSession) -> list[SubscriptionPlan]:
    """Create or update subscription plans. Commits."""
    plans = []
    for plan_data in PLAN_CATALOG:
        result = await session.execute(select(SubscriptionPlan).where(SubscriptionPlan.code == plan_data["code"]))
        plan = result.scalar_one_or_none()
        if plan is None:
            plan = SubscriptionPlan(**plan_data)
            session.add(plan)
            logger.info("Created plan %s", plan_data["name"])
        else:
            for field, value in plan_data.items():
                setattr(plan, field, value)
            logger.info("Updated plan %s", plan_data["name"])
        plans.append(plan)
    await session.commit()
    return plans


async def seed_api_configs(session: AsyncSession) -> None:
    """Register every administrable key with an empty value so the back office lists it."""
    existing = set((await session.execute(select(ApiConfig.name))).scalars().all())
    for key in CONFIG_KEYS.values():
        if key.name not in existing:
            session.add(ApiConfig(name=key.name, value=None, description=key.description))
    await session.commit()
