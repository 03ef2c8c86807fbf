"""Repository layer for plan and subscription database operations.

This module contains ONLY database access logic - no business rules.
Repository functions fetch data from the database and return raw models or primitive values.

Key Concepts:
- SubscriptionPlan: A catalog tier (Free, Pro, Business) with quotas and feature flags
- Subscription: Binds a user to exactly one active plan at a time
"""

import uuid
from typing import Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import Subscription, SubscriptionPlan


class SubscriptionRepository:
    """Repository for plan and subscription database operations."""

    @staticmethod
    async def get_all_plans(db: AsyncSession) -> list[SubscriptionPlan]:
        """
        Fetch the plan catalog ordered by price.

        Args:
            db: Database session

        Returns:
            List of SubscriptionPlan objects, cheapest first
        """
        result = await db.execute(
            select(SubscriptionPlan).order_by(SubscriptionPlan.price_monthly.asc(), SubscriptionPlan.id.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_plan(db: AsyncSession, plan_id: int) -> Optional[SubscriptionPlan]:
        return await db.get(SubscriptionPlan, plan_id)

    @staticmethod
    async def get_plan_by_code(db: AsyncSession, plan_code: str) -> Optional[SubscriptionPlan]:
        """
        Fetch a plan by its code (e.g., "free", "pro", "business").

        Args:
            db: Database session
            plan_code: Code of the plan to fetch

        Returns:
            SubscriptionPlan if found, None otherwise
        """
        result = await db.execute(select(SubscriptionPlan).where(SubscriptionPlan.code == plan_code))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_active_subscription(db: AsyncSession, user_id: uuid.UUID) -> Optional[Subscription]:
        result = await db.execute(
            select(Subscription).where(
                Subscription.user_id == user_id,
                Subscription.active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_active_subscription_and_plan(
        db: AsyncSession, user_id: uuid.UUID
    ) -> Optional[Tuple[Subscription, SubscriptionPlan]]:
        """
        Fetch a user's active subscription together with its plan.

        Args:
            db: Database session
            user_id: ID of the user

        Returns:
            Tuple of (Subscription, SubscriptionPlan) if the user has an active subscription
        """
        result = await db.execute(
            select(Subscription, SubscriptionPlan)
            .join(SubscriptionPlan, Subscription.plan_id == SubscriptionPlan.id)
            .where(Subscription.user_id == user_id, Subscription.active.is_(True))
        )
        row = result.first()
        return (row[0], row[1]) if row else None

    @staticmethod
    async def create_subscription(db: AsyncSession, subscription: Subscription) -> Subscription:
        db.add(subscription)
        await db.flush()
        return subscription

    @staticmethod
    async def get_active_revenue_total(db: AsyncSession) -> int:
        """Sum of monthly prices across active subscriptions."""
        result = await db.execute(
            select(func.coalesce(func.sum(SubscriptionPlan.price_monthly), 0))
            .select_from(Subscription)
            .join(SubscriptionPlan, Subscription.plan_id == SubscriptionPlan.id)
            .where(Subscription.active.is_(True))
        )
        return int(result.scalar_one())


subscription_repository = SubscriptionRepository()
