"""Service layer for subscription business logic.

Key Concepts:
- Effective plan: the plan of a user's active subscription, or the Free plan when
  the user has none. Every entitlement decision is made against this plan.
- Upgrade: moves the active subscription to another catalog plan
- Cancel: deactivates the active subscription and starts a new Free one

Architecture:
- Repository: Fetches raw data from database
- Service: Applies business rules and formats responses
- Route: Orchestrates service calls and returns HTTP responses
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.database.subscription_repo import subscription_repository
from app.models.models import Subscription, SubscriptionPlan, User
from app.schemas.subscriptions import PlanResponse, SubscriptionMe, SubscriptionResponse
from app.utils.exceptions import ConfigurationError, NotFoundException, ValidationException

logger = logging.getLogger(__name__)

FREE_PLAN_CODE = "free"


class SubscriptionService:
    """Service for subscription business logic."""

    @staticmethod
    async def get_free_plan(db: AsyncSession) -> SubscriptionPlan:
        plan = await subscription_repository.get_plan_by_code(db, FREE_PLAN_CODE)
        if plan is None:
            raise ConfigurationError("Plan catalog is not seeded (missing 'free' plan)")
        return plan

    @staticmethod
    async def get_effective_plan(db: AsyncSession, user: User) -> SubscriptionPlan:
        """
        Resolve the plan that governs a user's requests.

        Args:
            db: Database session
            user: The user

        Returns:
            The active subscription's plan, or the Free plan if there is none
        """
        row = await subscription_repository.get_active_subscription_and_plan(db, user.id)
        if row is not None:
            return row[1]
        return await SubscriptionService.get_free_plan(db)

    @staticmethod
    async def assign_free_plan(db: AsyncSession, user: User) -> Subscription:
        """Start a Free subscription. The caller commits."""
        plan = await SubscriptionService.get_free_plan(db)
        return await subscription_repository.create_subscription(
            db, Subscription(user_id=user.id, plan_id=plan.id, active=True)
        )

    @staticmethod
    async def list_plans(db: AsyncSession) -> list[PlanResponse]:
        return [PlanResponse.from_model(plan) for plan in await subscription_repository.get_all_plans(db)]

    @staticmethod
    async def get_my_subscription(db: AsyncSession, user: User) -> SubscriptionMe:
        row = await subscription_repository.get_active_subscription_and_plan(db, user.id)
        if row is None:
            return SubscriptionMe(subscription=None, plan=PlanResponse.from_model(await SubscriptionService.get_free_plan(db)))
        subscription, plan = row
        return SubscriptionMe(
            subscription=SubscriptionResponse.from_model(subscription),
            plan=PlanResponse.from_model(plan),
        )

    @staticmethod
    async def upgrade(db: AsyncSession, user: User, plan_id: int) -> SubscriptionMe:
        """
        Move the user's active subscription to ``plan_id``.

        The active row's plan reference is changed in place; a user without an
        active subscription gets a new one.

        Raises:
            NotFoundException: unknown plan
            ValidationException: user is already on that plan
        """
        plan = await subscription_repository.get_plan(db, plan_id)
        if plan is None:
            raise NotFoundException("Plan not found")

        subscription = await subscription_repository.get_active_subscription(db, user.id)
        if subscription is not None and subscription.plan_id == plan.id:
            raise ValidationException(f"You are already on the {plan.name} plan", code="ALREADY_ON_PLAN")

        if subscription is None:
            subscription = await subscription_repository.create_subscription(
                db, Subscription(user_id=user.id, plan_id=plan.id, active=True)
            )
        else:
            subscription.plan_id = plan.id
            subscription.start_date = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(subscription)
        logger.info("User %s moved to plan %s", user.id, plan.code)
        return SubscriptionMe(
            subscription=SubscriptionResponse.from_model(subscription),
            plan=PlanResponse.from_model(plan),
        )

    @staticmethod
    async def cancel(db: AsyncSession, user: User) -> SubscriptionMe:
        """Downgrade to the Free plan. 400 when the user is already on it."""
        free_plan = await SubscriptionService.get_free_plan(db)
        subscription = await subscription_repository.get_active_subscription(db, user.id)
        if subscription is None or subscription.plan_id == free_plan.id:
            raise ValidationException("You are already on the Free plan", code="ALREADY_ON_PLAN")

        await SubscriptionService.deactivate(db, subscription)
        replacement = await subscription_repository.create_subscription(
            db, Subscription(user_id=user.id, plan_id=free_plan.id, active=True)
        )
        await db.commit()
        await db.refresh(replacement)
        logger.info("User %s cancelled their subscription", user.id)
        return SubscriptionMe(
            subscription=SubscriptionResponse.from_model(replacement),
            plan=PlanResponse.from_model(free_plan),
        )

    @staticmethod
    async def deactivate(db: AsyncSession, subscription: Subscription) -> None:
        """Close a subscription. Flushed immediately so a new active row can follow."""
        subscription.active = False
        subscription.end_date = datetime.now(timezone.utc)
        await db.flush()
